"""
Pydantic schemas for investment request / response serialisation.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from irm.core.config import settings
from irm.models.investment import InvestmentStatus
from irm.models.transaction import TransactionMode
from irm.schemas.common import Money


class InvestmentCreate(BaseModel):
    """
    Schema for ``POST /investors/{investor_id}/investments``.

    The amount is not sent: it is ``bonds_purchased * BOND_UNIT_VALUE``.
    """

    bonds_purchased: int = Field(
        ...,
        ge=1,
        le=settings.MAX_BONDS_PER_INVESTOR,
        description="Bond units bought in this purchase",
        examples=[1],
    )
    investment_date: date = Field(
        ...,
        description="Purchase date (ISO-8601)",
        examples=["2024-03-15"],
    )
    mode: TransactionMode = Field(
        default=TransactionMode.BANK_TRANSFER,
        description="How the principal was paid",
    )
    reference: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Payment reference; generated when omitted",
    )

    @field_validator("investment_date")
    @classmethod
    def validate_investment_date_not_far_future(cls, v: date) -> date:
        """Reject purchase dates more than a year ahead; those are data-entry errors."""
        max_date = date.today() + timedelta(days=365)
        if v > max_date:
            raise ValueError(
                f"investment_date cannot be more than one year in the future (max: {max_date})"
            )
        return v


class InvestmentResponse(BaseModel):
    id: UUID
    investor_id: UUID
    investment_date: date
    invested_amount: Money
    bonds_purchased: int
    lock_in_expiry: date
    maturity_date: date
    bonus_earned: Money
    status: InvestmentStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
