"""
Pydantic schemas for transaction request / response serialisation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from irm.models.transaction import TransactionMode, TransactionStatus, TransactionType
from irm.schemas.common import Money


class TransactionCreate(BaseModel):
    """Schema for ``POST /investments/{investment_id}/transactions``."""

    type: TransactionType
    amount: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2, examples=[120000.00])
    transaction_date: date
    year_covered: Optional[int] = Field(default=None, ge=1, le=50)
    interest_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    mode: TransactionMode = TransactionMode.BANK_TRANSFER
    reference: Optional[str] = Field(
        default=None, max_length=64, description="Generated as TXN-YYYY-MM-DD-XXXXXXXX when omitted"
    )
    status: TransactionStatus = TransactionStatus.COMPLETED
    notes: Optional[str] = Field(default=None, max_length=1000)


class TransactionResponse(BaseModel):
    id: UUID
    investment_id: UUID
    type: TransactionType
    amount: Money
    transaction_date: date
    year_covered: Optional[int]
    interest_rate: Optional[Money]
    mode: TransactionMode
    reference: str
    status: TransactionStatus
    notes: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GenerateTransactionsResponse(BaseModel):
    """Result of ``POST /admin/transactions/generate``."""

    investments_processed: int
    dividends_created: int
    bonuses_created: int
    as_of: date
