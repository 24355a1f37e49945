"""
Investment domain model.

A purchase of bond units by one investor.  The row is immutable after
creation except for the one-way *Active* → *Matured* status transition.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from irm.models.investor import Investor
    from irm.models.transaction import Transaction


class InvestmentStatus(str, Enum):
    ACTIVE = "Active"
    MATURED = "Matured"


class Investment(SQLModel, table=True):
    """
    SQLModel table definition for investments.

    - ``invested_amount`` uses DECIMAL(15,2) for exact currency arithmetic.
    - ``lock_in_expiry`` and ``maturity_date`` are fixed at creation from the
      plan's lock-in and maturity terms.
    - ``ix_investments_investor_date`` covers the investor portal listing.
    """

    __tablename__ = "investments"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_investments_investor_date", "investor_id", "investment_date"),
        CheckConstraint("invested_amount > 0", name="ck_investments_amount_positive"),
        CheckConstraint("bonds_purchased > 0", name="ck_investments_bonds_positive"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    investor_id: uuid.UUID = Field(
        foreign_key="investors.id",
        index=True,
        ondelete="RESTRICT",
    )
    investment_date: date
    invested_amount: Decimal = Field(max_digits=15, decimal_places=2)
    bonds_purchased: int
    lock_in_expiry: date
    maturity_date: date
    bonus_earned: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)
    status: InvestmentStatus = Field(default=InvestmentStatus.ACTIVE)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    investor: Optional["Investor"] = Relationship(back_populates="investments")
    transactions: List["Transaction"] = Relationship(back_populates="investment")

    def __repr__(self) -> str:
        return (
            f"<Investment id={self.id} investor={self.investor_id} "
            f"amount={self.invested_amount} bonds={self.bonds_purchased}>"
        )
