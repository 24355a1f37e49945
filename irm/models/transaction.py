"""
Transaction domain model.

Deposits, interest credits and payouts against one investment.  The table is
append-only: no repository or endpoint updates or deletes a row.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from irm.models.investment import Investment


class TransactionType(str, Enum):
    INVESTMENT = "investment"
    DIVIDEND_DISBURSEMENT = "dividend_disbursement"
    BONUS_DISBURSEMENT = "bonus_disbursement"
    MATURITY_DISBURSEMENT = "maturity_disbursement"


class TransactionMode(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CASH = "cash"
    UPI = "upi"
    CARD = "card"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Transaction(SQLModel, table=True):
    """SQLModel table definition for transactions."""

    __tablename__ = "transactions"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_transactions_investment_date", "investment_id", "transaction_date"),
        CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    investment_id: uuid.UUID = Field(
        foreign_key="investments.id",
        index=True,
        ondelete="RESTRICT",
    )
    type: TransactionType
    amount: Decimal = Field(max_digits=15, decimal_places=2)
    transaction_date: date
    year_covered: Optional[int] = Field(default=None)
    interest_rate: Optional[Decimal] = Field(default=None, max_digits=5, decimal_places=2)
    mode: TransactionMode = Field(default=TransactionMode.BANK_TRANSFER)
    reference: str = Field(max_length=64)
    status: TransactionStatus = Field(default=TransactionStatus.COMPLETED)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    investment: Optional["Investment"] = Relationship(back_populates="transactions")

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} type={self.type.value} amount={self.amount}>"
