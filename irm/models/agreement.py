"""
Agreement domain model.

An investment agreement sent to an investor for signature.  It moves from
*Pending* to *Signed* exactly once; the signed row keeps the captured
signature image, who signed, and from where.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from irm.models.investor import Investor


class AgreementStatus(str, Enum):
    PENDING = "Pending"
    SIGNED = "Signed"


class Agreement(SQLModel, table=True):
    __tablename__ = "agreements"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    investor_id: uuid.UUID = Field(foreign_key="investors.id", index=True, ondelete="RESTRICT")
    content: str = Field(sa_column=Column(Text, nullable=False))
    document_hash: str = Field(max_length=64)
    status: AgreementStatus = Field(default=AgreementStatus.PENDING, index=True)
    sent_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    expires_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    signed_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    signature: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    signatory_name: Optional[str] = Field(default=None, max_length=255)
    signatory_email: Optional[str] = Field(default=None, max_length=320)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    investor: Optional["Investor"] = Relationship(back_populates="agreements")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes even for timezone-aware columns
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now > expires_at

    def __repr__(self) -> str:
        return f"<Agreement id={self.id} investor={self.investor_id} status={self.status.value}>"
