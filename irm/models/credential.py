"""
Investor login credential.

One row per investor.  Only the bcrypt hash of the password is stored.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from irm.models.investor import Investor


class InvestorCredential(SQLModel, table=True):
    __tablename__ = "investor_credentials"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    investor_id: uuid.UUID = Field(
        foreign_key="investors.id", unique=True, index=True, ondelete="RESTRICT"
    )
    username: str = Field(unique=True, index=True, max_length=150)
    password_hash: str = Field(max_length=128)
    is_active: bool = Field(default=True)
    last_login_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    password_changed_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    investor: Optional["Investor"] = Relationship(back_populates="credential")

    def __repr__(self) -> str:
        return f"<InvestorCredential investor={self.investor_id} username='{self.username}'>"
