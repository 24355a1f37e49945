"""
Investor domain model.

An investor's identity and contact profile, persisted in the ``investors``
table.  Investors are never hard-deleted; removal flips ``status`` to
*Inactive*.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from irm.models.agreement import Agreement
    from irm.models.credential import InvestorCredential
    from irm.models.investment import Investment


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvestorStatus(str, Enum):
    """Soft lifecycle states."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class KycStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class Investor(SQLModel, table=True):
    """
    SQLModel table definition for investors.

    Constraints:
    - ``email`` is unique; duplicate registrations are rejected at DB level.
    - ``last_name`` is indexed for listing and search.
    """

    __tablename__ = "investors"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(first_name) > 0", name="ck_investors_first_name_not_empty"),
        CheckConstraint("length(email) > 0", name="ck_investors_email_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    first_name: str = Field(max_length=100)
    middle_name: Optional[str] = Field(default=None, max_length=100)
    last_name: str = Field(index=True, max_length=100)
    email: str = Field(unique=True, index=True, max_length=320)
    primary_mobile: str = Field(max_length=20)
    secondary_mobile: Optional[str] = Field(default=None, max_length=20)
    primary_address: str = Field(max_length=500)
    primary_address_pin: str = Field(max_length=10)
    secondary_address: Optional[str] = Field(default=None, max_length=500)
    secondary_address_pin: Optional[str] = Field(default=None, max_length=10)
    identity_proof_type: str = Field(max_length=50)
    identity_proof_number: str = Field(max_length=50)
    kyc_status: KycStatus = Field(default=KycStatus.PENDING)
    status: InvestorStatus = Field(default=InvestorStatus.ACTIVE, index=True)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    investments: List["Investment"] = Relationship(back_populates="investor")
    agreements: List["Agreement"] = Relationship(back_populates="investor")
    credential: Optional["InvestorCredential"] = Relationship(
        back_populates="investor", sa_relationship_kwargs={"uselist": False}
    )

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(p for p in parts if p)

    def __repr__(self) -> str:
        return f"<Investor id={self.id} name='{self.full_name}' status={self.status.value}>"
