"""
Pydantic schemas for investor request / response serialisation.

Three write shapes exist: ``InvestorCreate`` (admin onboarding),
``InvestorUpdate`` (admin, any field) and ``InvestorProfileUpdate``
(investor self-service, contact fields only).
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from irm.models.investor import InvestorStatus, KycStatus
from irm.schemas.investment import InvestmentCreate, InvestmentResponse

MOBILE_RE = re.compile(r"^\+?[0-9][0-9 \-]{8,18}[0-9]$")
PIN_RE = re.compile(r"^\d{6}$")


def _clean_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


def _check_mobile(v: Optional[str]) -> Optional[str]:
    v = _clean_optional(v)
    if v is not None and not MOBILE_RE.match(v):
        raise ValueError("must be a phone number of 10 to 15 digits")
    return v


def _check_pin(v: Optional[str]) -> Optional[str]:
    v = _clean_optional(v)
    if v is not None and not PIN_RE.match(v):
        raise ValueError("must be a 6-digit PIN code")
    return v


class ContactFields(BaseModel):
    """The fields an investor may edit on their own profile."""

    primary_mobile: Optional[str] = Field(default=None, examples=["+91 98765 43210"])
    secondary_mobile: Optional[str] = None
    primary_address: Optional[str] = Field(default=None, max_length=500)
    primary_address_pin: Optional[str] = Field(default=None, examples=["560001"])
    secondary_address: Optional[str] = Field(default=None, max_length=500)
    secondary_address_pin: Optional[str] = None

    check_mobiles = field_validator("primary_mobile", "secondary_mobile")(_check_mobile)
    check_pins = field_validator("primary_address_pin", "secondary_address_pin")(_check_pin)
    clean_addresses = field_validator("primary_address", "secondary_address")(_clean_optional)


class InvestorBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100, examples=["Ananya"])
    middle_name: Optional[str] = Field(default=None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100, examples=["Iyer"])
    email: EmailStr = Field(
        ...,
        description="Contact email address (unique across investors)",
        examples=["ananya.iyer@example.com"],
    )
    primary_mobile: str = Field(..., examples=["+91 98765 43210"])
    secondary_mobile: Optional[str] = None
    primary_address: str = Field(..., min_length=1, max_length=500)
    primary_address_pin: str = Field(..., examples=["560001"])
    secondary_address: Optional[str] = Field(default=None, max_length=500)
    secondary_address_pin: Optional[str] = None
    identity_proof_type: str = Field(..., min_length=1, max_length=50, examples=["PAN"])
    identity_proof_number: str = Field(..., min_length=1, max_length=50, examples=["ABCDE1234F"])

    @field_validator(
        "first_name",
        "last_name",
        "primary_address",
        "primary_mobile",
        "primary_address_pin",
        "identity_proof_type",
    )
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only values."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("identity_proof_number")
    @classmethod
    def normalise_proof_number(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("must not be blank")
        return v

    clean_optional = field_validator("middle_name", "secondary_address")(_clean_optional)
    check_mobiles = field_validator("primary_mobile", "secondary_mobile")(_check_mobile)
    check_pins = field_validator("primary_address_pin", "secondary_address_pin")(_check_pin)


class InvestorCreate(InvestorBase):
    """
    Schema for ``POST /investors``.

    ``username`` and ``password`` are generated when omitted; the generated
    password is returned once in the creation response and emailed.
    """

    kyc_status: KycStatus = KycStatus.PENDING
    username: Optional[str] = Field(default=None, min_length=3, max_length=150)
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)
    initial_investment: Optional[InvestmentCreate] = None
    send_emails: bool = Field(default=True, description="Send admin notice and welcome email")


class InvestorUpdate(ContactFields):
    """Schema for ``PUT /investors/{id}``: every field optional, only sent ones change."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    middle_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    identity_proof_type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    identity_proof_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    kyc_status: Optional[KycStatus] = None
    status: Optional[InvestorStatus] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class InvestorProfileUpdate(ContactFields):
    """Schema for ``PATCH /investors/{id}/profile``."""

    model_config = ConfigDict(extra="forbid")


class InvestorResponse(BaseModel):
    id: UUID
    first_name: str
    middle_name: Optional[str]
    last_name: str
    full_name: str
    email: str
    primary_mobile: str
    secondary_mobile: Optional[str]
    primary_address: str
    primary_address_pin: str
    secondary_address: Optional[str]
    secondary_address_pin: Optional[str]
    identity_proof_type: str
    identity_proof_number: str
    kyc_status: KycStatus
    status: InvestorStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvestorCreated(BaseModel):
    """Response of ``POST /investors``."""

    investor: InvestorResponse
    username: str
    password: str = Field(..., description="Initial password; shown only in this response")
    investment: Optional[InvestmentResponse] = None
    agreement_id: Optional[UUID] = None
