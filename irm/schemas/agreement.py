"""
Pydantic schemas for investment agreements.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from irm.models.agreement import AgreementStatus


class AgreementCreate(BaseModel):
    """Schema for ``POST /agreements``."""

    investor_id: UUID
    send_email: bool = True


class AgreementSign(BaseModel):
    """Schema for ``POST /agreements/{id}/sign``."""

    signature: str = Field(
        ...,
        description="Captured signature image as a data URL",
        examples=["data:image/png;base64,iVBORw0KGgo..."],
    )
    signatory_name: str = Field(..., min_length=1, max_length=255)
    signatory_email: EmailStr

    @field_validator("signature")
    @classmethod
    def validate_data_url(cls, v: str) -> str:
        if not v.startswith("data:image/") or "," not in v:
            raise ValueError("signature must be an image data URL")
        return v

    @field_validator("signatory_name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("signatory_name must not be blank")
        return v.strip()


class AgreementResponse(BaseModel):
    id: UUID
    investor_id: UUID
    status: AgreementStatus
    document_hash: str
    content: str
    sent_at: Optional[datetime]
    expires_at: Optional[datetime]
    signed_at: Optional[datetime]
    signatory_name: Optional[str]
    signatory_email: Optional[str]
    ip_address: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
