"""
Pydantic schemas for investor login and password change.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from irm.schemas.investor import InvestorResponse


class InvestorLoginRequest(BaseModel):
    identifier: str = Field(
        ...,
        min_length=1,
        description="Username, email, mobile number or investor id",
        examples=["ananya.iyer"],
    )
    password: str = Field(..., min_length=1, max_length=72)


class InvestorLoginResponse(BaseModel):
    investor: InvestorResponse
    username: str
    last_login_at: Optional[datetime]


class ChangePasswordRequest(BaseModel):
    identifier: str = Field(..., min_length=1)
    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., min_length=8, max_length=72)


class ChangePasswordResponse(BaseModel):
    username: str
    password_changed_at: datetime
