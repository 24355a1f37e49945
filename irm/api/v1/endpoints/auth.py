"""
Investor authentication endpoints.

- POST  /auth/investor-login     Verify credentials and return the profile
- POST  /auth/change-password    Replace the password
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.credential import InvestorCredential
from irm.models.investor import Investor
from irm.repositories.credential_repo import CredentialRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.schemas.auth import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    InvestorLoginRequest,
    InvestorLoginResponse,
)
from irm.schemas.common import ErrorResponse
from irm.schemas.investor import InvestorResponse
from irm.services.credential_service import CredentialService

router = APIRouter()


def _get_credential_service(db: AsyncSession = Depends(get_db)) -> CredentialService:
    return CredentialService(
        CredentialRepository(InvestorCredential, db), InvestorRepository(Investor, db)
    )


@router.post(
    "/investor-login",
    response_model=InvestorLoginResponse,
    summary="Investor login",
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
async def investor_login(
    credentials: InvestorLoginRequest,
    service: CredentialService = Depends(_get_credential_service),
) -> InvestorLoginResponse:
    investor, credential = await service.login(credentials.identifier, credentials.password)
    return InvestorLoginResponse(
        investor=InvestorResponse.model_validate(investor),
        username=credential.username,
        last_login_at=credential.last_login_at,
    )


@router.post(
    "/change-password",
    response_model=ChangePasswordResponse,
    summary="Change password",
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        422: {"model": ErrorResponse, "description": "New password rejected"},
    },
)
async def change_password(
    change: ChangePasswordRequest,
    service: CredentialService = Depends(_get_credential_service),
) -> ChangePasswordResponse:
    credential = await service.change_password(
        change.identifier, change.current_password, change.new_password
    )
    return ChangePasswordResponse(
        username=credential.username, password_changed_at=credential.password_changed_at
    )
