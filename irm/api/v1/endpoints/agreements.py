"""
Agreement API endpoints.

- POST  /agreements                          Generate and send an agreement
- GET   /agreements/{id}                     Fetch one agreement
- GET   /investors/{investor_id}/agreements  Agreements of an investor
- POST  /agreements/{id}/sign                Capture the signature
- POST  /agreements/{id}/resend              Restart the signing window
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.agreement import Agreement
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.repositories.agreement_repo import AgreementRepository
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.schemas.agreement import AgreementCreate, AgreementResponse, AgreementSign
from irm.schemas.common import ErrorResponse, ValidationErrorResponse
from irm.services.agreement_service import AgreementService

router = APIRouter()


def _get_agreement_service(db: AsyncSession = Depends(get_db)) -> AgreementService:
    return AgreementService(
        AgreementRepository(Agreement, db),
        InvestorRepository(Investor, db),
        InvestmentRepository(Investment, db),
    )


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post(
    "/agreements",
    response_model=AgreementResponse,
    status_code=201,
    summary="Generate an agreement",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def create_agreement(
    agreement: AgreementCreate,
    service: AgreementService = Depends(_get_agreement_service),
) -> AgreementResponse:
    return await service.create_agreement(agreement.investor_id, send_email=agreement.send_email)


@router.get(
    "/agreements/{agreement_id}",
    response_model=AgreementResponse,
    summary="Get an agreement",
    responses={404: {"model": ErrorResponse, "description": "Agreement not found"}},
)
async def get_agreement(
    agreement_id: UUID,
    service: AgreementService = Depends(_get_agreement_service),
) -> AgreementResponse:
    return await service.get_agreement(agreement_id)


@router.get(
    "/investors/{investor_id}/agreements",
    response_model=List[AgreementResponse],
    summary="List agreements for an investor",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def list_agreements(
    investor_id: UUID,
    service: AgreementService = Depends(_get_agreement_service),
) -> List[AgreementResponse]:
    return await service.list_for_investor(investor_id)


@router.post(
    "/agreements/{agreement_id}/sign",
    response_model=AgreementResponse,
    summary="Sign an agreement",
    description="Records the signature image, signatory and the signer's IP and user agent.",
    responses={
        404: {"model": ErrorResponse, "description": "Agreement not found"},
        409: {"model": ErrorResponse, "description": "Already signed"},
        422: {"model": ValidationErrorResponse, "description": "Invalid signature or expired"},
    },
)
async def sign_agreement(
    agreement_id: UUID,
    signature: AgreementSign,
    request: Request,
    service: AgreementService = Depends(_get_agreement_service),
) -> AgreementResponse:
    return await service.sign_agreement(
        agreement_id,
        signature,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post(
    "/agreements/{agreement_id}/resend",
    response_model=AgreementResponse,
    summary="Resend an agreement",
    responses={
        404: {"model": ErrorResponse, "description": "Agreement not found"},
        409: {"model": ErrorResponse, "description": "Already signed"},
    },
)
async def resend_agreement(
    agreement_id: UUID,
    service: AgreementService = Depends(_get_agreement_service),
) -> AgreementResponse:
    return await service.resend_agreement(agreement_id)
