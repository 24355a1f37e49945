"""
Investor API endpoints.

- GET    /investors                    List investors
- POST   /investors                    Onboard an investor
- GET    /investors/{id}               Fetch one investor
- PUT    /investors/{id}               Admin update
- PATCH  /investors/{id}/profile       Investor self-service contact update
- DELETE /investors/{id}               Soft delete (status Inactive)
- GET    /investors/{id}/portfolio     Portfolio with interest details
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.credential import InvestorCredential
from irm.models.investment import Investment
from irm.models.investor import Investor, InvestorStatus
from irm.models.transaction import Transaction
from irm.repositories.credential_repo import CredentialRepository
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.common import ErrorResponse, ValidationErrorResponse
from irm.schemas.dashboard import PortfolioResponse
from irm.schemas.investment import InvestmentResponse
from irm.schemas.investor import (
    InvestorCreate,
    InvestorCreated,
    InvestorProfileUpdate,
    InvestorResponse,
    InvestorUpdate,
)
from irm.services.investor_service import InvestorService

router = APIRouter()


# ── Dependency injection ──


def _get_investor_service(db: AsyncSession = Depends(get_db)) -> InvestorService:
    """Build an InvestorService wired to the current request's DB session."""
    return InvestorService(
        InvestorRepository(Investor, db),
        InvestmentRepository(Investment, db),
        TransactionRepository(Transaction, db),
        CredentialRepository(InvestorCredential, db),
    )


# ── Endpoints ──


@router.get(
    "",
    response_model=List[InvestorResponse],
    summary="List investors",
    description=(
        "Investors ordered by name.  Filter with ``status`` and page with "
        "``skip`` and ``limit``."
    ),
)
async def list_investors(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    status: Optional[InvestorStatus] = Query(None, description="Only investors in this status"),
    service: InvestorService = Depends(_get_investor_service),
) -> List[InvestorResponse]:
    return await service.get_all_investors(skip=skip, limit=limit, status=status)


@router.post(
    "",
    response_model=InvestorCreated,
    status_code=201,
    summary="Onboard a new investor",
    description=(
        "Creates the investor, their login, the optional initial investment "
        "and a pending agreement, then sends the admin notice, welcome and "
        "agreement emails.  The initial password appears only in this response."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Duplicate email address"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def create_investor(
    investor: InvestorCreate,
    service: InvestorService = Depends(_get_investor_service),
) -> InvestorCreated:
    result = await service.create_investor(investor)
    return InvestorCreated(
        investor=InvestorResponse.model_validate(result.investor),
        username=result.username,
        password=result.password,
        investment=(
            InvestmentResponse.model_validate(result.investment) if result.investment else None
        ),
        agreement_id=result.agreement.id,
    )


@router.get(
    "/{investor_id}",
    response_model=InvestorResponse,
    summary="Get an investor",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def get_investor(
    investor_id: UUID,
    service: InvestorService = Depends(_get_investor_service),
) -> InvestorResponse:
    return await service.get_investor(investor_id)


@router.put(
    "/{investor_id}",
    response_model=InvestorResponse,
    summary="Update an investor (admin)",
    responses={
        404: {"model": ErrorResponse, "description": "Investor not found"},
        409: {"model": ErrorResponse, "description": "Email already in use"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def update_investor(
    investor_id: UUID,
    investor: InvestorUpdate,
    service: InvestorService = Depends(_get_investor_service),
) -> InvestorResponse:
    return await service.update_investor(investor_id, investor)


@router.patch(
    "/{investor_id}/profile",
    response_model=InvestorResponse,
    summary="Update contact details (investor)",
    description="Only mobiles, addresses and PIN codes can be changed.  The admin is emailed.",
    responses={
        404: {"model": ErrorResponse, "description": "Investor not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def update_profile(
    investor_id: UUID,
    profile: InvestorProfileUpdate,
    service: InvestorService = Depends(_get_investor_service),
) -> InvestorResponse:
    return await service.update_profile(investor_id, profile)


@router.delete(
    "/{investor_id}",
    response_model=InvestorResponse,
    summary="Deactivate an investor",
    description="Soft delete: the investor becomes Inactive and can no longer log in.",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def deactivate_investor(
    investor_id: UUID,
    service: InvestorService = Depends(_get_investor_service),
) -> InvestorResponse:
    return await service.deactivate_investor(investor_id)


@router.get(
    "/{investor_id}/portfolio",
    response_model=PortfolioResponse,
    summary="Investor portfolio",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def get_portfolio(
    investor_id: UUID,
    as_of: Optional[date] = Query(None, description="Valuation date (default: today)"),
    service: InvestorService = Depends(_get_investor_service),
) -> PortfolioResponse:
    return await service.get_portfolio(investor_id, as_of=as_of)
