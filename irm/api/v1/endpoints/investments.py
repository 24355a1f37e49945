"""
Investment API endpoints.

- GET   /investors/{investor_id}/investments   Investments of an investor
- POST  /investors/{investor_id}/investments   Buy bond units
- GET   /investments/{id}                      Fetch one investment
- POST  /investments/{id}/mature               Mark matured and pay out principal
- GET   /investments/{id}/interest             Interest position
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.models.transaction import Transaction
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.common import ErrorResponse, ValidationErrorResponse
from irm.schemas.investment import InvestmentCreate, InvestmentResponse
from irm.schemas.returns import InterestDetailsResponse
from irm.services.investment_service import InvestmentService

router = APIRouter()


# ── Dependency injection ──


def _get_investment_service(db: AsyncSession = Depends(get_db)) -> InvestmentService:
    return InvestmentService(
        InvestmentRepository(Investment, db),
        InvestorRepository(Investor, db),
        TransactionRepository(Transaction, db),
    )


# ── Endpoints ──


@router.get(
    "/investors/{investor_id}/investments",
    response_model=List[InvestmentResponse],
    summary="List investments for an investor",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def list_investments(
    investor_id: UUID,
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    service: InvestmentService = Depends(_get_investment_service),
) -> List[InvestmentResponse]:
    return await service.get_investments_by_investor(investor_id, skip=skip, limit=limit)


@router.post(
    "/investors/{investor_id}/investments",
    response_model=InvestmentResponse,
    status_code=201,
    summary="Buy bond units",
    description=(
        "Records a purchase of bond units.  The amount is the unit count times "
        "the bond value; the investor's total holding may not exceed the plan limit."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Investor not found"},
        422: {
            "model": ValidationErrorResponse,
            "description": "Validation error, inactive investor or bond limit exceeded",
        },
    },
)
async def create_investment(
    investor_id: UUID,
    investment: InvestmentCreate,
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentResponse:
    return await service.create_investment(investor_id, investment)


@router.get(
    "/investments/{investment_id}",
    response_model=InvestmentResponse,
    summary="Get an investment",
    responses={404: {"model": ErrorResponse, "description": "Investment not found"}},
)
async def get_investment(
    investment_id: UUID,
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentResponse:
    return await service.get_investment(investment_id)


@router.post(
    "/investments/{investment_id}/mature",
    response_model=InvestmentResponse,
    summary="Mature an investment",
    responses={
        404: {"model": ErrorResponse, "description": "Investment not found"},
        409: {"model": ErrorResponse, "description": "Already matured"},
        422: {"model": ErrorResponse, "description": "Maturity date not reached"},
    },
)
async def mature_investment(
    investment_id: UUID,
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentResponse:
    return await service.mature_investment(investment_id)


@router.get(
    "/investments/{investment_id}/interest",
    response_model=InterestDetailsResponse,
    summary="Interest position of an investment",
    responses={404: {"model": ErrorResponse, "description": "Investment not found"}},
)
async def get_interest(
    investment_id: UUID,
    as_of: Optional[date] = Query(None, description="Valuation date (default: today)"),
    service: InvestmentService = Depends(_get_investment_service),
) -> InterestDetailsResponse:
    details = await service.get_interest_details(investment_id, as_of=as_of)
    return InterestDetailsResponse.model_validate(details)
