"""
Returns calculator endpoints (no database access).

- GET   /returns/rates       Rate ladder and milestone bonus years
- POST  /returns/calculate   Full-term projection for a principal
"""

from fastapi import APIRouter

from irm.schemas.common import ValidationErrorResponse
from irm.schemas.returns import (
    RateEntry,
    RatesResponse,
    ReturnsCalculateRequest,
    ReturnsProjectionResponse,
)
from irm.services.returns_calculator import (
    MILESTONE_BONUS_YEARS,
    RATE_TABLE,
    TERM_YEARS,
    TOP_RATE,
    compute_interest,
    project_returns,
)

router = APIRouter()


@router.get("/rates", response_model=RatesResponse, summary="Interest rate ladder")
async def get_rates() -> RatesResponse:
    return RatesResponse(
        rates=[RateEntry(year=year, rate=rate) for year, rate in RATE_TABLE],
        top_rate=TOP_RATE,
        top_rate_from_year=RATE_TABLE[-1][0] + 1,
        milestone_bonus_years=list(MILESTONE_BONUS_YEARS),
        term_years=TERM_YEARS,
    )


@router.post(
    "/calculate",
    response_model=ReturnsProjectionResponse,
    summary="Project returns for a principal",
    responses={422: {"model": ValidationErrorResponse, "description": "Invalid input"}},
)
async def calculate_returns(request: ReturnsCalculateRequest) -> ReturnsProjectionResponse:
    projection = project_returns(request.principal, term_years=request.term_years)
    response = ReturnsProjectionResponse.model_validate(projection)
    if request.year_of_holding is not None:
        response.year_interest = compute_interest(request.principal, request.year_of_holding)
    return response
