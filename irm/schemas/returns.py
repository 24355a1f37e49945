"""
Pydantic schemas for the returns and interest endpoints.

The response models read straight from the calculator's dataclasses via
``from_attributes``.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from irm.schemas.common import Money


class RateEntry(BaseModel):
    year: int
    rate: Money


class RatesResponse(BaseModel):
    """``GET /returns/rates``: the rate ladder and milestone bonus years."""

    rates: List[RateEntry]
    top_rate: Money
    top_rate_from_year: int
    milestone_bonus_years: List[int]
    term_years: int


class ReturnsCalculateRequest(BaseModel):
    principal: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2, examples=[2000000])
    term_years: int = Field(default=10, ge=1, le=50)
    year_of_holding: Optional[int] = Field(
        default=None, description="Also return the interest for this single year"
    )


class YearlyReturnResponse(BaseModel):
    year: int
    rate: Money
    dividend: Money
    bonus: Money
    total: Money

    model_config = ConfigDict(from_attributes=True)


class ReturnsProjectionResponse(BaseModel):
    principal: Money
    yearly_breakdown: List[YearlyReturnResponse]
    total_dividends: Money
    total_bonuses: Money
    maturity_value: Money
    year_interest: Optional[Money] = None

    model_config = ConfigDict(from_attributes=True)


class NextDisbursementResponse(BaseModel):
    year_covered: int
    amount: Money
    disbursement_date: date

    model_config = ConfigDict(from_attributes=True)


class InterestDetailsResponse(BaseModel):
    completed_years: int
    current_year: int
    current_rate: Money
    current_year_progress: Money
    interest_earned_till_date: Money
    interest_disbursed_till_date: Money
    interest_due_till_date: Money
    next_disbursement: Optional[NextDisbursementResponse]

    model_config = ConfigDict(from_attributes=True)
