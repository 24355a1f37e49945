"""
Pydantic schemas for the admin dashboard and the investor portfolio view.
"""

from datetime import date
from typing import List

from pydantic import BaseModel

from irm.schemas.common import Money
from irm.schemas.investment import InvestmentResponse
from irm.schemas.investor import InvestorResponse
from irm.schemas.returns import InterestDetailsResponse
from irm.schemas.transaction import TransactionResponse


class DashboardResponse(BaseModel):
    as_of: date
    total_investors: int
    active_investors: int
    active_investments: int
    total_principal: Money
    total_bond_units: int
    todays_interest: Money


class PortfolioInvestment(BaseModel):
    investment: InvestmentResponse
    interest: InterestDetailsResponse
    transactions: List[TransactionResponse]


class PortfolioResponse(BaseModel):
    investor: InvestorResponse
    as_of: date
    total_invested: Money
    total_bond_units: int
    interest_earned_till_date: Money
    interest_disbursed_till_date: Money
    investments: List[PortfolioInvestment]
