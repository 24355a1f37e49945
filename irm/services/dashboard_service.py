"""
Admin dashboard figures.

"Today's interest" is the sum over active investments of one day's share of
the current holding year's interest (see ``daily_interest``).  Investments
past their term contribute nothing.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from irm.core.config import settings
from irm.models.investment import InvestmentStatus
from irm.models.investor import InvestorStatus
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.schemas.dashboard import DashboardResponse
from irm.services.returns_calculator import daily_interest, year_of_holding


class DashboardService:
    def __init__(self, investor_repo: InvestorRepository, invest_repo: InvestmentRepository):
        self._investor_repo = investor_repo
        self._invest_repo = invest_repo

    async def get_dashboard(self, as_of: Optional[date] = None) -> DashboardResponse:
        as_of = as_of or date.today()
        investors = await self._investor_repo.list_all()
        active = await self._invest_repo.list_by_status(InvestmentStatus.ACTIVE)

        todays_interest = Decimal("0")
        for investment in active:
            if investment.investment_date > as_of:
                continue
            year = year_of_holding(investment.investment_date, as_of)
            if year <= settings.MATURITY_YEARS:
                todays_interest += daily_interest(investment.invested_amount, year)

        return DashboardResponse(
            as_of=as_of,
            total_investors=len(investors),
            active_investors=sum(1 for i in investors if i.status == InvestorStatus.ACTIVE),
            active_investments=len(active),
            total_principal=sum((i.invested_amount for i in active), Decimal("0")),
            total_bond_units=sum(i.bonds_purchased for i in active),
            todays_interest=todays_interest,
        )
