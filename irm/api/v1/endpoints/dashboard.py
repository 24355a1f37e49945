"""
Admin dashboard endpoint.

- GET  /admin/dashboard
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.schemas.dashboard import DashboardResponse
from irm.services.dashboard_service import DashboardService

router = APIRouter()


def _get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(InvestorRepository(Investor, db), InvestmentRepository(Investment, db))


@router.get("/admin/dashboard", response_model=DashboardResponse, summary="Portfolio totals")
async def get_dashboard(
    as_of: Optional[date] = Query(None, description="Report date (default: today)"),
    service: DashboardService = Depends(_get_dashboard_service),
) -> DashboardResponse:
    return await service.get_dashboard(as_of=as_of)
