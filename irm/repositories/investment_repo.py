"""
Investment repository: data access for the ``investments`` table.
"""

from typing import List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.future import select

from irm.models.investment import Investment, InvestmentStatus
from irm.repositories.base import BaseRepository


class InvestmentRepository(BaseRepository[Investment]):
    """Concrete repository for :class:`Investment` entities."""

    async def get_by_investor(
        self, investor_id: UUID, skip: int = 0, limit: int = 100
    ) -> List[Investment]:
        """
        Investments of one investor, most recent first.

        ``ix_investments_investor_date`` covers both the filter and the sort.
        """
        stmt = (
            select(self.model)
            .where(self.model.investor_id == investor_id)
            .order_by(self.model.investment_date.desc(), self.model.id)
            .offset(skip)
            .limit(limit)
        )
        return await self._scalars(stmt)

    async def total_bonds_for_investor(self, investor_id: UUID) -> int:
        """Bond units the investor holds across all investments."""

        async def _total() -> int:
            stmt = select(func.coalesce(func.sum(self.model.bonds_purchased), 0)).where(
                self.model.investor_id == investor_id
            )
            result = await self.db.execute(stmt)
            return int(result.scalar_one())

        return await self._execute_with_circuit_breaker(_total)

    async def list_by_status(self, status: InvestmentStatus) -> List[Investment]:
        stmt = (
            select(self.model)
            .where(self.model.status == status)
            .order_by(self.model.investment_date, self.model.id)
        )
        return await self._scalars(stmt)
