"""
Agreement repository: data access for the ``agreements`` table.
"""

from typing import List
from uuid import UUID

from sqlalchemy.future import select

from irm.models.agreement import Agreement
from irm.repositories.base import BaseRepository


class AgreementRepository(BaseRepository[Agreement]):
    """Concrete repository for :class:`Agreement` entities."""

    async def get_by_investor(self, investor_id: UUID) -> List[Agreement]:
        """Agreements of one investor, newest first."""
        stmt = (
            select(self.model)
            .where(self.model.investor_id == investor_id)
            .order_by(self.model.created_at.desc(), self.model.id)
        )
        return await self._scalars(stmt)
