"""
Transaction repository: data access for the append-only ``transactions`` table.

Rows are never updated or deleted; ``BaseRepository.update``
is never called for transactions.
"""

from typing import List, Set
from uuid import UUID

from sqlalchemy.future import select

from irm.models.transaction import Transaction, TransactionStatus, TransactionType
from irm.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Concrete repository for :class:`Transaction` entities."""

    async def get_by_investment(self, investment_id: UUID) -> List[Transaction]:
        """Transactions of one investment in date order (oldest first)."""
        stmt = (
            select(self.model)
            .where(self.model.investment_id == investment_id)
            .order_by(self.model.transaction_date, self.model.created_at, self.model.id)
        )
        return await self._scalars(stmt)

    async def years_covered(self, investment_id: UUID, type_: TransactionType) -> Set[int]:
        """Holding years already paid out for ``investment_id`` with this type."""
        stmt = select(self.model).where(
            self.model.investment_id == investment_id,
            self.model.type == type_,
            self.model.status != TransactionStatus.FAILED,
            self.model.year_covered.is_not(None),
        )
        rows = await self._scalars(stmt)
        return {row.year_covered for row in rows}

    async def list_by_type(self, type_: TransactionType) -> List[Transaction]:
        stmt = (
            select(self.model)
            .where(self.model.type == type_)
            .order_by(self.model.transaction_date, self.model.id)
        )
        return await self._scalars(stmt)
