"""
Investor repository: data access for the ``investors`` table.

Adds the email look-up used for duplicate detection and a status filter
for the admin listing.
"""

from typing import List, Optional

from sqlalchemy.future import select

from irm.models.investor import Investor, InvestorStatus
from irm.repositories.base import BaseRepository


class InvestorRepository(BaseRepository[Investor]):
    """Concrete repository for :class:`Investor` entities."""

    async def get_by_email(self, email: str) -> Optional[Investor]:
        """
        Look up an investor by email, case-insensitively.

        Checked before insert so the service can answer with a clear 409
        instead of relying on the unique constraint alone.
        """
        stmt = select(self.model).where(self.model.email == email.strip().lower())
        return await self._first(stmt)

    async def list_by_status(
        self, status: Optional[InvestorStatus] = None, skip: int = 0, limit: int = 100
    ) -> List[Investor]:
        """Investors ordered by last then first name, optionally filtered by status."""
        stmt = select(self.model)
        if status is not None:
            stmt = stmt.where(self.model.status == status)
        stmt = (
            stmt.order_by(self.model.last_name, self.model.first_name, self.model.id)
            .offset(skip)
            .limit(limit)
        )
        return await self._scalars(stmt)

    async def get_by_mobile(self, mobile: str) -> Optional[Investor]:
        stmt = select(self.model).where(self.model.primary_mobile == mobile.strip())
        return await self._first(stmt)
