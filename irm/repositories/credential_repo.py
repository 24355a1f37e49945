"""
Credential repository: data access for ``investor_credentials``.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.future import select

from irm.models.credential import InvestorCredential
from irm.models.investor import Investor
from irm.repositories.base import BaseRepository


class CredentialRepository(BaseRepository[InvestorCredential]):
    """Concrete repository for :class:`InvestorCredential` entities."""

    async def get_by_investor(self, investor_id: UUID) -> Optional[InvestorCredential]:
        stmt = select(self.model).where(self.model.investor_id == investor_id)
        return await self._first(stmt)

    async def get_by_username(self, username: str) -> Optional[InvestorCredential]:
        stmt = select(self.model).where(self.model.username == username)
        return await self._first(stmt)

    async def get_by_identifier(self, identifier: str) -> Optional[InvestorCredential]:
        """Resolve a login identifier that is either a username or an email."""
        identifier = identifier.strip().lower()
        stmt = (
            select(self.model)
            .join(Investor, Investor.id == self.model.investor_id)
            .where(
                or_(
                    func.lower(self.model.username) == identifier,
                    func.lower(Investor.email) == identifier,
                )
            )
        )
        return await self._first(stmt)
