"""
Generic async repository (data-access layer).

Concrete repositories inherit ``BaseRepository[T]`` and add entity-specific
queries.  Notes on behaviour shared by all of them:

- Every call goes through ``db_circuit_breaker``, so a database outage
  fails fast with ``CircuitBreakerError`` instead of piling up timeouts.
- **IntegrityError** propagates.  Services turn it into the domain error
  that fits (duplicate email → 409, missing investor → 404, ...).
- **OperationalError** rolls the session back before re-raising, so a
  dropped connection never leaves a dirty session behind.
"""

import logging
from typing import Any, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlmodel import SQLModel

from irm.core.resilience import db_circuit_breaker

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    CRUD repository for one SQLModel table.

    Parameters
    ----------
    model : Type[ModelType]
        The SQLModel class this repository manages.
    db : AsyncSession
        The request-scoped async session.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def _execute_with_circuit_breaker(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        return await db_circuit_breaker.call(func, *args, **kwargs)

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except OperationalError:
            await self.db.rollback()
            logger.error("OperationalError during %s for %s", action, self.model.__name__)
            raise

    async def _scalars(self, stmt: Any) -> List[ModelType]:
        async def _run() -> List[ModelType]:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._execute_with_circuit_breaker(_run)

    async def _first(self, stmt: Any) -> Optional[ModelType]:
        async def _run() -> Optional[ModelType]:
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._execute_with_circuit_breaker(_run)

    async def get(self, id: Any) -> Optional[ModelType]:
        """Fetch one entity by primary key, or ``None``."""

        async def _get() -> Optional[ModelType]:
            return await self.db.get(self.model, id)

        return await self._execute_with_circuit_breaker(_get)

    async def list_all(self) -> List[ModelType]:
        """Every row, ordered by primary key.  Used for backups and exports."""
        pk_columns = self.model.__table__.primary_key.columns
        return await self._scalars(select(self.model).order_by(*pk_columns))

    async def create(self, obj_in: ModelType) -> ModelType:
        """Insert ``obj_in``, commit and return the refreshed instance."""

        async def _create() -> ModelType:
            self.db.add(obj_in)
            await self._commit("create")
            await self.db.refresh(obj_in)
            return obj_in

        return await self._execute_with_circuit_breaker(_create)

    async def add_all(self, entities: Iterable[SQLModel]) -> List[SQLModel]:
        """
        Insert several rows, possibly of different tables, in one commit.

        The unit of work orders inserts by foreign-key dependency, so parent
        and child rows can be passed in any order.
        """
        entities = list(entities)

        async def _add_all() -> List[SQLModel]:
            self.db.add_all(entities)
            await self._commit("bulk insert")
            for entity in entities:
                await self.db.refresh(entity)
            return entities

        return await self._execute_with_circuit_breaker(_add_all)

    async def update(self, entity: ModelType) -> ModelType:
        """Persist changes the caller has already made to ``entity``."""

        async def _update() -> ModelType:
            merged = await self.db.merge(entity)
            await self._commit("update")
            await self.db.refresh(merged)
            return merged

        return await self._execute_with_circuit_breaker(_update)

    async def count(self) -> int:
        async def _count() -> int:
            stmt = select(func.count()).select_from(self.model)
            result = await self.db.execute(stmt)
            return result.scalar_one()

        return await self._execute_with_circuit_breaker(_count)
