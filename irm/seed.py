"""
Seed script: loads the baseline dataset into an empty database for
development and demos.

Usage:
    python -m irm.seed

The script is idempotent: it does nothing when any investor exists.
"""

import asyncio
import logging

from sqlalchemy import func, select

from irm.db.session import AsyncSessionLocal, init_db
from irm.models.investor import Investor
from irm.services.backup_service import snapshot_rows
from irm.services.baseline import BASELINE_VERSION, baseline_snapshot

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def seed() -> None:
    """Create tables and insert the baseline if the database is empty."""
    await init_db()

    async with AsyncSessionLocal() as session:
        existing = (await session.execute(select(func.count()).select_from(Investor))).scalar_one()
        if existing:
            logger.info("Database already holds %d investors; skipping seed.", existing)
            return

        snapshot = baseline_snapshot()
        session.add_all(snapshot_rows(snapshot))
        await session.commit()

        logger.info(
            "Seeded baseline %s: %d investors, %d investments, %d transactions",
            BASELINE_VERSION,
            len(snapshot.investors),
            len(snapshot.investments),
            len(snapshot.transactions),
        )


if __name__ == "__main__":
    asyncio.run(seed())
