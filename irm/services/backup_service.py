"""
Backup service: writes snapshots of the database and restores from the
recovery chain.

File I/O and the (synchronous) recovery chain run in a worker thread via
``asyncio.to_thread`` so the event loop keeps serving requests.

The ``Backed up: ...`` and ``Restored ...`` log lines are read back by the
chain's log-reconstruction stage; keep their wording stable.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError

from irm.core.config import settings
from irm.core.exceptions import ConflictException
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.models.transaction import Transaction
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.backup import BackupInfo, BackupSnapshot
from irm.services.recovery import (
    RecoveryChain,
    RecoveryResult,
    list_snapshots,
    write_snapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_DIR = "data-backups"


def snapshot_rows(snapshot: BackupSnapshot) -> List:
    """ORM rows rebuilt from a snapshot, parents before children."""
    rows: List = [Investor(**r.model_dump()) for r in snapshot.investors]
    rows += [Investment(**r.model_dump()) for r in snapshot.investments]
    rows += [Transaction(**r.model_dump()) for r in snapshot.transactions]
    return rows


class BackupService:
    def __init__(
        self,
        investor_repo: InvestorRepository,
        invest_repo: InvestmentRepository,
        transaction_repo: TransactionRepository,
        backup_dirs: Optional[Sequence[str]] = None,
        log_files: Optional[Sequence[str]] = None,
    ):
        self._investor_repo = investor_repo
        self._invest_repo = invest_repo
        self._transaction_repo = transaction_repo
        self.backup_dirs = list(backup_dirs if backup_dirs is not None else settings.backup_dirs)
        self.log_files = list(
            log_files if log_files is not None else settings.recovery_log_files
        )

    @property
    def primary_dir(self) -> Path:
        return Path(self.backup_dirs[0] if self.backup_dirs else DEFAULT_BACKUP_DIR)

    async def take_snapshot(self, label: Optional[str] = None) -> BackupSnapshot:
        investors = await self._investor_repo.list_all()
        investments = await self._invest_repo.list_all()
        transactions = await self._transaction_repo.list_all()
        return BackupSnapshot.build(investors, investments, transactions, label=label)

    async def create_backup(self, label: Optional[str] = None) -> Tuple[Path, BackupSnapshot]:
        """
        Snapshot the database into the primary backup directory.

        The snapshot is returned as well so the caller can keep it as the
        in-memory fallback for the recovery chain.
        """
        snapshot = await self.take_snapshot(label)
        path = await asyncio.to_thread(write_snapshot, snapshot, self.primary_dir)
        logger.info(
            "Backed up: %d investors, %d investments, %d transactions -> %s",
            len(snapshot.investors),
            len(snapshot.investments),
            len(snapshot.transactions),
            path,
        )
        return path, snapshot

    async def list_backups(self) -> List[BackupInfo]:
        return await asyncio.to_thread(list_snapshots, self.primary_dir)

    def chain(self) -> RecoveryChain:
        return RecoveryChain(self.backup_dirs, self.log_files)

    async def recover(self, memory_snapshot: Optional[BackupSnapshot] = None) -> RecoveryResult:
        """Run the recovery chain without touching the database."""
        return await asyncio.to_thread(self.chain().recover, memory_snapshot)

    async def restore(self, memory_snapshot: Optional[BackupSnapshot] = None) -> RecoveryResult:
        """
        Load the recovery chain's dataset into an empty database.

        Refused with 409 when any investor exists; restoring never merges
        into live data.
        """
        existing = await self._investor_repo.count()
        if existing:
            raise ConflictException(
                f"Restore needs an empty database; {existing} investor(s) already exist"
            )

        result = await self.recover(memory_snapshot)
        try:
            await self._investor_repo.add_all(snapshot_rows(result.snapshot))
        except IntegrityError as exc:
            await self._investor_repo.db.rollback()
            logger.error("Restore from %s failed: %s", result.source, exc)
            raise ConflictException(f"Restore from {result.source} violated a constraint")

        logger.info(
            "Restored %d investors, %d investments, %d transactions via %s (%s)",
            len(result.snapshot.investors),
            len(result.snapshot.investments),
            len(result.snapshot.transactions),
            result.stage.value,
            result.source,
        )
        return result
