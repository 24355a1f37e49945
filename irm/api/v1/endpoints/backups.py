"""
Backup and recovery endpoints.

- GET   /backups           Backups in the primary directory, newest first
- POST  /backups           Write a new backup
- POST  /backups/recover   Dry run: report what the recovery chain would load
- POST  /backups/restore   Load the recovered dataset into an empty database

The last snapshot written by this process is kept on ``app.state`` and
offered to the recovery chain as its in-memory stage.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.models.transaction import Transaction
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.backup import (
    BackupCreated,
    BackupInfo,
    BackupSnapshot,
    LogEvidenceResponse,
    RecoveryReport,
)
from irm.schemas.common import ErrorResponse
from irm.services.backup_service import BackupService
from irm.services.recovery import RecoveryResult

router = APIRouter()


def _get_backup_service(db: AsyncSession = Depends(get_db)) -> BackupService:
    return BackupService(
        InvestorRepository(Investor, db),
        InvestmentRepository(Investment, db),
        TransactionRepository(Transaction, db),
    )


def _memory_snapshot(request: Request) -> Optional[BackupSnapshot]:
    return getattr(request.app.state, "last_snapshot", None)


def _report(result: RecoveryResult, restored: bool) -> RecoveryReport:
    return RecoveryReport(
        stage=result.stage,
        source=result.source,
        snapshot_timestamp=result.snapshot.timestamp,
        investors_recovered=len(result.snapshot.investors),
        investments_recovered=len(result.snapshot.investments),
        transactions_recovered=len(result.snapshot.transactions),
        attempts=result.attempts,
        log_evidence=(
            LogEvidenceResponse.model_validate(result.log_evidence)
            if result.log_evidence
            else None
        ),
        restored=restored,
    )


@router.get("", response_model=List[BackupInfo], summary="List backups")
async def list_backups(
    service: BackupService = Depends(_get_backup_service),
) -> List[BackupInfo]:
    return await service.list_backups()


@router.post("", response_model=BackupCreated, status_code=201, summary="Create a backup")
async def create_backup(
    request: Request,
    service: BackupService = Depends(_get_backup_service),
) -> BackupCreated:
    path, snapshot = await service.create_backup()
    request.app.state.last_snapshot = snapshot
    return BackupCreated(
        filename=path.name,
        path=str(path),
        timestamp=snapshot.timestamp,
        investors=len(snapshot.investors),
        investments=len(snapshot.investments),
        transactions=len(snapshot.transactions),
    )


@router.post(
    "/recover",
    response_model=RecoveryReport,
    summary="Dry-run the recovery chain",
    description="Reports which stage would supply data and how much, without writing anything.",
)
async def recover(
    request: Request,
    service: BackupService = Depends(_get_backup_service),
) -> RecoveryReport:
    result = await service.recover(_memory_snapshot(request))
    return _report(result, restored=False)


@router.post(
    "/restore",
    response_model=RecoveryReport,
    summary="Restore into an empty database",
    responses={409: {"model": ErrorResponse, "description": "Database is not empty"}},
)
async def restore(
    request: Request,
    service: BackupService = Depends(_get_backup_service),
) -> RecoveryReport:
    result = await service.restore(_memory_snapshot(request))
    return _report(result, restored=True)
