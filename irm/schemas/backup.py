"""
Pydantic schemas for backup snapshots.

A snapshot is the JSON document written to ``backup-<timestamp>.json``::

    {
        "timestamp": "2025-02-01T00:00:00Z",
        "investors": [...],
        "investments": [...],
        "transactions": [...],
        "metadata": {...}
    }

The record schemas mirror the table columns so a snapshot can be rebuilt
into ORM rows without loss.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from irm.models.investment import InvestmentStatus
from irm.models.investor import InvestorStatus, KycStatus
from irm.models.transaction import TransactionMode, TransactionStatus, TransactionType

SNAPSHOT_FORMAT_VERSION = "2.0"


class RecoveryStage(str, Enum):
    """Stages of the recovery chain, in the order they are tried."""

    DIRECTORY_SEARCH = "directory_search"
    MEMORY_SNAPSHOT = "memory_snapshot"
    LOG_RECONSTRUCTION = "log_reconstruction"
    GUARANTEED_BASELINE = "guaranteed_baseline"


class InvestorRecord(BaseModel):
    id: UUID
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    email: str
    primary_mobile: str
    secondary_mobile: Optional[str] = None
    primary_address: str
    primary_address_pin: str
    secondary_address: Optional[str] = None
    secondary_address_pin: Optional[str] = None
    identity_proof_type: str
    identity_proof_number: str
    kyc_status: KycStatus = KycStatus.PENDING
    status: InvestorStatus = InvestorStatus.ACTIVE
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvestmentRecord(BaseModel):
    id: UUID
    investor_id: UUID
    investment_date: date
    invested_amount: Decimal
    bonds_purchased: int
    lock_in_expiry: date
    maturity_date: date
    bonus_earned: Decimal = Decimal("0.00")
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionRecord(BaseModel):
    id: UUID
    investment_id: UUID
    type: TransactionType
    amount: Decimal
    transaction_date: date
    year_covered: Optional[int] = None
    interest_rate: Optional[Decimal] = None
    mode: TransactionMode = TransactionMode.BANK_TRANSFER
    reference: str
    status: TransactionStatus = TransactionStatus.COMPLETED
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SnapshotMetadata(BaseModel):
    total_investors: int
    total_investments: int
    total_transactions: int
    total_principal: Decimal
    format_version: str = SNAPSHOT_FORMAT_VERSION
    label: Optional[str] = None


class BackupSnapshot(BaseModel):
    """A point-in-time copy of investors, investments and transactions."""

    timestamp: datetime
    investors: List[InvestorRecord] = Field(default_factory=list)
    investments: List[InvestmentRecord] = Field(default_factory=list)
    transactions: List[TransactionRecord] = Field(default_factory=list)
    metadata: Optional[SnapshotMetadata] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are UTC, so snapshots always compare as datetimes."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_empty(self) -> bool:
        return not self.investors

    @classmethod
    def build(
        cls,
        investors: Sequence,
        investments: Sequence,
        transactions: Sequence,
        timestamp: Optional[datetime] = None,
        label: Optional[str] = None,
    ) -> "BackupSnapshot":
        """Build a snapshot (and its metadata) from ORM rows or records."""
        investor_records = [InvestorRecord.model_validate(i) for i in investors]
        investment_records = [InvestmentRecord.model_validate(i) for i in investments]
        transaction_records = [TransactionRecord.model_validate(t) for t in transactions]
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            investors=investor_records,
            investments=investment_records,
            transactions=transaction_records,
            metadata=SnapshotMetadata(
                total_investors=len(investor_records),
                total_investments=len(investment_records),
                total_transactions=len(transaction_records),
                total_principal=sum(
                    (i.invested_amount for i in investment_records), Decimal("0")
                ),
                label=label,
            ),
        )


# ── API response schemas ──


class BackupInfo(BaseModel):
    filename: str
    timestamp: Optional[datetime]
    size_bytes: int


class BackupCreated(BaseModel):
    filename: str
    path: str
    timestamp: datetime
    investors: int
    investments: int
    transactions: int


class LogEvidenceResponse(BaseModel):
    source: str
    investors: Optional[int] = None
    investments: Optional[int] = None
    transactions: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class RecoveryReport(BaseModel):
    """What the recovery chain produced, without the records themselves."""

    stage: RecoveryStage
    source: str
    snapshot_timestamp: datetime
    investors_recovered: int
    investments_recovered: int
    transactions_recovered: int
    attempts: List[str]
    log_evidence: Optional[LogEvidenceResponse] = None
    restored: bool = False
