"""
Snapshot files and the four-stage recovery chain.

Snapshots are written as ``backup-<YYYY-MM-DDTHH-MM-SS-mmmZ>.json`` into a
backup directory.  Recovery tries, in order:

1. **Directory search**: each configured directory in turn; within a
   directory every ``backup-*.json`` is parsed and the one with the latest
   embedded ``timestamp`` wins (the filename timestamp is used only when the
   document has none).  The first directory holding a usable snapshot ends
   the search.
2. **Memory snapshot**: the last snapshot this process created, passed in
   by the caller.
3. **Log reconstruction**: counts from ``Backed up: ...`` and
   ``Restored ...`` lines in the configured log files.  Counts are evidence
   only; records cannot be rebuilt from them, so the chain always moves on.
4. **Guaranteed baseline**: the fixed dataset in :mod:`irm.services.baseline`.

A snapshot is *usable* when it parses and holds at least one investor.
``RecoveryChain.recover`` never raises; each stage failure is logged and
recorded in ``RecoveryResult.attempts``.
"""

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from irm.schemas.backup import BackupInfo, BackupSnapshot, RecoveryStage
from irm.services.baseline import baseline_snapshot

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BACKUP_GLOB = "backup-*.json"
FILENAME_TS_RE = re.compile(
    r"backup-(\d{4})-(\d{2})-(\d{2})T(\d{2})-(\d{2})-(\d{2})(?:-(\d{3}))?Z?\.json$"
)
COUNT_LINE_RE = re.compile(
    r"Backed up: (\d+) investors?(?:, (\d+) investments?)?(?:, (\d+) transactions?)?"
    r"|Restored (\d+) investors?"
)


# ────────────────────────────────────────────────────────────────────────────
# Snapshot files
# ────────────────────────────────────────────────────────────────────────────


def backup_filename(timestamp: datetime) -> str:
    """``backup-2025-02-01T00-00-00-000Z.json`` for a UTC timestamp."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    ts = timestamp.astimezone(timezone.utc)
    return f"backup-{ts:%Y-%m-%dT%H-%M-%S}-{ts.microsecond // 1000:03d}Z.json"


def timestamp_from_filename(name: str) -> Optional[datetime]:
    match = FILENAME_TS_RE.search(name)
    if not match:
        return None
    year, month, day, hour, minute, second, millis = match.groups()
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int(millis or 0) * 1000,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def write_snapshot(snapshot: BackupSnapshot, directory: PathLike) -> Path:
    """
    Write ``snapshot`` into ``directory`` and return the file path.

    The JSON goes to a temporary file in the same directory first and is
    then renamed into place, so readers never see a half-written backup.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / backup_filename(snapshot.timestamp)

    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".backup-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(snapshot.model_dump_json(indent=2))
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return target


def read_snapshot(path: PathLike) -> BackupSnapshot:
    """
    Parse one snapshot file.

    Raises ``OSError`` when unreadable and ``ValueError`` (including
    pydantic's ``ValidationError``) when the content is not a snapshot.
    """
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: snapshot must be a JSON object")
    if not data.get("timestamp"):
        fallback = timestamp_from_filename(path.name)
        if fallback is None:
            raise ValueError(f"{path.name}: no timestamp in document or filename")
        data["timestamp"] = fallback.isoformat()
    return BackupSnapshot.model_validate(data)


def find_latest_snapshot(directory: PathLike) -> Optional[Tuple[Path, BackupSnapshot]]:
    """The usable snapshot with the latest timestamp in ``directory``, if any."""
    directory = Path(directory)
    if not directory.is_dir():
        return None

    best: Optional[Tuple[Path, BackupSnapshot]] = None
    for path in sorted(directory.glob(BACKUP_GLOB)):
        try:
            snapshot = read_snapshot(path)
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable backup %s: %s", path, exc)
            continue
        if snapshot.is_empty:
            logger.info("Skipping empty backup %s", path)
            continue
        if best is None or snapshot.timestamp > best[1].timestamp:
            best = (path, snapshot)
    return best


def list_snapshots(directory: PathLike) -> List[BackupInfo]:
    """Backup files in ``directory``, newest first by filename timestamp."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    infos = []
    for path in directory.glob(BACKUP_GLOB):
        try:
            stat = path.stat()
        except FileNotFoundError:
            # removed between the glob and the stat
            continue
        timestamp = timestamp_from_filename(path.name) or datetime.fromtimestamp(
            stat.st_mtime, tz=timezone.utc
        )
        infos.append(BackupInfo(filename=path.name, timestamp=timestamp, size_bytes=stat.st_size))
    infos.sort(key=lambda info: info.timestamp, reverse=True)
    return infos


# ────────────────────────────────────────────────────────────────────────────
# Recovery chain
# ────────────────────────────────────────────────────────────────────────────


@dataclass
class LogEvidence:
    source: str
    investors: Optional[int] = None
    investments: Optional[int] = None
    transactions: Optional[int] = None


@dataclass
class RecoveryResult:
    stage: RecoveryStage
    source: str
    snapshot: BackupSnapshot
    attempts: List[str] = field(default_factory=list)
    log_evidence: Optional[LogEvidence] = None

    @property
    def investors_recovered(self) -> int:
        return len(self.snapshot.investors)


def scan_logs(log_files: Sequence[PathLike]) -> Optional[LogEvidence]:
    """
    Counts from the most recent ``Backed up:`` or ``Restored`` line of the
    first log file that has one.
    """
    for log_file in log_files:
        path = Path(log_file)
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Cannot read log %s: %s", path, exc)
            continue
        last = None
        for last in COUNT_LINE_RE.finditer(text):
            pass
        if last is None:
            continue
        backed_up, investments, transactions, restored = last.groups()
        return LogEvidence(
            source=str(path),
            investors=int(backed_up or restored),
            investments=int(investments) if investments else None,
            transactions=int(transactions) if transactions else None,
        )
    return None


class RecoveryChain:
    """
    Ordered fallback over backup directories, the in-process snapshot, log
    evidence and the baseline dataset.
    """

    def __init__(
        self,
        backup_dirs: Sequence[PathLike],
        log_files: Sequence[PathLike] = (),
        baseline_factory: Callable[[], BackupSnapshot] = baseline_snapshot,
    ):
        self.backup_dirs = [Path(d) for d in backup_dirs]
        self.log_files = [Path(f) for f in log_files]
        self.baseline_factory = baseline_factory

    def _directory_search(self, attempts: List[str]) -> Optional[RecoveryResult]:
        for directory in self.backup_dirs:
            found = find_latest_snapshot(directory)
            if found is None:
                attempts.append(
                    f"{RecoveryStage.DIRECTORY_SEARCH.value}: nothing usable in {directory}"
                )
                continue
            path, snapshot = found
            return RecoveryResult(
                stage=RecoveryStage.DIRECTORY_SEARCH, source=str(path), snapshot=snapshot
            )
        return None

    def _memory_snapshot(
        self, memory_snapshot: Optional[BackupSnapshot], attempts: List[str]
    ) -> Optional[RecoveryResult]:
        if memory_snapshot is None or memory_snapshot.is_empty:
            attempts.append(f"{RecoveryStage.MEMORY_SNAPSHOT.value}: no snapshot in memory")
            return None
        return RecoveryResult(
            stage=RecoveryStage.MEMORY_SNAPSHOT, source="memory", snapshot=memory_snapshot
        )

    def _log_reconstruction(self, attempts: List[str]) -> Optional[LogEvidence]:
        evidence = scan_logs(self.log_files)
        if evidence is None:
            attempts.append(f"{RecoveryStage.LOG_RECONSTRUCTION.value}: no backup lines in logs")
        else:
            attempts.append(
                f"{RecoveryStage.LOG_RECONSTRUCTION.value}: {evidence.source} reports "
                f"{evidence.investors} investors; records not recoverable from logs"
            )
        return evidence

    def recover(self, memory_snapshot: Optional[BackupSnapshot] = None) -> RecoveryResult:
        """Run the chain and return the first usable dataset."""
        attempts: List[str] = []

        try:
            result = self._directory_search(attempts)
        except Exception as exc:
            logger.exception("Directory search failed")
            attempts.append(f"{RecoveryStage.DIRECTORY_SEARCH.value}: error {exc}")
            result = None
        if result is None:
            result = self._memory_snapshot(memory_snapshot, attempts)

        evidence = None
        if result is None:
            try:
                evidence = self._log_reconstruction(attempts)
            except Exception as exc:
                logger.exception("Log reconstruction failed")
                attempts.append(f"{RecoveryStage.LOG_RECONSTRUCTION.value}: error {exc}")
            result = RecoveryResult(
                stage=RecoveryStage.GUARANTEED_BASELINE,
                source="baseline",
                snapshot=self.baseline_factory(),
            )

        result.attempts = attempts
        result.log_evidence = evidence
        logger.info(
            "Recovery via %s from %s: %d investors",
            result.stage.value,
            result.source,
            result.investors_recovered,
        )
        return result
