"""
Unit tests for BackupService: writing backups, restore into an empty
database, and the log lines the recovery chain reads back.
"""

import logging

import pytest

from irm.core.exceptions import ConflictException
from irm.schemas.backup import RecoveryStage
from irm.services.backup_service import BackupService, snapshot_rows
from irm.services.baseline import baseline_snapshot
from irm.services.recovery import scan_logs

from .conftest import make_investment, make_investor, make_transaction


@pytest.fixture()
def service(tmp_path, investor_repo, invest_repo, transaction_repo):
    investor_repo.list_all.return_value = [make_investor()]
    invest_repo.list_all.return_value = [make_investment()]
    transaction_repo.list_all.return_value = [make_transaction()]
    return BackupService(
        investor_repo,
        invest_repo,
        transaction_repo,
        backup_dirs=[str(tmp_path / "data-backups"), str(tmp_path / "permanent-backups")],
        log_files=[str(tmp_path / "app.log")],
    )


class TestCreateBackup:
    @pytest.mark.asyncio
    async def test_writes_to_primary_directory(self, service, tmp_path):
        path, snapshot = await service.create_backup(label="manual")

        assert path.parent == tmp_path / "data-backups"
        assert path.exists()
        assert snapshot.metadata.label == "manual"
        assert len(snapshot.investors) == 1

        backups = await service.list_backups()
        assert [b.filename for b in backups] == [path.name]

    @pytest.mark.asyncio
    async def test_log_line_readable_by_recovery(self, service, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="irm.services.backup_service"):
            await service.create_backup()

        log = tmp_path / "app.log"
        log.write_text(caplog.text)
        evidence = scan_logs([log])
        assert (evidence.investors, evidence.investments, evidence.transactions) == (1, 1, 1)


class TestRecoverAndRestore:
    @pytest.mark.asyncio
    async def test_recover_finds_written_backup(self, service):
        path, _ = await service.create_backup()

        result = await service.recover()

        assert result.stage == RecoveryStage.DIRECTORY_SEARCH
        assert result.source == str(path)

    @pytest.mark.asyncio
    async def test_restore_refused_when_not_empty(self, service, investor_repo):
        investor_repo.count.return_value = 3
        with pytest.raises(ConflictException):
            await service.restore()
        investor_repo.add_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_restore_baseline_into_empty_database(self, service, investor_repo, caplog):
        investor_repo.count.return_value = 0

        with caplog.at_level(logging.INFO, logger="irm.services.backup_service"):
            result = await service.restore()

        assert result.stage == RecoveryStage.GUARANTEED_BASELINE
        rows = investor_repo.add_all.await_args.args[0]
        assert len(rows) == 41 * 3
        assert "Restored 41 investors" in caplog.text


def test_snapshot_rows_parents_first():
    rows = snapshot_rows(baseline_snapshot())
    kinds = [type(r).__name__ for r in rows]
    assert kinds.index("Investment") > kinds.index("Investor")
    assert kinds.index("Transaction") > max(i for i, k in enumerate(kinds) if k == "Investment")
