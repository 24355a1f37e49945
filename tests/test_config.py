"""
Unit tests for the application configuration (Settings).

Tests cover:
- Bond plan and portal defaults
- DATABASE_URL for SQLite (file and in-memory) and PostgreSQL
- PostgreSQL credential validation
- Comma-separated list settings for backup directories and log files
"""

import pytest

from irm.core.config import Settings, settings


class TestSettingsDefaults:
    def test_project_name(self):
        assert settings.PROJECT_NAME == "Investment Relationship Management API"

    def test_api_version_prefix(self):
        assert settings.API_V1_STR == "/api/v1"

    def test_bond_plan(self):
        assert settings.BOND_UNIT_VALUE == 2_000_000
        assert settings.MAX_BONDS_PER_INVESTOR == 3
        assert settings.LOCK_IN_YEARS == 3
        assert settings.MATURITY_YEARS == 10

    def test_smtp_credentials_empty_in_tests(self):
        assert settings.SMTP_USERNAME == "" and settings.SMTP_PASSWORD == ""

    def test_auto_backup_off_by_default(self):
        assert Settings(USE_SQLITE=True, _env_file=None).BACKUP_INTERVAL_MINUTES == 0

    def test_monthly_reports_off_by_default(self):
        s = Settings(USE_SQLITE=True, _env_file=None)
        assert s.MONTHLY_REPORTS_ENABLED is False
        assert (s.MONTHLY_REPORT_DAY, s.MONTHLY_REPORT_HOUR) == (1, 9)


class TestDatabaseURL:
    def test_sqlite_in_memory(self):
        s = Settings(USE_SQLITE=True, SQLITE_PATH="", _env_file=None)
        assert s.DATABASE_URL == "sqlite+aiosqlite://"

    def test_sqlite_file(self):
        s = Settings(USE_SQLITE=True, SQLITE_PATH="irm.db", _env_file=None)
        assert s.DATABASE_URL == "sqlite+aiosqlite:///irm.db"

    def test_postgres_url(self):
        s = Settings(
            USE_SQLITE=False,
            POSTGRES_USER="u",
            POSTGRES_PASSWORD="p",
            POSTGRES_SERVER="localhost",
            POSTGRES_DB="irm",
            _env_file=None,
        )
        assert s.DATABASE_URL == "postgresql+asyncpg://u:p@localhost:5432/irm"

    def test_pg_missing_credentials_raises(self, monkeypatch):
        for key in ("USE_SQLITE", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_SERVER", "POSTGRES_DB"):
            monkeypatch.delenv(key, raising=False)
        with pytest.raises(Exception, match="POSTGRES_USER"):
            Settings(USE_SQLITE=False, _env_file=None)


class TestListSettings:
    def test_backup_dirs_split_and_trimmed(self):
        s = Settings(USE_SQLITE=True, BACKUP_DIRS=" a , b,,c ", _env_file=None)
        assert s.backup_dirs == ["a", "b", "c"]

    def test_default_backup_dir_order(self):
        s = Settings(USE_SQLITE=True, _env_file=None)
        assert s.backup_dirs[0] == "data-backups"
        assert s.backup_dirs[-1] == "disaster-recovery"

    def test_recovery_log_files(self):
        s = Settings(USE_SQLITE=True, RECOVERY_LOG_FILES="x.log", _env_file=None)
        assert s.recovery_log_files == ["x.log"]
