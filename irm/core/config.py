"""
Application configuration module.

Loads settings from environment variables (or .env file) using pydantic-settings.
Credentials for PostgreSQL and the SMTP relay come from the environment and
are never hardcoded.
"""

from decimal import Decimal
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the IRM service.

    Environment variables are loaded automatically from .env if present.
    List-valued settings (``BACKUP_DIRS``, ``RECOVERY_LOG_FILES``) are
    comma-separated strings so they can be set from a plain shell export.
    """

    PROJECT_NAME: str = "Investment Relationship Management API"
    API_V1_STR: str = "/api/v1"

    # ── SQLite mode (no external DB required) ──
    USE_SQLITE: bool = False
    # Empty path means an in-memory database shared through StaticPool.
    SQLITE_PATH: str = ""

    # ── PostgreSQL connection parameters ──
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = ""
    POSTGRES_DB: str = ""
    POSTGRES_PORT: int = 5432

    @model_validator(mode="after")
    def _require_pg_credentials_unless_sqlite(self) -> "Settings":
        """Fail fast if PostgreSQL credentials are missing in production mode."""
        if not self.USE_SQLITE:
            missing = [
                name
                for name in (
                    "POSTGRES_USER",
                    "POSTGRES_PASSWORD",
                    "POSTGRES_SERVER",
                    "POSTGRES_DB",
                )
                if not getattr(self, name)
            ]
            if missing:
                vars_list = ", ".join(missing)
                raise ValueError(
                    f"PostgreSQL mode requires these environment variables: "
                    f"{vars_list}.\n\n"
                    f"Either set them (in .env or the environment):\n"
                    f"       POSTGRES_USER=irm_user\n"
                    f"       POSTGRES_PASSWORD=irm_password\n"
                    f"       POSTGRES_SERVER=127.0.0.1\n"
                    f"       POSTGRES_DB=irm_db\n\n"
                    f"or run against SQLite instead:\n"
                    f"       USE_SQLITE=true uvicorn irm.main:app"
                )
        return self

    # ── Connection pool tuning ──
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30  # seconds to wait for a connection from the pool
    DB_POOL_RECYCLE: int = 1800  # seconds before a connection is recycled

    # ── CORS ──
    CORS_ORIGINS: str = "*"

    # ── Logging ──
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5

    # ── Circuit breaker (database) ──
    CB_FAILURE_THRESHOLD: int = 5
    CB_RECOVERY_TIMEOUT: float = 30.0

    # ── Bond plan ──
    BOND_UNIT_VALUE: Decimal = Decimal("2000000.00")
    MAX_BONDS_PER_INVESTOR: int = 3
    LOCK_IN_YEARS: int = 3
    MATURITY_YEARS: int = 10

    # ── Company / portal ──
    COMPANY_NAME: str = "Investment Relationship Management System"
    SUPPORT_EMAIL: str = "support@irm.example.com"
    ADMIN_EMAIL: str = "admin@irm.example.com"
    INVESTOR_PORTAL_URL: str = "http://localhost:5000/login"
    ADMIN_PORTAL_URL: str = "http://localhost:5000/admin"
    AGREEMENT_BASE_URL: str = "http://localhost:5000/agreement/sign"

    # ── SMTP relay ──
    # With no SMTP_USERNAME the email service logs messages instead of sending.
    SMTP_HOST: str = "mail.smtp2go.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_TIMEOUT: float = 10.0
    SMTP_MAX_RETRIES: int = 2
    EMAIL_FROM: str = "noreply@irm.example.com"
    EMAIL_FROM_NAME: str = "IRM System"

    # ── Agreements & credentials ──
    AGREEMENT_EXPIRY_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # ── Backup & recovery ──
    BACKUP_DIRS: str = "data-backups,permanent-backups,emergency-backups,disaster-recovery"
    RECOVERY_LOG_FILES: str = "logs/irm.log,app.log,server.log,backup.log"
    BACKUP_INTERVAL_MINUTES: int = 0  # 0 disables the periodic auto-backup
    RECOVER_ON_STARTUP: bool = False

    # ── Monthly reports ──
    MONTHLY_REPORTS_ENABLED: bool = False
    MONTHLY_REPORT_DAY: int = 1
    MONTHLY_REPORT_HOUR: int = 9

    @property
    def DATABASE_URL(self) -> str:
        """Construct the async database DSN."""
        if self.USE_SQLITE:
            if self.SQLITE_PATH:
                return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"
            return "sqlite+aiosqlite://"
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def backup_dirs(self) -> List[str]:
        """Candidate backup directories, in order of preference."""
        return [d.strip() for d in self.BACKUP_DIRS.split(",") if d.strip()]

    @property
    def recovery_log_files(self) -> List[str]:
        return [f.strip() for f in self.RECOVERY_LOG_FILES.split(",") if f.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
