"""
Investment Relationship Management API: application entry-point.

Initializes the FastAPI application, registers middleware, exception handlers
and routers, and manages the application lifecycle:

- table creation on startup (with retry),
- optional restore from the recovery chain into an empty database,
- the periodic auto-backup and monthly report tasks.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.openapi.docs import get_redoc_html
from sqlalchemy import text

from irm.api.v1.api import api_router
from irm.core.config import settings
from irm.core.exceptions import add_exception_handlers
from irm.core.logging import setup_logging
from irm.core.resilience import db_circuit_breaker
from irm.db.session import AsyncSessionLocal, engine, init_db
from irm.middleware import RequestIDMiddleware, RequestTimingMiddleware
from irm.models.credential import InvestorCredential
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.models.transaction import Transaction
from irm.repositories.credential_repo import CredentialRepository
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.services.backup_service import BackupService
from irm.services.investor_service import InvestorService, monthly_report_due

setup_logging()
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _backup_service(session) -> BackupService:
    return BackupService(
        InvestorRepository(Investor, session),
        InvestmentRepository(Investment, session),
        TransactionRepository(Transaction, session),
    )


def _investor_service(session) -> InvestorService:
    return InvestorService(
        InvestorRepository(Investor, session),
        InvestmentRepository(Investment, session),
        TransactionRepository(Transaction, session),
        CredentialRepository(InvestorCredential, session),
    )


async def _connect_with_retry(max_retries: int = 5, retry_delay: float = 2) -> bool:
    """Create the tables, retrying with exponential back-off.  False when the DB never came up."""
    for attempt in range(1, max_retries + 1):
        try:
            logger.info("Connecting to database (attempt %d/%d)", attempt, max_retries)
            await init_db()
            logger.info("Database tables ready")
            return True
        except Exception as exc:
            if attempt == max_retries:
                logger.error(
                    "Could not connect to database after %d attempts; starting in "
                    "DEGRADED mode. Last error: %s",
                    max_retries,
                    exc,
                )
                return False
            logger.warning(
                "Database connection failed (attempt %d/%d): %s; retrying in %ss",
                attempt,
                max_retries,
                exc,
                retry_delay,
            )
            await asyncio.sleep(retry_delay)
            retry_delay *= 2
    return False


async def _recover_if_empty(app: FastAPI) -> None:
    async with AsyncSessionLocal() as session:
        if await InvestorRepository(Investor, session).count():
            return
        logger.warning("Database is empty; restoring from the recovery chain")
        await _backup_service(session).restore(app.state.last_snapshot)


async def _auto_backup(app: FastAPI, interval_minutes: int) -> None:
    """Write a backup every ``interval_minutes`` until cancelled."""
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            async with AsyncSessionLocal() as session:
                _, snapshot = await _backup_service(session).create_backup(label="auto")
            app.state.last_snapshot = snapshot
        except Exception:
            logger.exception("Auto-backup failed")


async def _monthly_reports(check_seconds: int = 3600) -> None:
    """Send the monthly reports once a month, on or after the configured day and hour."""
    last_month: Optional[Tuple[int, int]] = None
    while True:
        now = datetime.now()
        if monthly_report_due(now, last_month):
            try:
                async with AsyncSessionLocal() as session:
                    await _investor_service(session).send_monthly_reports(now.date())
                last_month = (now.year, now.month)
            except Exception:
                logger.exception("Monthly report run failed")
        await asyncio.sleep(check_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
      - Creates the tables (degraded mode when the database stays unreachable).
      - With ``RECOVER_ON_STARTUP``, restores an empty database from the
        recovery chain.
      - With ``BACKUP_INTERVAL_MINUTES > 0``, starts the auto-backup task.
      - With ``MONTHLY_REPORTS_ENABLED``, starts the monthly report task.

    Shutdown:
      - Cancels the background tasks and disposes of the connection pool.
    """
    app.state.last_snapshot = None
    db_ready = await _connect_with_retry()

    if db_ready and settings.RECOVER_ON_STARTUP:
        try:
            await _recover_if_empty(app)
        except Exception:
            logger.exception("Startup recovery failed")

    background: List[asyncio.Task] = []
    if settings.BACKUP_INTERVAL_MINUTES > 0:
        background.append(
            asyncio.create_task(_auto_backup(app, settings.BACKUP_INTERVAL_MINUTES))
        )
        logger.info("Auto-backup every %d minute(s)", settings.BACKUP_INTERVAL_MINUTES)
    if settings.MONTHLY_REPORTS_ENABLED:
        background.append(asyncio.create_task(_monthly_reports()))
        logger.info(
            "Monthly reports on day %d from %02d:00",
            settings.MONTHLY_REPORT_DAY,
            settings.MONTHLY_REPORT_HOUR,
        )

    yield

    for task in background:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    logger.info("Shutting down; disposing connection pool")
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=VERSION,
    description=(
        "Investor onboarding, bond investments, returns, agreements, "
        "transactions and disaster recovery."
    ),
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    redoc_url=None,
    lifespan=lifespan,
)


# The default cdn.redoc.ly bundle is blocked by Chrome ORB.
@app.get("/redoc", include_in_schema=False)
async def custom_redoc_html():
    return get_redoc_html(
        openapi_url=app.openapi_url or f"{settings.API_V1_STR}/openapi.json",
        title=f"{settings.PROJECT_NAME} - ReDoc",
        redoc_js_url="https://unpkg.com/redoc@latest/bundles/redoc.standalone.js",
    )


# ── Middleware (outermost = first to execute) ──
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Liveness / readiness check.

    Runs ``SELECT 1`` against the database and reports the circuit breaker
    state and whether an in-memory snapshot is held for recovery.
    """
    db_healthy = True
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        db_healthy = False

    return {
        "status": "ok" if db_healthy else "degraded",
        "version": VERSION,
        "database": db_healthy,
        "circuit_breaker": db_circuit_breaker.get_status(),
        "memory_snapshot": getattr(app.state, "last_snapshot", None) is not None,
    }
