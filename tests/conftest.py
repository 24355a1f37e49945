"""
Shared pytest fixtures for unit tests.

All tests run with ``USE_SQLITE=true`` and mocked dependencies so that
no real database, SMTP relay or network I/O is needed.
"""

import os

os.environ.setdefault("USE_SQLITE", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

import uuid  # noqa: E402
from datetime import date, datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from irm.models.agreement import Agreement, AgreementStatus  # noqa: E402
from irm.models.credential import InvestorCredential  # noqa: E402
from irm.models.investment import Investment, InvestmentStatus  # noqa: E402
from irm.models.investor import Investor, InvestorStatus, KycStatus  # noqa: E402
from irm.models.transaction import (  # noqa: E402
    Transaction,
    TransactionStatus,
    TransactionType,
)

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers: domain objects with sensible defaults
# ────────────────────────────────────────────────────────────────────────────

INVESTOR_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
INVESTMENT_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")
TRANSACTION_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")
AGREEMENT_ID = uuid.UUID("66666666-6666-6666-6666-666666666666")
INVESTOR_ID_2 = uuid.UUID("55555555-5555-5555-5555-555555555555")

SIGNATURE = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4nGNgYGBgAAAABQABh6FO1AAAAABJRU5ErkJggg=="


def make_investor(
    *,
    id: uuid.UUID = INVESTOR_ID,
    first_name: str = "Asha",
    last_name: str = "Verma",
    email: str = "asha.verma@example.com",
    primary_mobile: str = "9876543210",
    status: InvestorStatus = InvestorStatus.ACTIVE,
    kyc_status: KycStatus = KycStatus.VERIFIED,
) -> Investor:
    """Create an Investor domain object with sensible test defaults."""
    return Investor(
        id=id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        primary_mobile=primary_mobile,
        primary_address="12 MG Road, Pune",
        primary_address_pin="411001",
        identity_proof_type="PAN",
        identity_proof_number="ABCDE1234F",
        kyc_status=kyc_status,
        status=status,
    )


def make_investment(
    *,
    id: uuid.UUID = INVESTMENT_ID,
    investor_id: uuid.UUID = INVESTOR_ID,
    investment_date: date = date(2020, 1, 15),
    bonds_purchased: int = 1,
    status: InvestmentStatus = InvestmentStatus.ACTIVE,
) -> Investment:
    """Create an Investment; amount and dates follow the default bond plan."""
    return Investment(
        id=id,
        investor_id=investor_id,
        investment_date=investment_date,
        invested_amount=Decimal("2000000.00") * bonds_purchased,
        bonds_purchased=bonds_purchased,
        lock_in_expiry=investment_date.replace(year=investment_date.year + 3),
        maturity_date=investment_date.replace(year=investment_date.year + 10),
        status=status,
    )


def make_transaction(
    *,
    id: uuid.UUID = TRANSACTION_ID,
    investment_id: uuid.UUID = INVESTMENT_ID,
    type: TransactionType = TransactionType.INVESTMENT,
    amount: Decimal = Decimal("2000000.00"),
    transaction_date: date = date(2020, 1, 15),
    year_covered: int | None = None,
    status: TransactionStatus = TransactionStatus.COMPLETED,
    reference: str = "TXN-2020-01-15-ABCDEF12",
) -> Transaction:
    return Transaction(
        id=id,
        investment_id=investment_id,
        type=type,
        amount=amount,
        transaction_date=transaction_date,
        year_covered=year_covered,
        status=status,
        reference=reference,
    )


def make_agreement(
    *,
    id: uuid.UUID = AGREEMENT_ID,
    investor_id: uuid.UUID = INVESTOR_ID,
    status: AgreementStatus = AgreementStatus.PENDING,
    expires_in_days: int = 30,
) -> Agreement:
    now = datetime.now(timezone.utc)
    return Agreement(
        id=id,
        investor_id=investor_id,
        content="Agreement text",
        document_hash="0" * 64,
        status=status,
        sent_at=now,
        expires_at=now + timedelta(days=expires_in_days),
    )


def make_credential(
    *,
    investor_id: uuid.UUID = INVESTOR_ID,
    username: str = "asha.verma",
    password_hash: str = "",
    is_active: bool = True,
) -> InvestorCredential:
    return InvestorCredential(
        investor_id=investor_id,
        username=username,
        password_hash=password_hash,
        is_active=is_active,
    )


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def mock_db():
    """A mocked AsyncSession that tracks add/commit/refresh/rollback calls."""
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.merge = AsyncMock()
    return session


def _mock_repo():
    repo = AsyncMock()
    repo.db = AsyncMock()
    return repo


@pytest.fixture()
def investor_repo():
    return _mock_repo()


@pytest.fixture()
def invest_repo():
    return _mock_repo()


@pytest.fixture()
def transaction_repo():
    return _mock_repo()


@pytest.fixture()
def agreement_repo():
    return _mock_repo()


@pytest.fixture()
def credential_repo():
    return _mock_repo()


@pytest.fixture()
def mock_email():
    """EmailService stand-in; every send reports success."""
    email = AsyncMock()
    email.send_template.return_value = True
    email.send_email.return_value = True
    return email
