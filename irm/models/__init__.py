"""SQLModel table models; importing this package populates the metadata."""

from irm.models.agreement import Agreement, AgreementStatus  # noqa: F401
from irm.models.credential import InvestorCredential  # noqa: F401
from irm.models.investment import Investment, InvestmentStatus  # noqa: F401
from irm.models.investor import Investor, InvestorStatus, KycStatus  # noqa: F401
from irm.models.transaction import (  # noqa: F401
    Transaction,
    TransactionMode,
    TransactionStatus,
    TransactionType,
)
