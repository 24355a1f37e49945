"""
Investment service: business logic for bond purchases.

Business rules:

- The amount is derived, never sent: ``bonds_purchased * BOND_UNIT_VALUE``.
- An investor may hold at most ``MAX_BONDS_PER_INVESTOR`` units in total.
- Only *Active* investors can buy.
- Lock-in expiry and maturity date are fixed at purchase time.
- Every purchase writes its ``investment`` transaction in the same commit.
- *Active* → *Matured* is one-way and allowed only once the maturity date
  has passed.
"""

import logging
import secrets
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from irm.core.config import settings
from irm.core.exceptions import (
    BusinessRuleViolation,
    ConflictException,
    NotFoundException,
)
from irm.models.investment import Investment, InvestmentStatus
from irm.models.investor import Investor, InvestorStatus
from irm.models.transaction import Transaction, TransactionStatus, TransactionType
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.investment import InvestmentCreate
from irm.services.email_service import EmailService, email_service, investor_fields
from irm.services.email_templates import TemplateName
from irm.services.returns_calculator import InterestDetails, add_years, interest_details

logger = logging.getLogger(__name__)


def generate_reference(on: date) -> str:
    """``TXN-YYYY-MM-DD-XXXXXXXX`` with eight random hex digits."""
    return f"TXN-{on.isoformat()}-{secrets.token_hex(4).upper()}"


def build_investment(
    investor_id: UUID, invest_in: InvestmentCreate
) -> Tuple[Investment, Transaction]:
    """A new investment and its deposit transaction; neither is persisted."""
    amount = settings.BOND_UNIT_VALUE * invest_in.bonds_purchased
    investment = Investment(
        investor_id=investor_id,
        investment_date=invest_in.investment_date,
        invested_amount=amount,
        bonds_purchased=invest_in.bonds_purchased,
        lock_in_expiry=add_years(invest_in.investment_date, settings.LOCK_IN_YEARS),
        maturity_date=add_years(invest_in.investment_date, settings.MATURITY_YEARS),
    )
    transaction = Transaction(
        investment_id=investment.id,
        type=TransactionType.INVESTMENT,
        amount=amount,
        transaction_date=invest_in.investment_date,
        mode=invest_in.mode,
        reference=invest_in.reference or generate_reference(invest_in.investment_date),
        status=TransactionStatus.COMPLETED,
        notes=f"Purchase of {invest_in.bonds_purchased} bond unit(s)",
    )
    return investment, transaction


def check_bond_limit(held: int, requested: int) -> None:
    if held + requested > settings.MAX_BONDS_PER_INVESTOR:
        raise BusinessRuleViolation(
            f"Investor already holds {held} bond unit(s); buying {requested} more would "
            f"exceed the limit of {settings.MAX_BONDS_PER_INVESTOR}"
        )


class InvestmentService:
    """Purchases, maturity and interest position of investments."""

    def __init__(
        self,
        invest_repo: InvestmentRepository,
        investor_repo: InvestorRepository,
        transaction_repo: TransactionRepository,
        email: EmailService = email_service,
    ):
        self._invest_repo = invest_repo
        self._investor_repo = investor_repo
        self._transaction_repo = transaction_repo
        self._email = email

    async def _get_investor(self, investor_id: UUID) -> Investor:
        investor = await self._investor_repo.get(investor_id)
        if investor is None:
            raise NotFoundException("Investor", investor_id)
        return investor

    # ── Queries ──

    async def get_investment(self, investment_id: UUID) -> Investment:
        investment = await self._invest_repo.get(investment_id)
        if investment is None:
            raise NotFoundException("Investment", investment_id)
        return investment

    async def get_investments_by_investor(
        self, investor_id: UUID, skip: int = 0, limit: int = 100
    ) -> List[Investment]:
        """
        Investments of one investor, most recent first.

        The investor is checked first so an unknown id is a 404 rather than
        an empty list.
        """
        await self._get_investor(investor_id)
        return await self._invest_repo.get_by_investor(investor_id, skip=skip, limit=limit)

    async def get_interest_details(
        self, investment_id: UUID, as_of: Optional[date] = None
    ) -> InterestDetails:
        investment = await self.get_investment(investment_id)
        transactions = await self._transaction_repo.get_by_investment(investment_id)
        disbursed = [
            t.amount
            for t in transactions
            if t.type == TransactionType.DIVIDEND_DISBURSEMENT
            and t.status == TransactionStatus.COMPLETED
        ]
        return interest_details(
            investment.invested_amount,
            investment.investment_date,
            disbursed=disbursed,
            as_of=as_of,
            term_years=settings.MATURITY_YEARS,
        )

    # ── Commands ──

    async def create_investment(self, investor_id: UUID, invest_in: InvestmentCreate) -> Investment:
        """
        Record a bond purchase for an existing investor.

        1. The investor must exist (404) and be *Active* (422).
        2. The purchase must keep the investor within the bond limit (422).
        3. Investment and deposit transaction are written in one commit; an
           ``IntegrityError`` there (investor removed concurrently, constraint
           breach) becomes a 422.
        """
        investor = await self._get_investor(investor_id)
        if investor.status != InvestorStatus.ACTIVE:
            raise BusinessRuleViolation(f"Investor '{investor_id}' is inactive")

        held = await self._invest_repo.total_bonds_for_investor(investor_id)
        check_bond_limit(held, invest_in.bonds_purchased)

        investment, transaction = build_investment(investor_id, invest_in)
        try:
            await self._invest_repo.add_all([investment, transaction])
        except IntegrityError as exc:
            await self._invest_repo.db.rollback()
            logger.warning("IntegrityError creating investment for %s: %s", investor_id, exc)
            raise BusinessRuleViolation(
                "Investment could not be created: the investor may have been removed, "
                "or a database constraint was violated."
            )

        logger.info(
            "Created investment %s: investor %s bought %d unit(s) (%s)",
            investment.id,
            investor_id,
            investment.bonds_purchased,
            investment.invested_amount,
        )
        return investment

    async def mature_investment(
        self, investment_id: UUID, today: Optional[date] = None
    ) -> Investment:
        """
        Move an investment to *Matured*.

        Writes the ``maturity_disbursement`` of the principal, records the
        milestone bonuses paid so far in ``bonus_earned`` and emails the
        investor.
        """
        today = today or date.today()
        investment = await self.get_investment(investment_id)
        if investment.status == InvestmentStatus.MATURED:
            raise ConflictException(f"Investment '{investment_id}' has already matured")
        if investment.maturity_date > today:
            raise BusinessRuleViolation(
                f"Investment '{investment_id}' matures on {investment.maturity_date}"
            )

        transactions = await self._transaction_repo.get_by_investment(investment_id)
        investment.bonus_earned = sum(
            (
                t.amount
                for t in transactions
                if t.type == TransactionType.BONUS_DISBURSEMENT
                and t.status == TransactionStatus.COMPLETED
            ),
            Decimal("0.00"),
        )
        investment.status = InvestmentStatus.MATURED
        payout = Transaction(
            investment_id=investment.id,
            type=TransactionType.MATURITY_DISBURSEMENT,
            amount=investment.invested_amount,
            transaction_date=today,
            reference=generate_reference(today),
            notes="Return of principal at maturity",
        )
        await self._invest_repo.add_all([investment, payout])
        logger.info("Investment %s matured", investment.id)

        investor = await self._investor_repo.get(investment.investor_id)
        if investor is not None:
            await self._email.send_template(
                TemplateName.MATURITY, investor.email, investor_fields(investor, investment)
            )
        return investment
