"""
Investor service: onboarding, profile maintenance, the portfolio view and
monthly report emails.

Onboarding (``create_investor``) writes, in one commit:

- the investor,
- their login credential,
- the optional initial investment and its ``investment`` transaction,
- a *Pending* agreement.

The admin notice, welcome and agreement emails go out only after the
commit.  A failed email is logged and never undoes the onboarding.

Race condition note:
    The ``get_by_email()`` pre-check and the insert are not atomic.  The
    unique constraint is the real guard; the resulting ``IntegrityError`` is
    translated into the same 409 as the pre-check.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from irm.core.config import settings
from irm.core.exceptions import BusinessRuleViolation, ConflictException, NotFoundException
from irm.models.agreement import Agreement
from irm.models.investment import Investment, InvestmentStatus
from irm.models.investor import Investor, InvestorStatus
from irm.models.transaction import TransactionStatus, TransactionType
from irm.repositories.credential_repo import CredentialRepository
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.dashboard import PortfolioInvestment, PortfolioResponse
from irm.schemas.investment import InvestmentResponse
from irm.schemas.investor import (
    InvestorCreate,
    InvestorProfileUpdate,
    InvestorResponse,
    InvestorUpdate,
)
from irm.schemas.returns import InterestDetailsResponse
from irm.schemas.transaction import TransactionResponse
from irm.services.agreement_service import build_agreement, signing_url
from irm.services.credential_service import CredentialService
from irm.services.email_service import EmailService, email_service, investor_fields
from irm.services.email_templates import TemplateName, format_date, format_inr
from irm.services.investment_service import build_investment
from irm.services.returns_calculator import interest_details

logger = logging.getLogger(__name__)

REPORT_PAGE_SIZE = 200

NON_NULLABLE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "email",
        "primary_mobile",
        "primary_address",
        "primary_address_pin",
        "identity_proof_type",
        "identity_proof_number",
        "kyc_status",
        "status",
    }
)


@dataclass
class OnboardingResult:
    investor: Investor
    username: str
    password: str
    investment: Optional[Investment]
    agreement: Agreement


@dataclass
class MonthlyReportResult:
    as_of: date
    sent: int = 0
    failed: int = 0
    skipped: int = 0


def monthly_report_due(now: datetime, last_sent: Optional[Tuple[int, int]]) -> bool:
    """True once per month, from the configured report day and hour onwards."""
    if (now.year, now.month) == last_sent:
        return False
    return (now.day, now.hour) >= (settings.MONTHLY_REPORT_DAY, settings.MONTHLY_REPORT_HOUR)


def monthly_report_fields(portfolio: PortfolioResponse) -> Dict[str, Any]:
    """Merge fields for the monthly report, one summary line per investment."""
    lines = []
    upcoming = []
    for entry in portfolio.investments:
        investment, interest = entry.investment, entry.interest
        line = (
            f"- {investment.bonds_purchased} unit(s) of {format_inr(investment.invested_amount)} "
            f"since {format_date(investment.investment_date)}: "
        )
        if investment.status == InvestmentStatus.MATURED:
            line += f"matured on {format_date(investment.maturity_date)}"
        else:
            line += f"year {interest.current_year} at {interest.current_rate.normalize():f}%"
            payout = interest.next_disbursement
            if payout is not None and payout.amount > 0:
                upcoming.append(payout)
        lines.append(line)

    next_payout = min(upcoming, key=lambda p: p.disbursement_date, default=None)
    return investor_fields(
        portfolio.investor,
        reportMonth=f"{portfolio.as_of:%B %Y}",
        reportDate=format_date(portfolio.as_of),
        totalInvested=format_inr(portfolio.total_invested),
        bondUnits=portfolio.total_bond_units,
        interestEarned=format_inr(portfolio.interest_earned_till_date),
        interestDisbursed=format_inr(portfolio.interest_disbursed_till_date),
        nextPayout=(
            f"{format_inr(next_payout.amount)} on {format_date(next_payout.disbursement_date)}"
            if next_payout
            else "none scheduled"
        ),
        investmentSummary="\n".join(lines) or "No investments on record.",
    )


class InvestorService:
    """Business rules for :class:`Investor`."""

    def __init__(
        self,
        investor_repo: InvestorRepository,
        invest_repo: InvestmentRepository,
        transaction_repo: TransactionRepository,
        credential_repo: CredentialRepository,
        email: EmailService = email_service,
    ):
        self._repo = investor_repo
        self._invest_repo = invest_repo
        self._transaction_repo = transaction_repo
        self._credential_repo = credential_repo
        self._credentials = CredentialService(credential_repo, investor_repo)
        self._email = email

    # ── Queries ──

    async def get_all_investors(
        self, skip: int = 0, limit: int = 100, status: Optional[InvestorStatus] = None
    ) -> List[Investor]:
        return await self._repo.list_by_status(status, skip=skip, limit=limit)

    async def get_investor(self, investor_id: UUID) -> Investor:
        investor = await self._repo.get(investor_id)
        if investor is None:
            raise NotFoundException("Investor", investor_id)
        return investor

    async def get_portfolio(
        self, investor_id: UUID, as_of: Optional[date] = None
    ) -> PortfolioResponse:
        """Investor portal view: every investment with its interest position."""
        investor = await self.get_investor(investor_id)
        return await self._build_portfolio(investor, as_of or date.today())

    async def _build_portfolio(self, investor: Investor, as_of: date) -> PortfolioResponse:
        investments = await self._invest_repo.get_by_investor(investor.id, limit=1000)

        entries = []
        earned = Decimal("0")
        disbursed_total = Decimal("0")
        for investment in investments:
            transactions = await self._transaction_repo.get_by_investment(investment.id)
            disbursed = [
                t.amount
                for t in transactions
                if t.type == TransactionType.DIVIDEND_DISBURSEMENT
                and t.status == TransactionStatus.COMPLETED
            ]
            details = interest_details(
                investment.invested_amount,
                investment.investment_date,
                disbursed=disbursed,
                as_of=as_of,
                term_years=settings.MATURITY_YEARS,
            )
            earned += details.interest_earned_till_date
            disbursed_total += details.interest_disbursed_till_date
            entries.append(
                PortfolioInvestment(
                    investment=InvestmentResponse.model_validate(investment),
                    interest=InterestDetailsResponse.model_validate(details),
                    transactions=[TransactionResponse.model_validate(t) for t in transactions],
                )
            )

        return PortfolioResponse(
            investor=InvestorResponse.model_validate(investor),
            as_of=as_of,
            total_invested=sum((i.invested_amount for i in investments), Decimal("0")),
            total_bond_units=sum(i.bonds_purchased for i in investments),
            interest_earned_till_date=earned,
            interest_disbursed_till_date=disbursed_total,
            investments=entries,
        )

    # ── Commands ──

    async def _ensure_email_free(self, email: str) -> None:
        if await self._repo.get_by_email(email):
            raise ConflictException(f"An investor with email '{email}' already exists")

    async def create_investor(self, investor_in: InvestorCreate) -> OnboardingResult:
        """
        Onboard a new investor.

        Raises :class:`ConflictException` when the email is already taken,
        either at the pre-check or through the unique constraint.
        """
        await self._ensure_email_free(investor_in.email)

        investor = Investor(
            **investor_in.model_dump(
                exclude={"username", "password", "initial_investment", "send_emails"}
            )
        )
        credential, password = await self._credentials.build_credential(
            investor, investor_in.username, investor_in.password
        )
        rows = [investor, credential]

        investment = None
        if investor_in.initial_investment is not None:
            investment, transaction = build_investment(investor.id, investor_in.initial_investment)
            rows += [investment, transaction]

        agreement = build_agreement(investor, investment)
        rows.append(agreement)

        try:
            await self._repo.add_all(rows)
        except IntegrityError:
            await self._repo.db.rollback()
            logger.warning(
                "IntegrityError onboarding '%s' (concurrent duplicate email or username)",
                investor_in.email,
            )
            raise ConflictException(f"An investor with email '{investor_in.email}' already exists")

        logger.info(
            "Onboarded investor %s (%s) as '%s'",
            investor.id,
            investor.full_name,
            credential.username,
        )

        if investor_in.send_emails:
            fields = investor_fields(
                investor, investment, username=credential.username, password=password
            )
            await self._email.send_template(
                TemplateName.INVESTOR_CREATED, settings.ADMIN_EMAIL, fields
            )
            await self._email.send_template(TemplateName.WELCOME, investor.email, fields)
            await self._email.send_template(
                TemplateName.AGREEMENT,
                investor.email,
                dict(fields, agreementUrl=signing_url(agreement)),
            )

        return OnboardingResult(
            investor=investor,
            username=credential.username,
            password=password,
            investment=investment,
            agreement=agreement,
        )

    async def update_investor(self, investor_id: UUID, investor_in: InvestorUpdate) -> Investor:
        """
        Admin update: only the fields present in the request change.

        Setting ``status`` also (de)activates the investor's login.
        """
        investor = await self.get_investor(investor_id)
        changes = investor_in.model_dump(exclude_unset=True)

        cleared = sorted(k for k, v in changes.items() if v is None and k in NON_NULLABLE_FIELDS)
        if cleared:
            raise BusinessRuleViolation(f"These fields cannot be cleared: {', '.join(cleared)}")

        new_email = changes.get("email")
        if new_email and new_email != investor.email:
            await self._ensure_email_free(new_email)

        for key, value in changes.items():
            setattr(investor, key, value)
        investor.updated_at = datetime.now(timezone.utc)

        if "status" in changes:
            await self._set_login_active(investor_id, investor.status == InvestorStatus.ACTIVE)

        try:
            investor = await self._repo.update(investor)
        except IntegrityError:
            await self._repo.db.rollback()
            raise ConflictException(f"An investor with email '{new_email}' already exists")
        logger.info("Updated investor %s: %s", investor.id, ", ".join(sorted(changes)) or "-")
        return investor

    async def update_profile(
        self, investor_id: UUID, profile_in: InvestorProfileUpdate
    ) -> Investor:
        """
        Investor self-service update of contact details.

        Emails the admin when something actually changed.
        """
        investor = await self.get_investor(investor_id)
        if investor.status != InvestorStatus.ACTIVE:
            raise BusinessRuleViolation(f"Investor '{investor_id}' is inactive")

        changes = {
            key: value
            for key, value in profile_in.model_dump(exclude_unset=True).items()
            if not (value is None and key in NON_NULLABLE_FIELDS)
            and getattr(investor, key) != value
        }
        if not changes:
            return investor

        for key, value in changes.items():
            setattr(investor, key, value)
        investor.updated_at = datetime.now(timezone.utc)
        investor = await self._repo.update(investor)
        logger.info("Investor %s updated profile: %s", investor.id, ", ".join(sorted(changes)))

        await self._email.send_template(
            TemplateName.PROFILE_UPDATE, settings.ADMIN_EMAIL, investor_fields(investor)
        )
        return investor

    async def _set_login_active(self, investor_id: UUID, active: bool) -> None:
        credential = await self._credential_repo.get_by_investor(investor_id)
        if credential is not None and credential.is_active != active:
            credential.is_active = active
            await self._credential_repo.update(credential)

    async def deactivate_investor(self, investor_id: UUID) -> Investor:
        """Soft delete: mark *Inactive* and disable login.  Repeating it is harmless."""
        investor = await self.get_investor(investor_id)
        await self._set_login_active(investor_id, False)
        if investor.status == InvestorStatus.INACTIVE:
            return investor
        investor.status = InvestorStatus.INACTIVE
        investor.updated_at = datetime.now(timezone.utc)
        investor = await self._repo.update(investor)
        logger.info("Deactivated investor %s", investor.id)
        return investor

    async def send_welcome_email(self, investor_id: UUID) -> bool:
        """Re-send the welcome email.  Only the hash is stored, so no password is included."""
        investor = await self.get_investor(investor_id)
        investments = await self._invest_repo.get_by_investor(investor_id, limit=1)
        credential = await self._credential_repo.get_by_investor(investor_id)
        fields = investor_fields(
            investor,
            investments[0] if investments else None,
            username=credential.username if credential else None,
            password="(unchanged)",
        )
        return await self._email.send_template(TemplateName.WELCOME, investor.email, fields)

    # ── Monthly reports ──

    async def _send_monthly_report(self, portfolio: PortfolioResponse) -> bool:
        return await self._email.send_template(
            TemplateName.MONTHLY_REPORT,
            portfolio.investor.email,
            monthly_report_fields(portfolio),
        )

    async def send_monthly_report(self, investor_id: UUID, as_of: Optional[date] = None) -> bool:
        """Email one investor their portfolio summary."""
        investor = await self.get_investor(investor_id)
        if investor.status != InvestorStatus.ACTIVE:
            raise BusinessRuleViolation(f"Investor '{investor_id}' is inactive")
        portfolio = await self._build_portfolio(investor, as_of or date.today())
        return await self._send_monthly_report(portfolio)

    async def send_monthly_reports(self, as_of: Optional[date] = None) -> MonthlyReportResult:
        """
        Email every active investor who holds at least one investment.

        Investors without investments are counted as skipped; a failed
        delivery is counted and the run carries on.
        """
        result = MonthlyReportResult(as_of=as_of or date.today())
        skip = 0
        while True:
            page = await self._repo.list_by_status(
                InvestorStatus.ACTIVE, skip=skip, limit=REPORT_PAGE_SIZE
            )
            for investor in page:
                portfolio = await self._build_portfolio(investor, result.as_of)
                if not portfolio.investments:
                    result.skipped += 1
                elif await self._send_monthly_report(portfolio):
                    result.sent += 1
                else:
                    result.failed += 1
            if len(page) < REPORT_PAGE_SIZE:
                break
            skip += REPORT_PAGE_SIZE

        logger.info(
            "Monthly reports for %s: %d sent, %d failed, %d skipped",
            result.as_of,
            result.sent,
            result.failed,
            result.skipped,
        )
        return result
