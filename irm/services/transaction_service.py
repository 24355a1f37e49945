"""
Transaction service: history, manual entries, CSV export and the
disbursement back-fill.

Transactions are append-only.  The back-fill is idempotent: a holding year
that already has a dividend (or bonus) transaction for an investment is
skipped, so the job can run any number of times.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional
from uuid import UUID

from irm.core.config import settings
from irm.core.exceptions import BusinessRuleViolation, NotFoundException
from irm.models.investment import Investment, InvestmentStatus
from irm.models.transaction import Transaction, TransactionType
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.transaction import TransactionCreate
from irm.services.investment_service import generate_reference
from irm.services.returns_calculator import (
    MILESTONE_BONUS_YEARS,
    completed_years,
    compute_interest,
    disbursement_date,
    rate_for_year,
)

logger = logging.getLogger(__name__)

CSV_HEADER = ("Date", "Type", "Amount", "Mode", "Transaction ID", "Status")
_CENT = Decimal("0.01")


@dataclass
class GenerationResult:
    investments_processed: int
    dividends_created: int
    bonuses_created: int
    as_of: date


def due_disbursements(
    investment: Investment,
    as_of: date,
    paid_dividend_years: set,
    paid_bonus_years: set,
) -> List[Transaction]:
    """
    Dividend and milestone-bonus transactions owed to ``investment`` by
    ``as_of`` and not yet recorded.

    A year's payments fall due on its disbursement date.  Zero-rate years
    produce no dividend row.
    """
    done = min(completed_years(investment.investment_date, as_of), settings.MATURITY_YEARS)
    rows = []
    for year in range(1, done + 1):
        paid_on = disbursement_date(investment.investment_date, year)
        if paid_on > as_of:
            continue
        amount = compute_interest(investment.invested_amount, year).quantize(_CENT, ROUND_HALF_UP)
        if amount > 0 and year not in paid_dividend_years:
            rows.append(
                Transaction(
                    investment_id=investment.id,
                    type=TransactionType.DIVIDEND_DISBURSEMENT,
                    amount=amount,
                    transaction_date=paid_on,
                    year_covered=year,
                    interest_rate=rate_for_year(year),
                    reference=generate_reference(paid_on),
                    notes=f"Year {year} dividend",
                )
            )
        if year in MILESTONE_BONUS_YEARS and year not in paid_bonus_years:
            rows.append(
                Transaction(
                    investment_id=investment.id,
                    type=TransactionType.BONUS_DISBURSEMENT,
                    amount=investment.invested_amount,
                    transaction_date=paid_on,
                    year_covered=year,
                    reference=generate_reference(paid_on),
                    notes=f"Year {year} milestone bonus",
                )
            )
    return rows


class TransactionService:
    def __init__(self, transaction_repo: TransactionRepository, invest_repo: InvestmentRepository):
        self._repo = transaction_repo
        self._invest_repo = invest_repo

    async def _get_investment(self, investment_id: UUID) -> Investment:
        investment = await self._invest_repo.get(investment_id)
        if investment is None:
            raise NotFoundException("Investment", investment_id)
        return investment

    async def get_transactions(self, investment_id: UUID) -> List[Transaction]:
        await self._get_investment(investment_id)
        return await self._repo.get_by_investment(investment_id)

    async def record_transaction(
        self, investment_id: UUID, txn_in: TransactionCreate
    ) -> Transaction:
        """
        Append a manually entered transaction.

        ``investment`` transactions are written only by the purchase itself,
        so manual entries of that type are refused.
        """
        await self._get_investment(investment_id)
        if txn_in.type == TransactionType.INVESTMENT:
            raise BusinessRuleViolation(
                "Investment transactions are recorded automatically with the purchase"
            )

        transaction = Transaction(
            investment_id=investment_id,
            **txn_in.model_dump(exclude={"reference"}),
            reference=txn_in.reference or generate_reference(txn_in.transaction_date),
        )
        created = await self._repo.create(transaction)
        logger.info(
            "Recorded %s transaction %s for investment %s",
            created.type.value,
            created.id,
            investment_id,
        )
        return created

    async def export_csv(self, investment_id: UUID) -> str:
        """Transaction history as CSV with the statement header row."""
        transactions = await self.get_transactions(investment_id)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for t in transactions:
            writer.writerow(
                [
                    t.transaction_date.isoformat(),
                    t.type.value,
                    f"{t.amount:.2f}",
                    t.mode.value,
                    t.reference,
                    t.status.value,
                ]
            )
        return buffer.getvalue()

    async def generate_disbursements(self, as_of: Optional[date] = None) -> GenerationResult:
        """Back-fill dividend and bonus transactions for every active investment."""
        as_of = as_of or date.today()
        investments = await self._invest_repo.list_by_status(InvestmentStatus.ACTIVE)

        new_rows: List[Transaction] = []
        for investment in investments:
            paid_dividends = await self._repo.years_covered(
                investment.id, TransactionType.DIVIDEND_DISBURSEMENT
            )
            paid_bonuses = await self._repo.years_covered(
                investment.id, TransactionType.BONUS_DISBURSEMENT
            )
            new_rows.extend(due_disbursements(investment, as_of, paid_dividends, paid_bonuses))

        if new_rows:
            await self._repo.add_all(new_rows)

        dividends = sum(1 for t in new_rows if t.type == TransactionType.DIVIDEND_DISBURSEMENT)
        result = GenerationResult(
            investments_processed=len(investments),
            dividends_created=dividends,
            bonuses_created=len(new_rows) - dividends,
            as_of=as_of,
        )
        logger.info(
            "Generated disbursements as of %s: %d dividends, %d bonuses across %d investments",
            as_of,
            result.dividends_created,
            result.bonuses_created,
            result.investments_processed,
        )
        return result
