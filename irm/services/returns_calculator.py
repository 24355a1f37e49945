"""
Tiered interest and returns calculator.

Bond holders earn simple (non-compounding) annual interest on the original
principal at a rate set by the year of holding:

    year 1 → 0%, year 2 → 6%, year 3 → 9%, year 4 → 12%, year 5+ → 18%

On top of interest, a milestone bonus of 100% of principal is paid at the end
of years 5 and 10.  Interest for a year is disbursed on the 24th of the month
following that year's anniversary.

Everything here is pure: no I/O, no clock reads unless the caller omits
``as_of``.  Money is ``Decimal`` throughout.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple

from irm.core.exceptions import InvalidInputError

RATE_TABLE: Tuple[Tuple[int, Decimal], ...] = (
    (1, Decimal("0")),
    (2, Decimal("6")),
    (3, Decimal("9")),
    (4, Decimal("12")),
)
TOP_RATE = Decimal("18")

TERM_YEARS = 10
MILESTONE_BONUS_YEARS = (5, 10)
DISBURSEMENT_DAY = 24

_CENT = Decimal("0.01")


def _validate_year(year: int) -> int:
    # bool is an int subclass; True is not a holding year.
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidInputError(f"year_of_holding must be an integer, got {year!r}")
    if year < 1:
        raise InvalidInputError(f"year_of_holding must be >= 1, got {year}")
    return year


def _as_decimal(amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def rate_for_year(year: int) -> Decimal:
    """Annual interest rate, in percent, for the given year of holding."""
    _validate_year(year)
    for table_year, rate in RATE_TABLE:
        if table_year == year:
            return rate
    return TOP_RATE


def compute_interest(principal, year_of_holding: int) -> Decimal:
    """
    Interest accrued over one year of holding.

    ``principal * rate(year) / 100`` with no compounding and no rounding.
    Raises :class:`InvalidInputError` for a year below 1 or a non-integer year.
    """
    rate = rate_for_year(year_of_holding)
    return _as_decimal(principal) * rate / 100


def add_years(start: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 Feb falls back to 28 Feb."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


def completed_years(investment_date: date, as_of: date) -> int:
    """Number of anniversaries of ``investment_date`` reached by ``as_of``."""
    years = as_of.year - investment_date.year
    if (as_of.month, as_of.day) < (investment_date.month, investment_date.day):
        years -= 1
    return max(years, 0)


def year_of_holding(investment_date: date, as_of: Optional[date] = None) -> int:
    """The 1-based year of holding that ``as_of`` falls in."""
    return completed_years(investment_date, as_of or date.today()) + 1


def disbursement_date(investment_date: date, year: int) -> date:
    """24th of the month after the ``year``-th anniversary."""
    _validate_year(year)
    anniversary = add_years(investment_date, year)
    month = anniversary.month + 1
    year_ = anniversary.year
    if month == 13:
        month, year_ = 1, year_ + 1
    return date(year_, month, DISBURSEMENT_DAY)


def daily_interest(principal, year: int) -> Decimal:
    """One day's share of the year's interest, rounded to whole units."""
    return (compute_interest(principal, year) / 365).quantize(Decimal("1"), ROUND_HALF_UP)


def milestone_bonus(principal, year: int) -> Decimal:
    if year in MILESTONE_BONUS_YEARS:
        return _as_decimal(principal)
    return Decimal("0")


# ────────────────────────────────────────────────────────────────────────────
# Projections
# ────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class YearlyReturn:
    year: int
    rate: Decimal
    dividend: Decimal
    bonus: Decimal
    total: Decimal


@dataclass(frozen=True)
class ReturnsProjection:
    principal: Decimal
    yearly_breakdown: List[YearlyReturn] = field(default_factory=list)
    total_dividends: Decimal = Decimal("0")
    total_bonuses: Decimal = Decimal("0")
    maturity_value: Decimal = Decimal("0")


def project_returns(principal, term_years: int = TERM_YEARS) -> ReturnsProjection:
    """Full-term schedule of dividends and milestone bonuses."""
    principal = _as_decimal(principal)
    if principal < 0:
        raise InvalidInputError("principal must not be negative")
    _validate_year(term_years)

    breakdown = []
    total_dividends = Decimal("0")
    total_bonuses = Decimal("0")
    for year in range(1, term_years + 1):
        dividend = compute_interest(principal, year)
        bonus = milestone_bonus(principal, year)
        breakdown.append(
            YearlyReturn(
                year=year,
                rate=rate_for_year(year),
                dividend=dividend,
                bonus=bonus,
                total=dividend + bonus,
            )
        )
        total_dividends += dividend
        total_bonuses += bonus

    return ReturnsProjection(
        principal=principal,
        yearly_breakdown=breakdown,
        total_dividends=total_dividends,
        total_bonuses=total_bonuses,
        maturity_value=principal + total_dividends + total_bonuses,
    )


@dataclass(frozen=True)
class NextDisbursement:
    year_covered: int
    amount: Decimal
    disbursement_date: date


@dataclass(frozen=True)
class InterestDetails:
    completed_years: int
    current_year: int
    current_rate: Decimal
    current_year_progress: Decimal
    interest_earned_till_date: Decimal
    interest_disbursed_till_date: Decimal
    interest_due_till_date: Decimal
    next_disbursement: Optional[NextDisbursement]


def interest_details(
    principal,
    investment_date: date,
    disbursed: Iterable = (),
    as_of: Optional[date] = None,
    term_years: int = TERM_YEARS,
) -> InterestDetails:
    """
    Interest position of one investment on ``as_of``.

    - earned: every completed year in full plus the current year pro-rated by
      days elapsed since the last anniversary (within the term only).
    - disbursed: the sum of ``disbursed`` amounts.
    - due: interest of completed years whose disbursement date has passed.
    - next disbursement: the year after the last completed one, while inside
      the term.
    """
    principal = _as_decimal(principal)
    as_of = as_of or date.today()
    done = completed_years(investment_date, as_of)
    counted = min(done, term_years)

    earned = sum((compute_interest(principal, y) for y in range(1, counted + 1)), Decimal("0"))
    due = sum(
        (
            compute_interest(principal, y)
            for y in range(1, counted + 1)
            if disbursement_date(investment_date, y) <= as_of
        ),
        Decimal("0"),
    )

    last_anniversary = add_years(investment_date, done)
    next_anniversary = add_years(investment_date, done + 1)
    progress = Decimal((as_of - last_anniversary).days) / Decimal(
        (next_anniversary - last_anniversary).days
    )
    current_year = done + 1

    next_disbursement = None
    if current_year <= term_years:
        earned += compute_interest(principal, current_year) * progress
        next_disbursement = NextDisbursement(
            year_covered=current_year,
            amount=compute_interest(principal, current_year),
            disbursement_date=disbursement_date(investment_date, current_year),
        )

    disbursed_total = sum((_as_decimal(a) for a in disbursed), Decimal("0"))

    return InterestDetails(
        completed_years=done,
        current_year=current_year,
        current_rate=rate_for_year(current_year),
        current_year_progress=progress.quantize(_CENT, ROUND_HALF_UP),
        interest_earned_till_date=earned.quantize(_CENT, ROUND_HALF_UP),
        interest_disbursed_till_date=disbursed_total.quantize(_CENT, ROUND_HALF_UP),
        interest_due_till_date=due.quantize(_CENT, ROUND_HALF_UP),
        next_disbursement=next_disbursement,
    )
