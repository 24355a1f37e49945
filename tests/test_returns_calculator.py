"""
Unit tests for the tiered returns calculator.

Pure functions only: no mocks, no I/O.
"""

from datetime import date
from decimal import Decimal

import pytest

from irm.core.exceptions import InvalidInputError
from irm.services.returns_calculator import (
    add_years,
    completed_years,
    compute_interest,
    daily_interest,
    disbursement_date,
    interest_details,
    milestone_bonus,
    project_returns,
    rate_for_year,
    year_of_holding,
)

PRINCIPAL = Decimal("2000000")


class TestRateForYear:
    @pytest.mark.parametrize(
        "year,rate",
        [(1, "0"), (2, "6"), (3, "9"), (4, "12"), (5, "18"), (10, "18"), (25, "18")],
    )
    def test_rate_ladder(self, year, rate):
        assert rate_for_year(year) == Decimal(rate)

    @pytest.mark.parametrize("year", [0, -1])
    def test_year_below_one_rejected(self, year):
        with pytest.raises(InvalidInputError):
            rate_for_year(year)

    @pytest.mark.parametrize("year", [1.5, "2", True])
    def test_non_integer_year_rejected(self, year):
        with pytest.raises(InvalidInputError):
            rate_for_year(year)


class TestComputeInterest:
    def test_first_year_earns_nothing(self):
        assert compute_interest(PRINCIPAL, 1) == 0

    def test_year_two(self):
        assert compute_interest(PRINCIPAL, 2) == Decimal("120000")

    def test_top_rate_from_year_five(self):
        assert compute_interest(PRINCIPAL, 5) == Decimal("360000")
        assert compute_interest(PRINCIPAL, 10) == Decimal("360000")

    def test_no_compounding(self):
        """Every year uses the original principal, never accumulated interest."""
        assert compute_interest(PRINCIPAL, 7) == compute_interest(PRINCIPAL, 6)

    def test_accepts_int_and_float(self):
        assert compute_interest(1000, 2) == Decimal("60")
        assert compute_interest(1000.0, 3) == Decimal("90")

    def test_zero_principal(self):
        assert compute_interest(0, 5) == 0


class TestDates:
    def test_add_years_leap_day(self):
        assert add_years(date(2020, 2, 29), 1) == date(2021, 2, 28)
        assert add_years(date(2020, 2, 29), 4) == date(2024, 2, 29)

    def test_completed_years_before_and_on_anniversary(self):
        assert completed_years(date(2020, 6, 15), date(2021, 6, 14)) == 0
        assert completed_years(date(2020, 6, 15), date(2021, 6, 15)) == 1

    def test_completed_years_never_negative(self):
        assert completed_years(date(2025, 1, 1), date(2024, 1, 1)) == 0

    def test_year_of_holding(self):
        assert year_of_holding(date(2020, 6, 15), date(2020, 6, 15)) == 1
        assert year_of_holding(date(2020, 6, 15), date(2023, 7, 1)) == 4

    def test_disbursement_is_24th_of_following_month(self):
        assert disbursement_date(date(2020, 6, 15), 1) == date(2021, 7, 24)

    def test_disbursement_rolls_over_year_end(self):
        assert disbursement_date(date(2020, 12, 5), 2) == date(2023, 1, 24)


class TestBonusesAndDaily:
    def test_milestone_bonus_years(self):
        assert milestone_bonus(PRINCIPAL, 5) == PRINCIPAL
        assert milestone_bonus(PRINCIPAL, 10) == PRINCIPAL
        assert milestone_bonus(PRINCIPAL, 4) == 0

    def test_daily_interest_rounded(self):
        # 360000 / 365 = 986.30...
        assert daily_interest(PRINCIPAL, 5) == Decimal("986")


class TestProjectReturns:
    def test_full_term_totals(self):
        projection = project_returns(PRINCIPAL)

        assert len(projection.yearly_breakdown) == 10
        assert projection.total_dividends == Decimal("2700000")
        assert projection.total_bonuses == Decimal("4000000")
        assert projection.maturity_value == Decimal("8700000")

    def test_year_five_row_includes_bonus(self):
        year5 = project_returns(PRINCIPAL).yearly_breakdown[4]
        assert year5.year == 5
        assert year5.rate == Decimal("18")
        assert year5.total == Decimal("2360000")

    def test_short_term(self):
        projection = project_returns(PRINCIPAL, term_years=3)
        assert projection.total_dividends == Decimal("300000")
        assert projection.total_bonuses == 0

    def test_negative_principal_rejected(self):
        with pytest.raises(InvalidInputError):
            project_returns(-1)


class TestInterestDetails:
    def test_on_investment_day(self):
        details = interest_details(PRINCIPAL, date(2020, 1, 15), as_of=date(2020, 1, 15))
        assert details.completed_years == 0
        assert details.current_year == 1
        assert details.interest_earned_till_date == 0
        assert details.next_disbursement.disbursement_date == date(2021, 2, 24)

    def test_mid_year_three(self):
        details = interest_details(PRINCIPAL, date(2020, 1, 15), as_of=date(2022, 7, 15))
        assert details.completed_years == 2
        assert details.current_rate == Decimal("9")
        # years 1 and 2 fully, year 3 roughly half
        assert Decimal("200000") < details.interest_earned_till_date < Decimal("215000")
        assert details.interest_due_till_date == Decimal("120000")

    def test_disbursed_sum(self):
        details = interest_details(
            PRINCIPAL,
            date(2020, 1, 15),
            disbursed=[Decimal("120000"), Decimal("180000")],
            as_of=date(2023, 6, 1),
        )
        assert details.interest_disbursed_till_date == Decimal("300000.00")

    def test_past_term_has_no_next_disbursement(self):
        details = interest_details(PRINCIPAL, date(2010, 1, 15), as_of=date(2024, 1, 1))
        assert details.next_disbursement is None
        assert details.interest_earned_till_date == Decimal("2700000.00")
