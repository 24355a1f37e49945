"""
Unit tests for InvestmentService: purchases, bond limit, maturity and the
interest position.

All repository calls are mocked.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from irm.core.exceptions import BusinessRuleViolation, ConflictException, NotFoundException
from irm.models.investment import InvestmentStatus
from irm.models.investor import InvestorStatus
from irm.models.transaction import TransactionStatus, TransactionType
from irm.schemas.investment import InvestmentCreate
from irm.services.email_templates import TemplateName
from irm.services.investment_service import (
    InvestmentService,
    build_investment,
    check_bond_limit,
    generate_reference,
)

from .conftest import INVESTMENT_ID, INVESTOR_ID, make_investment, make_investor, make_transaction


@pytest.fixture()
def service(invest_repo, investor_repo, transaction_repo, mock_email):
    return InvestmentService(invest_repo, investor_repo, transaction_repo, email=mock_email)


def _purchase(bonds=1, on=date(2024, 3, 15), **kwargs):
    return InvestmentCreate(bonds_purchased=bonds, investment_date=on, **kwargs)


class TestHelpers:
    def test_reference_format(self):
        ref = generate_reference(date(2024, 3, 15))
        assert ref.startswith("TXN-2024-03-15-")
        assert len(ref) == len("TXN-2024-03-15-") + 8

    def test_build_investment_derives_amount_and_dates(self):
        investment, transaction = build_investment(INVESTOR_ID, _purchase(bonds=2))

        assert investment.invested_amount == Decimal("4000000.00")
        assert investment.lock_in_expiry == date(2027, 3, 15)
        assert investment.maturity_date == date(2034, 3, 15)
        assert transaction.investment_id == investment.id
        assert transaction.type == TransactionType.INVESTMENT
        assert transaction.amount == investment.invested_amount
        assert transaction.status == TransactionStatus.COMPLETED

    def test_caller_reference_kept(self):
        _, transaction = build_investment(INVESTOR_ID, _purchase(reference="NEFT-991"))
        assert transaction.reference == "NEFT-991"

    def test_bond_limit(self):
        check_bond_limit(2, 1)
        with pytest.raises(BusinessRuleViolation, match="limit of 3"):
            check_bond_limit(2, 2)


class TestCreateInvestment:
    @pytest.mark.asyncio
    async def test_success(self, service, investor_repo, invest_repo):
        investor_repo.get.return_value = make_investor()
        invest_repo.total_bonds_for_investor.return_value = 0

        investment = await service.create_investment(INVESTOR_ID, _purchase(bonds=3))

        assert investment.bonds_purchased == 3
        rows = invest_repo.add_all.await_args.args[0]
        assert [type(r).__name__ for r in rows] == ["Investment", "Transaction"]

    @pytest.mark.asyncio
    async def test_unknown_investor(self, service, investor_repo):
        investor_repo.get.return_value = None
        with pytest.raises(NotFoundException):
            await service.create_investment(uuid4(), _purchase())

    @pytest.mark.asyncio
    async def test_inactive_investor(self, service, investor_repo, invest_repo):
        investor_repo.get.return_value = make_investor(status=InvestorStatus.INACTIVE)
        with pytest.raises(BusinessRuleViolation, match="inactive"):
            await service.create_investment(INVESTOR_ID, _purchase())
        invest_repo.add_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_limit_counts_existing_units(self, service, investor_repo, invest_repo):
        investor_repo.get.return_value = make_investor()
        invest_repo.total_bonds_for_investor.return_value = 3
        with pytest.raises(BusinessRuleViolation):
            await service.create_investment(INVESTOR_ID, _purchase())

    @pytest.mark.asyncio
    async def test_integrity_error_rolls_back(self, service, investor_repo, invest_repo):
        investor_repo.get.return_value = make_investor()
        invest_repo.total_bonds_for_investor.return_value = 0
        invest_repo.add_all.side_effect = IntegrityError("INSERT", {}, Exception("fk"))

        with pytest.raises(BusinessRuleViolation):
            await service.create_investment(INVESTOR_ID, _purchase())
        invest_repo.db.rollback.assert_awaited_once()


class TestQueries:
    @pytest.mark.asyncio
    async def test_by_investor_checks_investor(self, service, investor_repo):
        investor_repo.get.return_value = None
        with pytest.raises(NotFoundException):
            await service.get_investments_by_investor(uuid4())

    @pytest.mark.asyncio
    async def test_interest_details_counts_completed_dividends(
        self, service, invest_repo, transaction_repo
    ):
        invest_repo.get.return_value = make_investment(investment_date=date(2020, 1, 15))
        transaction_repo.get_by_investment.return_value = [
            make_transaction(),
            make_transaction(
                id=uuid4(), type=TransactionType.DIVIDEND_DISBURSEMENT, amount=Decimal("120000")
            ),
            make_transaction(
                id=uuid4(),
                type=TransactionType.DIVIDEND_DISBURSEMENT,
                amount=Decimal("180000"),
                status=TransactionStatus.FAILED,
            ),
        ]

        details = await service.get_interest_details(INVESTMENT_ID, as_of=date(2023, 6, 1))

        assert details.interest_disbursed_till_date == Decimal("120000.00")
        assert details.completed_years == 3


class TestMatureInvestment:
    @pytest.mark.asyncio
    async def test_matures_and_pays_principal(
        self, service, invest_repo, investor_repo, transaction_repo, mock_email
    ):
        invest_repo.get.return_value = make_investment(investment_date=date(2014, 1, 15))
        transaction_repo.get_by_investment.return_value = [
            make_transaction(
                id=uuid4(), type=TransactionType.BONUS_DISBURSEMENT, amount=Decimal("2000000")
            )
        ]
        investor_repo.get.return_value = make_investor()

        investment = await service.mature_investment(INVESTMENT_ID, today=date(2024, 2, 1))

        assert investment.status == InvestmentStatus.MATURED
        assert investment.bonus_earned == Decimal("2000000")
        payout = invest_repo.add_all.await_args.args[0][1]
        assert payout.type == TransactionType.MATURITY_DISBURSEMENT
        assert payout.amount == investment.invested_amount
        assert mock_email.send_template.await_args.args[0] == TemplateName.MATURITY

    @pytest.mark.asyncio
    async def test_before_maturity_date(self, service, invest_repo):
        invest_repo.get.return_value = make_investment(investment_date=date(2020, 1, 15))
        with pytest.raises(BusinessRuleViolation, match="matures on 2030-01-15"):
            await service.mature_investment(INVESTMENT_ID, today=date(2025, 1, 1))

    @pytest.mark.asyncio
    async def test_already_matured(self, service, invest_repo):
        invest_repo.get.return_value = make_investment(status=InvestmentStatus.MATURED)
        with pytest.raises(ConflictException):
            await service.mature_investment(INVESTMENT_ID, today=date(2031, 1, 1))
