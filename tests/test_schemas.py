"""
Unit tests for Pydantic request schemas.

Tests cover:
- InvestorCreate: trimming, email/proof normalisation, phone and PIN checks
- InvestorProfileUpdate: contact fields only
- InvestmentCreate: bond limit and far-future dates
- AgreementSign: signature data URL
- EmailPreviewRequest: template xor body
- Money serialisation as JSON numbers
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from irm.schemas.agreement import AgreementSign
from irm.schemas.email import EmailPreviewRequest
from irm.schemas.investment import InvestmentCreate
from irm.schemas.investor import InvestorCreate, InvestorProfileUpdate, InvestorUpdate
from irm.schemas.returns import ReturnsCalculateRequest, YearlyReturnResponse
from irm.services.email_templates import TemplateName

from .conftest import SIGNATURE


def _investor_payload(**overrides):
    payload = {
        "first_name": "  Ananya ",
        "last_name": "Iyer",
        "email": "Ananya.Iyer@Example.com",
        "primary_mobile": "+91 98765 43210",
        "primary_address": "4 Residency Road, Bengaluru",
        "primary_address_pin": "560001",
        "identity_proof_type": "PAN",
        "identity_proof_number": " abcde1234f ",
    }
    payload.update(overrides)
    return payload


class TestInvestorCreate:
    def test_normalises_fields(self):
        investor = InvestorCreate(**_investor_payload())
        assert investor.first_name == "Ananya"
        assert investor.email == "ananya.iyer@example.com"
        assert investor.identity_proof_number == "ABCDE1234F"
        assert investor.send_emails is True
        assert investor.initial_investment is None

    @pytest.mark.parametrize("field", ["first_name", "primary_address", "primary_mobile"])
    def test_blank_required_field_rejected(self, field):
        with pytest.raises(ValidationError):
            InvestorCreate(**_investor_payload(**{field: "   "}))

    @pytest.mark.parametrize("mobile", ["12345", "phone-number", "+91 98765 4321x"])
    def test_bad_mobile_rejected(self, mobile):
        with pytest.raises(ValidationError):
            InvestorCreate(**_investor_payload(primary_mobile=mobile))

    @pytest.mark.parametrize("pin", ["5600", "56000A", "5600011"])
    def test_bad_pin_rejected(self, pin):
        with pytest.raises(ValidationError):
            InvestorCreate(**_investor_payload(primary_address_pin=pin))

    def test_blank_optional_becomes_none(self):
        investor = InvestorCreate(**_investor_payload(secondary_mobile="  ", middle_name=" "))
        assert investor.secondary_mobile is None
        assert investor.middle_name is None

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            InvestorCreate(**_investor_payload(email="not-an-email"))

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError):
            InvestorCreate(**_investor_payload(password="short"))

    def test_nested_initial_investment(self):
        investor = InvestorCreate(
            **_investor_payload(
                initial_investment={"bonds_purchased": 2, "investment_date": "2024-03-15"}
            )
        )
        assert investor.initial_investment.bonds_purchased == 2


class TestInvestorUpdates:
    def test_update_only_sent_fields_set(self):
        update = InvestorUpdate(email="NEW@example.com")
        assert update.model_dump(exclude_unset=True) == {"email": "new@example.com"}

    def test_profile_update_rejects_non_contact_fields(self):
        with pytest.raises(ValidationError):
            InvestorProfileUpdate(email="x@example.com")

    def test_profile_update_checks_pin(self):
        with pytest.raises(ValidationError):
            InvestorProfileUpdate(primary_address_pin="12")


class TestInvestmentCreate:
    def test_defaults(self):
        invest = InvestmentCreate(bonds_purchased=1, investment_date=date(2024, 1, 1))
        assert invest.mode.value == "bank_transfer"
        assert invest.reference is None

    @pytest.mark.parametrize("bonds", [0, 4])
    def test_bond_count_bounds(self, bonds):
        with pytest.raises(ValidationError):
            InvestmentCreate(bonds_purchased=bonds, investment_date=date(2024, 1, 1))

    def test_far_future_date_rejected(self):
        with pytest.raises(ValidationError):
            InvestmentCreate(
                bonds_purchased=1, investment_date=date.today() + timedelta(days=400)
            )


class TestAgreementSign:
    def test_valid(self):
        sign = AgreementSign(
            signature=SIGNATURE, signatory_name=" Ananya Iyer ", signatory_email="a@example.com"
        )
        assert sign.signatory_name == "Ananya Iyer"

    @pytest.mark.parametrize("signature", ["hello", "data:text/plain,hi", "data:image/png"])
    def test_not_an_image_data_url(self, signature):
        with pytest.raises(ValidationError):
            AgreementSign(
                signature=signature, signatory_name="A", signatory_email="a@example.com"
            )


class TestEmailPreviewRequest:
    def test_template(self):
        assert EmailPreviewRequest(template="welcome").template == TemplateName.WELCOME

    def test_body(self):
        assert EmailPreviewRequest(body="Hi {{firstName}}").fields == {}

    @pytest.mark.parametrize("payload", [{}, {"template": "welcome", "body": "x"}])
    def test_exactly_one_source(self, payload):
        with pytest.raises(ValidationError):
            EmailPreviewRequest(**payload)


class TestReturnsSchemas:
    def test_negative_principal_rejected(self):
        with pytest.raises(ValidationError):
            ReturnsCalculateRequest(principal=-1)

    def test_money_serialised_as_number(self):
        row = YearlyReturnResponse(
            year=2,
            rate=Decimal("6"),
            dividend=Decimal("120000"),
            bonus=Decimal("0"),
            total=Decimal("120000"),
        )
        assert row.model_dump(mode="json")["dividend"] == 120000.0
        assert row.model_dump()["dividend"] == Decimal("120000")
