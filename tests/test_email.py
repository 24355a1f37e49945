"""
Unit tests for merge-field templating and the email service.

SMTP is never contacted: the relay is either unconfigured (messages are
logged) or ``aiosmtplib.send`` is patched.
"""

import logging
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from irm.core.config import settings
from irm.services.email_service import EmailService, investor_fields
from irm.services.email_templates import (
    SUBJECTS,
    TEMPLATES,
    TemplateName,
    format_date,
    format_inr,
    render,
)

from .conftest import make_investment, make_investor

TODAY = date(2025, 3, 7)


class TestRender:
    def test_substitutes_fields(self):
        assert render("Dear {{firstName}},", {"firstName": "Asha"}, today=TODAY) == "Dear Asha,"

    def test_missing_field_renders_empty(self):
        assert render("[{{username}}]", {}, today=TODAY) == "[]"

    def test_none_renders_empty(self):
        assert render("[{{phone}}]", {"phone": None}, today=TODAY) == "[]"

    def test_repeated_placeholder(self):
        assert render("{{a}}-{{a}}", {"a": "x"}, today=TODAY) == "x-x"

    def test_builtins_win_over_supplied_values(self):
        out = render(
            "{{companyName}} {{currentDate}} {{currentYear}}",
            {"companyName": "Other", "currentYear": "1999"},
            today=TODAY,
        )
        assert out == f"{settings.COMPANY_NAME} 7/3/2025 2025"

    def test_no_escaping_or_nesting(self):
        out = render("{{body}}", {"body": "<b>{{firstName}}</b>"}, today=TODAY)
        assert out == "<b>{{firstName}}</b>"

    def test_malformed_placeholders_left_alone(self):
        assert render("{ {x}} {{ x }}", {"x": "1"}, today=TODAY) == "{ {x}} {{ x }}"

    def test_every_named_template_has_subject(self):
        assert set(TEMPLATES) == set(SUBJECTS) == set(TemplateName)

    def test_monthly_report_template(self):
        fields = {
            "firstName": "Asha",
            "reportMonth": "March 2025",
            "nextPayout": "₹3,60,000 on 24/2/2026",
            "investmentSummary": "- 2 unit(s) of ₹40,00,000 since 15/1/2020: year 6 at 18%",
        }
        body = render(TEMPLATES[TemplateName.MONTHLY_REPORT], fields, today=TODAY)
        subject = render(SUBJECTS[TemplateName.MONTHLY_REPORT], fields, today=TODAY)

        assert subject.endswith("March 2025")
        assert "Dear Asha," in body
        assert "Next Payout: ₹3,60,000 on 24/2/2026" in body
        assert "year 6 at 18%" in body


class TestFormatting:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("2000000"), "₹20,00,000"),
            (Decimal("1234567"), "₹12,34,567"),
            (Decimal("999"), "₹999"),
            (Decimal("1500.5"), "₹1,500.50"),
            (0, "₹0"),
            (Decimal("-100000"), "-₹1,00,000"),
        ],
    )
    def test_format_inr(self, amount, expected):
        assert format_inr(amount) == expected

    def test_format_date_unpadded(self):
        assert format_date(date(2024, 1, 5)) == "5/1/2024"


class TestInvestorFields:
    def test_without_investment(self):
        fields = investor_fields(make_investor())
        assert fields["investorName"] == "Asha Verma"
        assert fields["phone"] == "9876543210"
        assert "investmentAmount" not in fields

    def test_with_investment_and_extra(self):
        fields = investor_fields(
            make_investor(), make_investment(bonds_purchased=2), username="asha"
        )
        assert fields["investmentAmount"] == "₹40,00,000"
        assert fields["bondUnits"] == 2
        assert fields["maturityDate"] == "15/1/2030"
        assert fields["username"] == "asha"


class TestEmailService:
    @pytest.mark.asyncio
    async def test_unconfigured_logs_instead_of_sending(self, caplog):
        service = EmailService(username="", password="")
        with patch("irm.services.email_service.aiosmtplib.send", new=AsyncMock()) as send:
            with caplog.at_level(logging.INFO, logger="irm.services.email_service"):
                sent = await service.send_email("a@example.com", "Hi", "Body")

        assert sent is True
        send.assert_not_awaited()
        assert "SMTP not configured" in caplog.text

    @pytest.mark.asyncio
    async def test_configured_sends_message(self):
        service = EmailService(username="user", password="secret")
        with patch("irm.services.email_service.aiosmtplib.send", new=AsyncMock()) as send:
            sent = await service.send_email("a@example.com", "Hi", "Body")

        assert sent is True
        message = send.await_args.args[0]
        assert message["To"] == "a@example.com"
        assert message["Subject"] == "Hi"

    @pytest.mark.asyncio
    async def test_delivery_failure_returns_false(self):
        service = EmailService(username="user", password="secret")
        failing = AsyncMock(side_effect=aiosmtplib.SMTPException("relay down"))
        with patch("irm.services.email_service.aiosmtplib.send", new=failing):
            sent = await service.send_email("a@example.com", "Hi", "Body")

        assert sent is False

    @pytest.mark.asyncio
    async def test_dropped_connection_is_retried(self):
        service = EmailService(username="user", password="secret")
        flaky = AsyncMock(side_effect=[aiosmtplib.SMTPServerDisconnected("bye"), None])
        with patch("irm.services.email_service.aiosmtplib.send", new=flaky), patch(
            "irm.core.resilience.asyncio.sleep", new_callable=AsyncMock
        ):
            sent = await service.send_email("a@example.com", "Hi", "Body")

        assert sent is True
        assert flaky.await_count == 2

    @pytest.mark.asyncio
    async def test_rejected_login_is_not_retried(self):
        service = EmailService(username="user", password="wrong")
        refused = AsyncMock(side_effect=aiosmtplib.SMTPAuthenticationError(535, "bad auth"))
        with patch("irm.services.email_service.aiosmtplib.send", new=refused), patch(
            "irm.core.resilience.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            sent = await service.send_email("a@example.com", "Hi", "Body")

        assert sent is False
        refused.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_template_renders_subject_and_body(self):
        service = EmailService(username="", password="")
        service.send_email = AsyncMock(return_value=True)

        await service.send_template(
            TemplateName.WELCOME, "a@example.com", investor_fields(make_investor())
        )

        to, subject, body = service.send_email.await_args.args
        assert to == "a@example.com"
        assert "{{" not in subject
        assert "Dear Asha," in body
