"""
Unit tests for AgreementService: generation, signing and resend.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from irm.core.config import settings
from irm.core.exceptions import BusinessRuleViolation, ConflictException, NotFoundException
from irm.models.agreement import AgreementStatus
from irm.schemas.agreement import AgreementSign
from irm.services.agreement_service import (
    AgreementService,
    build_agreement,
    document_hash,
    signing_url,
)
from irm.services.email_templates import TemplateName

from .conftest import AGREEMENT_ID, INVESTOR_ID, SIGNATURE, make_agreement, make_investment, make_investor


@pytest.fixture()
def service(agreement_repo, investor_repo, invest_repo, mock_email):
    agreement_repo.create.side_effect = lambda a: a
    agreement_repo.update.side_effect = lambda a: a
    return AgreementService(agreement_repo, investor_repo, invest_repo, email=mock_email)


def _signature():
    return AgreementSign(
        signature=SIGNATURE, signatory_name="Asha Verma", signatory_email="asha.verma@example.com"
    )


class TestBuildAgreement:
    def test_content_rendered_and_hashed(self):
        now = datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)
        agreement = build_agreement(make_investor(), make_investment(bonds_purchased=2), now=now)

        assert "Asha Verma" in agreement.content
        assert "₹40,00,000" in agreement.content
        assert "{{" not in agreement.content
        assert agreement.document_hash == document_hash(agreement.content)
        assert agreement.status == AgreementStatus.PENDING
        assert agreement.expires_at == now + timedelta(days=settings.AGREEMENT_EXPIRY_DAYS)

    def test_signing_url(self):
        agreement = make_agreement()
        assert signing_url(agreement).endswith(f"/{AGREEMENT_ID}")


class TestCreateAgreement:
    @pytest.mark.asyncio
    async def test_creates_and_emails(self, service, investor_repo, invest_repo, mock_email):
        investor_repo.get.return_value = make_investor()
        invest_repo.get_by_investor.return_value = [make_investment()]

        agreement = await service.create_agreement(INVESTOR_ID)

        assert agreement.investor_id == INVESTOR_ID
        template, to, fields = mock_email.send_template.await_args.args
        assert template == TemplateName.AGREEMENT
        assert to == "asha.verma@example.com"
        assert fields["agreementUrl"] == signing_url(agreement)

    @pytest.mark.asyncio
    async def test_unknown_investor(self, service, investor_repo):
        investor_repo.get.return_value = None
        with pytest.raises(NotFoundException):
            await service.create_agreement(uuid4())

    @pytest.mark.asyncio
    async def test_email_optional(self, service, investor_repo, invest_repo, mock_email):
        investor_repo.get.return_value = make_investor()
        invest_repo.get_by_investor.return_value = []
        await service.create_agreement(INVESTOR_ID, send_email=False)
        mock_email.send_template.assert_not_awaited()


class TestSignAgreement:
    @pytest.mark.asyncio
    async def test_sign_records_signatory(self, service, agreement_repo):
        agreement_repo.get.return_value = make_agreement()

        signed = await service.sign_agreement(
            AGREEMENT_ID, _signature(), ip_address="10.0.0.7", user_agent="Mozilla/5.0"
        )

        assert signed.status == AgreementStatus.SIGNED
        assert signed.signed_at is not None
        assert signed.signature == SIGNATURE
        assert signed.ip_address == "10.0.0.7"
        assert signed.user_agent == "Mozilla/5.0"

    @pytest.mark.asyncio
    async def test_already_signed(self, service, agreement_repo):
        agreement_repo.get.return_value = make_agreement(status=AgreementStatus.SIGNED)
        with pytest.raises(ConflictException):
            await service.sign_agreement(AGREEMENT_ID, _signature())
        agreement_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired(self, service, agreement_repo):
        agreement_repo.get.return_value = make_agreement(expires_in_days=-1)
        with pytest.raises(BusinessRuleViolation, match="expired"):
            await service.sign_agreement(AGREEMENT_ID, _signature())

    @pytest.mark.asyncio
    async def test_missing(self, service, agreement_repo):
        agreement_repo.get.return_value = None
        with pytest.raises(NotFoundException):
            await service.sign_agreement(uuid4(), _signature())


class TestResendAgreement:
    @pytest.mark.asyncio
    async def test_restarts_window(self, service, agreement_repo, investor_repo, invest_repo, mock_email):
        agreement_repo.get.return_value = make_agreement(expires_in_days=-5)
        investor_repo.get.return_value = make_investor()
        invest_repo.get_by_investor.return_value = []

        agreement = await service.resend_agreement(AGREEMENT_ID)

        assert not agreement.is_expired()
        mock_email.send_template.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_signed_cannot_be_resent(self, service, agreement_repo):
        agreement_repo.get.return_value = make_agreement(status=AgreementStatus.SIGNED)
        with pytest.raises(ConflictException):
            await service.resend_agreement(AGREEMENT_ID)
