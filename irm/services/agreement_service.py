"""
Investment agreements: generation, signature capture and resend.

An agreement's text is rendered from ``AGREEMENT_DOCUMENT`` for one investor
(and their latest investment) and fingerprinted with SHA-256, so the signed
document can later be checked against what was sent.  It expires
``AGREEMENT_EXPIRY_DAYS`` after it was (re)sent.
"""

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from irm.core.config import settings
from irm.core.exceptions import BusinessRuleViolation, ConflictException, NotFoundException
from irm.models.agreement import Agreement, AgreementStatus
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.repositories.agreement_repo import AgreementRepository
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.schemas.agreement import AgreementSign
from irm.services.email_service import EmailService, email_service, investor_fields
from irm.services.email_templates import AGREEMENT_DOCUMENT, TemplateName, render

logger = logging.getLogger(__name__)


def document_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def build_agreement(
    investor: Investor, investment: Optional[Investment] = None, now: Optional[datetime] = None
) -> Agreement:
    """A new *Pending* agreement for ``investor``; not persisted."""
    now = now or datetime.now(timezone.utc)
    content = render(AGREEMENT_DOCUMENT, investor_fields(investor, investment), today=now.date())
    return Agreement(
        investor_id=investor.id,
        content=content,
        document_hash=document_hash(content),
        status=AgreementStatus.PENDING,
        sent_at=now,
        expires_at=now + timedelta(days=settings.AGREEMENT_EXPIRY_DAYS),
    )


def signing_url(agreement: Agreement) -> str:
    return f"{settings.AGREEMENT_BASE_URL.rstrip('/')}/{agreement.id}"


class AgreementService:
    def __init__(
        self,
        agreement_repo: AgreementRepository,
        investor_repo: InvestorRepository,
        investment_repo: InvestmentRepository,
        email: EmailService = email_service,
    ):
        self._repo = agreement_repo
        self._investor_repo = investor_repo
        self._investment_repo = investment_repo
        self._email = email

    async def get_agreement(self, agreement_id: UUID) -> Agreement:
        agreement = await self._repo.get(agreement_id)
        if agreement is None:
            raise NotFoundException("Agreement", agreement_id)
        return agreement

    async def list_for_investor(self, investor_id: UUID) -> List[Agreement]:
        if await self._investor_repo.get(investor_id) is None:
            raise NotFoundException("Investor", investor_id)
        return await self._repo.get_by_investor(investor_id)

    async def send_agreement_email(
        self, investor: Investor, agreement: Agreement, investment: Optional[Investment] = None
    ) -> bool:
        fields = investor_fields(investor, investment, agreementUrl=signing_url(agreement))
        return await self._email.send_template(TemplateName.AGREEMENT, investor.email, fields)

    async def _latest_investment(self, investor_id: UUID) -> Optional[Investment]:
        investments = await self._investment_repo.get_by_investor(investor_id, limit=1)
        return investments[0] if investments else None

    async def create_agreement(self, investor_id: UUID, send_email: bool = True) -> Agreement:
        investor = await self._investor_repo.get(investor_id)
        if investor is None:
            raise NotFoundException("Investor", investor_id)

        investment = await self._latest_investment(investor_id)
        agreement = await self._repo.create(build_agreement(investor, investment))
        logger.info("Created agreement %s for investor %s", agreement.id, investor_id)
        if send_email:
            await self.send_agreement_email(investor, agreement, investment)
        return agreement

    async def sign_agreement(
        self,
        agreement_id: UUID,
        sign_in: AgreementSign,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Agreement:
        """
        Record the signature.  *Pending* → *Signed* happens exactly once.

        Raises 409 when already signed and 422 when the signing window has
        expired.
        """
        agreement = await self.get_agreement(agreement_id)
        if agreement.status == AgreementStatus.SIGNED:
            raise ConflictException(f"Agreement '{agreement_id}' is already signed")
        now = datetime.now(timezone.utc)
        if agreement.is_expired(now):
            raise BusinessRuleViolation(
                f"Agreement '{agreement_id}' expired on {agreement.expires_at:%Y-%m-%d}; "
                "ask for it to be resent"
            )

        agreement.status = AgreementStatus.SIGNED
        agreement.signed_at = now
        agreement.signature = sign_in.signature
        agreement.signatory_name = sign_in.signatory_name
        agreement.signatory_email = str(sign_in.signatory_email)
        agreement.ip_address = ip_address
        agreement.user_agent = (user_agent or "")[:512] or None
        agreement = await self._repo.update(agreement)
        logger.info("Agreement %s signed by %s", agreement.id, agreement.signatory_name)
        return agreement

    async def resend_agreement(self, agreement_id: UUID) -> Agreement:
        """Restart the signing window and email the link again."""
        agreement = await self.get_agreement(agreement_id)
        if agreement.status == AgreementStatus.SIGNED:
            raise ConflictException(f"Agreement '{agreement_id}' is already signed")

        investor = await self._investor_repo.get(agreement.investor_id)
        if investor is None:
            raise NotFoundException("Investor", agreement.investor_id)

        now = datetime.now(timezone.utc)
        agreement.sent_at = now
        agreement.expires_at = now + timedelta(days=settings.AGREEMENT_EXPIRY_DAYS)
        agreement = await self._repo.update(agreement)
        await self.send_agreement_email(
            investor, agreement, await self._latest_investment(investor.id)
        )
        logger.info("Agreement %s resent to %s", agreement.id, investor.email)
        return agreement
