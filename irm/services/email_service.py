"""
Email service: renders merge-field templates and hands them to an SMTP relay.

When no relay credentials are configured the message is written to the log
instead of being sent, so local and test runs never need a mail server.
Delivery failures are logged and reported as ``False``; a lost notification
never rolls back the operation that triggered it.
"""

import logging
from email.message import EmailMessage
from typing import Any, Dict, Mapping, Optional

import aiosmtplib

from irm.core.config import settings
from irm.core.resilience import retry_async
from irm.services.email_templates import (
    SUBJECTS,
    TEMPLATES,
    TemplateName,
    format_date,
    format_inr,
    render,
)

logger = logging.getLogger(__name__)

# Worth another attempt; refused logins and recipients are not.
SMTP_TRANSIENT_ERRORS = (
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPServerDisconnected,
    aiosmtplib.SMTPTimeoutError,
    TimeoutError,
)


class EmailService:
    """Builds and delivers plain-text notification emails."""

    def __init__(
        self,
        host: str = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        username: str = settings.SMTP_USERNAME,
        password: str = settings.SMTP_PASSWORD,
        from_email: str = settings.EMAIL_FROM,
        from_name: str = settings.EMAIL_FROM_NAME,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    @retry_async(
        SMTP_TRANSIENT_ERRORS,
        attempts=settings.SMTP_MAX_RETRIES + 1,
        base_delay=1.0,
        label="SMTP delivery",
    )
    async def _deliver(self, message: EmailMessage) -> None:
        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=True,
            timeout=settings.SMTP_TIMEOUT,
        )

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """Send one message.  Returns ``True`` when sent or logged."""
        if not self.is_configured:
            logger.info(
                "SMTP not configured; email logged instead of sent\nTO: %s\nSUBJECT: %s\n%s",
                to,
                subject,
                body,
            )
            return True

        message = self.build_message(to, subject, body)
        try:
            await self._deliver(message)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Email to %s failed (%s): %s", to, type(exc).__name__, exc)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_template(
        self,
        name: TemplateName,
        to: str,
        fields: Mapping[str, Any],
        subject: Optional[str] = None,
    ) -> bool:
        body = render(TEMPLATES[name], fields)
        subject = render(subject or SUBJECTS[name], fields)
        return await self.send_email(to, subject, body)


email_service = EmailService()


def investor_fields(investor, investment=None, **extra: Any) -> Dict[str, Any]:
    """Merge fields describing ``investor`` (and optionally one investment)."""
    fields: Dict[str, Any] = {
        "investorName": investor.full_name,
        "firstName": investor.first_name,
        "lastName": investor.last_name,
        "email": investor.email,
        "phone": investor.primary_mobile,
        "investorId": str(investor.id),
        "investorPortalUrl": settings.INVESTOR_PORTAL_URL,
        "adminPortalUrl": settings.ADMIN_PORTAL_URL,
    }
    if investment is not None:
        fields.update(
            investmentAmount=format_inr(investment.invested_amount),
            bondUnits=investment.bonds_purchased,
            investmentDate=format_date(investment.investment_date),
            maturityDate=format_date(investment.maturity_date),
        )
    fields.update(extra)
    return fields
