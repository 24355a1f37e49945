"""
Email endpoints.

- POST  /emails/preview                        Render a template without sending
- POST  /emails/welcome/{investor_id}          Re-send the welcome email
- POST  /emails/monthly-report/{investor_id}   Send one monthly report
- POST  /emails/monthly-reports                Send every active investor their report
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.credential import InvestorCredential
from irm.models.investment import Investment
from irm.models.investor import Investor
from irm.models.transaction import Transaction
from irm.repositories.credential_repo import CredentialRepository
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.investor_repo import InvestorRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.common import ErrorResponse, ValidationErrorResponse
from irm.schemas.email import (
    EmailPreviewRequest,
    EmailPreviewResponse,
    EmailSendResponse,
    MonthlyReportsResponse,
)
from irm.services.email_templates import SUBJECTS, TEMPLATES, TemplateName, render
from irm.services.investor_service import InvestorService

router = APIRouter()


def _get_investor_service(db: AsyncSession = Depends(get_db)) -> InvestorService:
    return InvestorService(
        InvestorRepository(Investor, db),
        InvestmentRepository(Investment, db),
        TransactionRepository(Transaction, db),
        CredentialRepository(InvestorCredential, db),
    )


@router.post(
    "/preview",
    response_model=EmailPreviewResponse,
    summary="Preview a rendered email",
    responses={422: {"model": ValidationErrorResponse, "description": "Validation error"}},
)
async def preview_email(preview: EmailPreviewRequest) -> EmailPreviewResponse:
    if preview.template is not None:
        body = TEMPLATES[preview.template]
        subject = preview.subject or SUBJECTS[preview.template]
    else:
        body = preview.body
        subject = preview.subject or ""
    return EmailPreviewResponse(
        subject=render(subject, preview.fields), body=render(body, preview.fields)
    )


@router.post(
    "/welcome/{investor_id}",
    response_model=EmailSendResponse,
    summary="Send the welcome email",
    responses={404: {"model": ErrorResponse, "description": "Investor not found"}},
)
async def send_welcome(
    investor_id: UUID,
    service: InvestorService = Depends(_get_investor_service),
) -> EmailSendResponse:
    investor = await service.get_investor(investor_id)
    sent = await service.send_welcome_email(investor_id)
    return EmailSendResponse(to=investor.email, template=TemplateName.WELCOME, sent=sent)


@router.post(
    "/monthly-report/{investor_id}",
    response_model=EmailSendResponse,
    summary="Send one investor their monthly report",
    responses={
        404: {"model": ErrorResponse, "description": "Investor not found"},
        422: {"model": ErrorResponse, "description": "Investor is inactive"},
    },
)
async def send_monthly_report(
    investor_id: UUID,
    as_of: Optional[date] = Query(None, description="Report date (defaults to today)"),
    service: InvestorService = Depends(_get_investor_service),
) -> EmailSendResponse:
    investor = await service.get_investor(investor_id)
    sent = await service.send_monthly_report(investor_id, as_of)
    return EmailSendResponse(to=investor.email, template=TemplateName.MONTHLY_REPORT, sent=sent)


@router.post(
    "/monthly-reports",
    response_model=MonthlyReportsResponse,
    summary="Send monthly reports to every active investor",
)
async def send_monthly_reports(
    as_of: Optional[date] = Query(None, description="Report date (defaults to today)"),
    service: InvestorService = Depends(_get_investor_service),
) -> MonthlyReportsResponse:
    result = await service.send_monthly_reports(as_of)
    return MonthlyReportsResponse(
        as_of=result.as_of, sent=result.sent, failed=result.failed, skipped=result.skipped
    )
