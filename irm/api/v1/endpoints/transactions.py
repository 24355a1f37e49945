"""
Transaction API endpoints.

- GET   /investments/{id}/transactions          History, oldest first
- POST  /investments/{id}/transactions          Record a manual transaction
- GET   /investments/{id}/transactions/export   CSV statement
- POST  /admin/transactions/generate            Back-fill due disbursements
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from irm.db.session import get_db
from irm.models.investment import Investment
from irm.models.transaction import Transaction
from irm.repositories.investment_repo import InvestmentRepository
from irm.repositories.transaction_repo import TransactionRepository
from irm.schemas.common import ErrorResponse, ValidationErrorResponse
from irm.schemas.transaction import (
    GenerateTransactionsResponse,
    TransactionCreate,
    TransactionResponse,
)
from irm.services.transaction_service import TransactionService

router = APIRouter()


def _get_transaction_service(db: AsyncSession = Depends(get_db)) -> TransactionService:
    return TransactionService(
        TransactionRepository(Transaction, db), InvestmentRepository(Investment, db)
    )


@router.get(
    "/investments/{investment_id}/transactions",
    response_model=List[TransactionResponse],
    summary="Transaction history of an investment",
    responses={404: {"model": ErrorResponse, "description": "Investment not found"}},
)
async def list_transactions(
    investment_id: UUID,
    service: TransactionService = Depends(_get_transaction_service),
) -> List[TransactionResponse]:
    return await service.get_transactions(investment_id)


@router.post(
    "/investments/{investment_id}/transactions",
    response_model=TransactionResponse,
    status_code=201,
    summary="Record a transaction",
    responses={
        404: {"model": ErrorResponse, "description": "Investment not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def record_transaction(
    investment_id: UUID,
    transaction: TransactionCreate,
    service: TransactionService = Depends(_get_transaction_service),
) -> TransactionResponse:
    return await service.record_transaction(investment_id, transaction)


@router.get(
    "/investments/{investment_id}/transactions/export",
    response_class=Response,
    summary="Export transactions as CSV",
    responses={
        200: {"content": {"text/csv": {}}},
        404: {"model": ErrorResponse, "description": "Investment not found"},
    },
)
async def export_transactions(
    investment_id: UUID,
    service: TransactionService = Depends(_get_transaction_service),
) -> Response:
    body = await service.export_csv(investment_id)
    return Response(
        content=body,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="transactions-{investment_id}.csv"'
        },
    )


@router.post(
    "/admin/transactions/generate",
    response_model=GenerateTransactionsResponse,
    summary="Generate due dividend and bonus transactions",
    description="Idempotent: years already paid out are skipped.",
)
async def generate_transactions(
    as_of: Optional[date] = Query(None, description="Generate as of this date (default: today)"),
    service: TransactionService = Depends(_get_transaction_service),
) -> GenerateTransactionsResponse:
    result = await service.generate_disbursements(as_of=as_of)
    return GenerateTransactionsResponse(
        investments_processed=result.investments_processed,
        dividends_created=result.dividends_created,
        bonuses_created=result.bonuses_created,
        as_of=result.as_of,
    )
