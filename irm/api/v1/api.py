"""
V1 API router aggregation.

``main.py`` mounts ``api_router`` at ``/api/v1``.  Routers whose paths
span several resources (``/investors/{id}/investments``,
``/investments/{id}/transactions``, ...) define full paths and are mounted
without a prefix.
"""

from fastapi import APIRouter

from irm.api.v1.endpoints import (
    agreements,
    auth,
    backups,
    dashboard,
    emails,
    investments,
    investors,
    returns,
    transactions,
)

api_router = APIRouter()

api_router.include_router(investors.router, prefix="/investors", tags=["Investors"])
api_router.include_router(investments.router, tags=["Investments"])
api_router.include_router(transactions.router, tags=["Transactions"])
api_router.include_router(returns.router, prefix="/returns", tags=["Returns"])
api_router.include_router(dashboard.router, tags=["Dashboard"])
api_router.include_router(agreements.router, tags=["Agreements"])
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(backups.router, prefix="/backups", tags=["Backups"])
api_router.include_router(emails.router, prefix="/emails", tags=["Emails"])
