"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    sales,
    payments,
    reports,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    sales.router,
    prefix="/sales",
    tags=["Ventes"],
)

api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["Paiements"],
)

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["Rapports"],
)
