"""
Report endpoints.
Sales statistics, outstanding balances and trends.
"""

from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Query

from app.api.deps import ReportServiceDep
from app.schemas.report import (
    SaleStatistics,
    OutstandingResponse,
    TopCustomer,
    RevenuePoint,
)
from app.schemas.sale import SaleResponse


router = APIRouter()


@router.get(
    "/statistics",
    response_model=SaleStatistics,
    summary="Statistiques des ventes",
    description="Nombre de ventes par statut, totaux et solde restant",
)
async def get_statistics(
    reports: ReportServiceDep,
    from_date: date | None = Query(None, description="Date de début"),
    to_date: date | None = Query(None, description="Date de fin"),
) -> SaleStatistics:
    """Obtenir les statistiques des ventes."""
    return SaleStatistics(**await reports.get_statistics(from_date, to_date))


@router.get(
    "/outstanding",
    response_model=OutstandingResponse,
    summary="Ventes avec solde",
    description="Ventes partiellement payées, impayées ou en retard",
)
async def get_outstanding(
    reports: ReportServiceDep,
    from_date: date | None = Query(None, description="Date de début"),
    to_date: date | None = Query(None, description="Date de fin"),
) -> OutstandingResponse:
    """Obtenir les ventes avec un solde restant."""
    sales = await reports.get_with_balance(from_date, to_date)
    return OutstandingResponse(
        items=[SaleResponse.model_validate(s) for s in sales],
        total_balance=sum((s.balance for s in sales), Decimal("0.00")),
    )


@router.get(
    "/overdue",
    response_model=list[SaleResponse],
    summary="Ventes en retard",
    description="Ventes dont l'échéance est dépassée",
)
async def get_overdue(reports: ReportServiceDep) -> list[SaleResponse]:
    """Obtenir les ventes en retard."""
    return [SaleResponse.model_validate(s) for s in await reports.get_overdue()]


@router.get(
    "/near-due",
    response_model=list[SaleResponse],
    summary="Échéances proches",
    description="Ventes à payer dans les prochains jours",
)
async def get_near_due(
    reports: ReportServiceDep,
    days: int | None = Query(None, ge=0, le=90, description="Horizon en jours"),
) -> list[SaleResponse]:
    """Obtenir les ventes dont l'échéance approche."""
    return [SaleResponse.model_validate(s) for s in await reports.get_near_due(days)]


@router.get(
    "/top-customers",
    response_model=list[TopCustomer],
    summary="Meilleurs clients",
    description="Clients classés par montant total d'achats",
)
async def get_top_customers(
    reports: ReportServiceDep,
    limit: int | None = Query(None, ge=1, le=100, description="Nombre de clients"),
) -> list[TopCustomer]:
    """Obtenir les meilleurs clients."""
    return [TopCustomer(**row) for row in await reports.get_top_customers(limit)]


@router.get(
    "/revenue-trend",
    response_model=list[RevenuePoint],
    summary="Évolution du chiffre d'affaires",
    description="Chiffre d'affaires par jour ou par mois",
)
async def get_revenue_trend(
    reports: ReportServiceDep,
    period: str = Query("daily", description="daily ou monthly"),
    from_date: date | None = Query(None, description="Date de début"),
    to_date: date | None = Query(None, description="Date de fin"),
) -> list[RevenuePoint]:
    """Obtenir l'évolution du chiffre d'affaires."""
    rows = await reports.get_revenue_trend(period, from_date, to_date)
    return [RevenuePoint(**row) for row in rows]
