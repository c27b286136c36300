"""
Sale management endpoints.
Registration, lookup, payment summary and debt handling.
"""

from datetime import date
from fastapi import APIRouter, Query, status

from app.api.deps import SaleServiceDep, PaymentServiceDep
from app.schemas.sale import (
    SaleCreate,
    SaleResponse,
    SaleListResponse,
    DebtRequest,
    PaymentSummary,
    StatusRefreshResponse,
)
from app.schemas.base import MessageResponse, PaginatedResponse
from app.models.sale import PaymentStatus


router = APIRouter()


@router.post(
    "",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enregistrer une vente",
    description="Enregistrer une vente à partir d'une commande confirmée",
)
async def create_sale(
    data: SaleCreate,
    sales: SaleServiceDep,
) -> SaleResponse:
    """Create a new sale."""
    sale = await sales.create(data)
    return SaleResponse.model_validate(sale)


@router.get(
    "",
    response_model=SaleListResponse,
    summary="Lister les ventes",
    description="Obtenir la liste paginée des ventes",
)
async def list_sales(
    sales: SaleServiceDep,
    page: int = Query(1, ge=1, description="Numéro de page"),
    per_page: int = Query(20, ge=1, le=100, description="Éléments par page"),
    payment_status: PaymentStatus | None = Query(None, description="Filtrer par statut de paiement"),
    search: str | None = Query(None, description="Nom, téléphone ou numéro de vente"),
    from_date: date | None = Query(None, description="Date de début"),
    to_date: date | None = Query(None, description="Date de fin"),
) -> SaleListResponse:
    """List all sales with pagination and filters."""
    skip = (page - 1) * per_page

    items, total = await sales.list(
        skip=skip,
        limit=per_page,
        payment_status=payment_status,
        search=search,
        from_date=from_date,
        to_date=to_date,
    )

    return SaleListResponse(
        items=[SaleResponse.model_validate(s) for s in items],
        total=total,
        page=page,
        per_page=per_page,
        pages=PaginatedResponse.count_pages(total, per_page),
    )


@router.post(
    "/refresh-statuses",
    response_model=StatusRefreshResponse,
    summary="Mettre à jour les retards",
    description="Recalculer le statut des ventes dont l'échéance est dépassée",
)
async def refresh_statuses(
    payments: PaymentServiceDep,
) -> StatusRefreshResponse:
    """Run the overdue sweep."""
    updated = await payments.refresh_overdue_statuses()
    return StatusRefreshResponse(updated=updated)


@router.get(
    "/{sale_id}",
    response_model=SaleResponse,
    summary="Détails d'une vente",
    description="Obtenir les détails d'une vente et ses paiements",
)
async def get_sale(
    sale_id: int,
    sales: SaleServiceDep,
) -> SaleResponse:
    """Get sale by ID."""
    sale = await sales.get_or_404(sale_id)
    return SaleResponse.model_validate(sale)


@router.get(
    "/{sale_id}/summary",
    response_model=PaymentSummary,
    summary="Situation de paiement",
    description="Obtenir le résumé des paiements d'une vente",
)
async def get_payment_summary(
    sale_id: int,
    sales: SaleServiceDep,
    payments: PaymentServiceDep,
) -> PaymentSummary:
    """Get the payment summary of a sale."""
    sale = await sales.get_or_404(sale_id)
    return payments.get_payment_summary(sale)


@router.post(
    "/{sale_id}/debt",
    response_model=SaleResponse,
    summary="Mettre en crédit",
    description="Fixer une échéance de paiement pour le solde restant",
)
async def set_as_debt(
    sale_id: int,
    data: DebtRequest,
    sales: SaleServiceDep,
    payments: PaymentServiceDep,
) -> SaleResponse:
    """Give a sale a due date."""
    sale = await sales.get_or_404(sale_id)
    sale = await payments.set_as_debt(sale, data.days)
    return SaleResponse.model_validate(sale)


@router.delete(
    "/{sale_id}",
    response_model=MessageResponse,
    summary="Supprimer une vente",
    description="Supprimer une vente et ses paiements",
)
async def delete_sale(
    sale_id: int,
    sales: SaleServiceDep,
) -> MessageResponse:
    """Delete a sale."""
    sale = await sales.get_or_404(sale_id)
    await sales.delete(sale)
    return MessageResponse(message="Vente supprimée avec succès")
