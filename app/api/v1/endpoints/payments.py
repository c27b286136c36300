"""
Payment management endpoints.
Record, list and delete sale payments.
"""

from datetime import date
from fastapi import APIRouter, Query, status

from app.api.deps import SaleServiceDep, PaymentServiceDep
from app.schemas.payment import (
    PaymentCreate,
    PaymentBatchCreate,
    PaymentResponse,
    PaymentListResponse,
)
from app.schemas.base import MessageResponse, PaginatedResponse
from app.models.payment import PaymentMethod


router = APIRouter()


@router.post(
    "/sale/{sale_id}",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enregistrer un paiement",
    description="Enregistrer un paiement pour une vente",
)
async def create_payment(
    sale_id: int,
    data: PaymentCreate,
    sales: SaleServiceDep,
    payments: PaymentServiceDep,
) -> PaymentResponse:
    """Create a new payment."""
    sale = await sales.get_or_404(sale_id)
    payment = await payments.add_payment(sale, data)
    return PaymentResponse.model_validate(payment)


@router.post(
    "/sale/{sale_id}/batch",
    response_model=list[PaymentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Enregistrer plusieurs paiements",
    description="Enregistrer un paiement fractionné en une seule opération",
)
async def create_payments(
    sale_id: int,
    data: PaymentBatchCreate,
    sales: SaleServiceDep,
    payments: PaymentServiceDep,
) -> list[PaymentResponse]:
    """Create several payments at once."""
    sale = await sales.get_or_404(sale_id)
    created = await payments.add_multiple_payments(sale, data.payments)
    return [PaymentResponse.model_validate(p) for p in created]


@router.get(
    "/sale/{sale_id}",
    response_model=list[PaymentResponse],
    summary="Paiements d'une vente",
    description="Obtenir tous les paiements d'une vente",
)
async def list_sale_payments(
    sale_id: int,
    payments: PaymentServiceDep,
) -> list[PaymentResponse]:
    """List all payments for a sale."""
    items = await payments.list_by_sale(sale_id)
    return [PaymentResponse.model_validate(p) for p in items]


@router.get(
    "",
    response_model=PaymentListResponse,
    summary="Lister les paiements",
    description="Obtenir la liste paginée de tous les paiements",
)
async def list_payments(
    payments: PaymentServiceDep,
    page: int = Query(1, ge=1, description="Numéro de page"),
    per_page: int = Query(20, ge=1, le=100, description="Éléments par page"),
    from_date: date | None = Query(None, description="Date de début"),
    to_date: date | None = Query(None, description="Date de fin"),
    method: PaymentMethod | None = Query(None, description="Filtrer par méthode"),
) -> PaymentListResponse:
    """List all payments with pagination and filters."""
    skip = (page - 1) * per_page

    items, total = await payments.list(
        skip=skip,
        limit=per_page,
        from_date=from_date,
        to_date=to_date,
        method=method,
    )

    return PaymentListResponse(
        items=[PaymentResponse.model_validate(p) for p in items],
        total=total,
        page=page,
        per_page=per_page,
        pages=PaginatedResponse.count_pages(total, per_page),
    )


@router.get(
    "/stats",
    summary="Statistiques des paiements",
    description="Obtenir les totaux des paiements par méthode",
)
async def get_payment_stats(
    payments: PaymentServiceDep,
    from_date: date | None = Query(None, description="Date de début"),
    to_date: date | None = Query(None, description="Date de fin"),
) -> dict:
    """Get payment statistics."""
    return await payments.get_stats(from_date, to_date)


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    summary="Détails d'un paiement",
    description="Obtenir les détails d'un paiement",
)
async def get_payment(
    payment_id: int,
    payments: PaymentServiceDep,
) -> PaymentResponse:
    """Get payment by ID."""
    payment = await payments.get_or_404(payment_id)
    return PaymentResponse.model_validate(payment)


@router.delete(
    "/{payment_id}",
    response_model=MessageResponse,
    summary="Supprimer un paiement",
    description="Supprimer un paiement (met à jour le statut de la vente)",
)
async def delete_payment(
    payment_id: int,
    payments: PaymentServiceDep,
) -> MessageResponse:
    """Delete a payment."""
    payment = await payments.get_or_404(payment_id)
    await payments.delete(payment)
    return MessageResponse(message="Paiement supprimé avec succès")
