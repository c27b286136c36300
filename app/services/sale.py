"""
Sale service.
Handles sale registration, lookup and listing.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
import logging

from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.models.base import utc_now, ensure_utc
from app.models.sale import Sale, PaymentStatus
from app.schemas.sale import SaleCreate
from app.services.filters import date_range_clauses

logger = logging.getLogger(__name__)


class SaleService:
    """Service for sale operations."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    async def _generate_sale_number(self, now: datetime) -> str:
        """
        Generate unique sale number.
        Format: SALE-{YYYYMMDD}-{sequence}
        """
        prefix = f"{settings.SALE_NUMBER_PREFIX}-{now:%Y%m%d}-"

        # Continue after the highest sequence used today, deleted sales leave gaps
        result = await self.db.execute(
            select(Sale.sale_number).where(
                Sale.sale_number.like(f"{prefix}%"),
            )
        )
        last = max(
            (int(number[len(prefix):]) for number in result.scalars().all()),
            default=0,
        )

        return f"{prefix}{str(last + 1).zfill(3)}"

    async def create(self, data: SaleCreate, now: datetime | None = None) -> Sale:
        """
        Register a sale with totals computed by the order workflow.

        Args:
            data: Sale data
            now: Reference time for numbering, timestamps and the initial status

        Returns:
            Created sale

        Raises:
            PersistenceError: If the sale could not be stored
        """
        now = ensure_utc(now) if now is not None else self.clock()

        if data.order_id is not None:
            existing = await self.db.execute(
                select(Sale.id).where(Sale.order_id == data.order_id)
            )
            if existing.scalar_one_or_none() is not None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Une vente existe déjà pour cette commande",
                )

        sale = Sale(
            sale_number=await self._generate_sale_number(now),
            order_id=data.order_id,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            total_amount=data.total_amount,
            cost_amount=data.cost_amount,
            profit_amount=data.profit_amount,
            due_date=data.due_date,
            payments=[],
            created_at=now,
            updated_at=now,
        )
        sale.apply_payment_status(Decimal("0.00"), now)
        sale_number = sale.sale_number

        try:
            self.db.add(sale)
            await self.db.flush()
            await self.db.refresh(sale)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Erreur lors de la création de la vente {sale_number}: {exc}", exc_info=True)
            raise PersistenceError(f"Échec de la création de la vente {sale_number}") from exc

        logger.info(f"Vente {sale.sale_number} créée pour {sale.customer_name} ({sale.total_amount})")
        return sale

    async def get_by_id(self, sale_id: int) -> Sale | None:
        """Get sale by ID with its payments loaded."""
        result = await self.db.execute(
            select(Sale).where(Sale.id == sale_id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, sale_id: int) -> Sale:
        """Get sale by ID or raise 404."""
        sale = await self.get_by_id(sale_id)
        if not sale:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vente non trouvée",
            )
        return sale

    async def get_by_sale_number(self, sale_number: str) -> Sale | None:
        result = await self.db.execute(
            select(Sale).where(Sale.sale_number == sale_number)
        )
        return result.scalar_one_or_none()

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        payment_status: PaymentStatus | None = None,
        search: str | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> tuple[list[Sale], int]:
        """
        List sales with pagination and filters.
        """
        clauses = date_range_clauses(Sale.created_at, from_date, to_date)

        if payment_status:
            clauses.append(Sale.payment_status == payment_status)

        if search:
            search_filter = f"%{search}%"
            clauses.append(
                (Sale.customer_name.ilike(search_filter)) |
                (Sale.customer_phone.ilike(search_filter)) |
                (Sale.sale_number.ilike(search_filter))
            )

        # Get total count
        total_result = await self.db.execute(
            select(func.count(Sale.id)).where(*clauses)
        )
        total = total_result.scalar() or 0

        # Get paginated results
        result = await self.db.execute(
            select(Sale)
            .where(*clauses)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .offset(skip)
            .limit(limit)
        )
        sales = list(result.scalars().all())

        return sales, total

    async def delete(self, sale: Sale) -> None:
        """Delete a sale and its payments."""
        sale_number = sale.sale_number
        await self.db.delete(sale)
        await self.db.flush()
        logger.info(f"Vente {sale_number} supprimée")
