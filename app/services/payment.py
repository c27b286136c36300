"""
Payment service.
Handles the payment lifecycle of a sale: recording and removing payments,
recomputing the sale's payment status, debt due dates and summaries.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func
from fastapi import HTTPException, status
import logging

from app.core.config import settings
from app.core.exceptions import InvalidArgumentError, PersistenceError
from app.models.base import utc_now, ensure_utc
from app.models.payment import Payment, PaymentMethod
from app.models.sale import Sale, PaymentStatus, OPEN_STATUSES
from app.schemas.payment import PaymentCreate
from app.schemas.sale import PaymentSummary
from app.services.filters import date_range_clauses

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PaymentService:
    """
    Service for payment operations.

    Every operation that changes the payments of a sale recomputes the
    sale's status before returning. Operations accept an explicit ``now``;
    when omitted the service clock is used.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
        near_due_days: int = settings.NEAR_DUE_DAYS,
    ):
        self.db = db
        self.clock = clock
        self.near_due_days = near_due_days

    def _now(self, now: datetime | None) -> datetime:
        return ensure_utc(now) if now is not None else self.clock()

    async def _sum_paid(self, sale_id: int) -> Decimal:
        """Sum of payments for a sale, read inside the current transaction."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.sale_id == sale_id)
        )
        return _to_decimal(result.scalar())

    async def recompute_status(
        self,
        sale: Sale,
        now: datetime | None = None,
    ) -> PaymentStatus:
        """
        Recompute and store the payment status of a sale.

        Args:
            sale: Sale to update
            now: Reference time for the due date check

        Returns:
            The new payment status
        """
        now = self._now(now)
        previous = sale.payment_status
        total_paid = await self._sum_paid(sale.id)
        new_status = sale.apply_payment_status(total_paid, now)
        await self.db.flush()

        if new_status != previous:
            logger.info(
                f"Statut de paiement de la vente {sale.sale_number}: "
                f"{PaymentStatus(previous).value} -> {new_status.value}"
            )
        return new_status

    @staticmethod
    def _build_payment(data: PaymentCreate, now: datetime) -> Payment:
        return Payment(
            method=data.method,
            amount=data.amount,
            reference=data.reference,
            notes=data.notes,
            paid_at=data.paid_at or now,
        )

    async def _fail(self, sale_number: str, action: str, exc: SQLAlchemyError) -> None:
        await self.db.rollback()
        logger.error(
            f"Erreur lors de {action} pour la vente {sale_number}: {exc}",
            exc_info=True,
        )
        raise PersistenceError(
            f"Échec de {action} pour la vente {sale_number}"
        ) from exc

    async def add_payment(
        self,
        sale: Sale,
        data: PaymentCreate,
        now: datetime | None = None,
    ) -> Payment:
        """
        Record a payment and update the sale status in one unit.

        Args:
            sale: Sale receiving the payment
            data: Payment data
            now: Reference time

        Returns:
            Created payment

        Raises:
            PersistenceError: If the payment could not be stored
        """
        now = self._now(now)
        sale_number = sale.sale_number

        try:
            payment = self._build_payment(data, now)
            sale.payments.append(payment)
            await self.db.flush()
            await self.recompute_status(sale, now)
            await self.db.refresh(payment)
        except SQLAlchemyError as exc:
            await self._fail(sale_number, "l'enregistrement du paiement", exc)

        logger.info(
            f"Paiement de {payment.amount} ({payment.method_label}) "
            f"enregistré pour la vente {sale_number}"
        )
        return payment

    async def add_multiple_payments(
        self,
        sale: Sale,
        payments_data: list[PaymentCreate],
        now: datetime | None = None,
    ) -> list[Payment]:
        """
        Record several payments (split payments) atomically.

        The status is recomputed once after the whole batch. If any payment
        fails to be stored, none of them are kept.
        """
        now = self._now(now)
        sale_number = sale.sale_number

        try:
            payments = [self._build_payment(data, now) for data in payments_data]
            sale.payments.extend(payments)
            await self.db.flush()
            await self.recompute_status(sale, now)
            for payment in payments:
                await self.db.refresh(payment)
        except SQLAlchemyError as exc:
            await self._fail(sale_number, "l'enregistrement des paiements", exc)

        logger.info(f"{len(payments)} paiement(s) enregistré(s) pour la vente {sale_number}")
        return payments

    async def delete(self, payment: Payment, now: datetime | None = None) -> Sale:
        """
        Delete a payment and update its sale status.

        Returns:
            The owning sale with its recomputed status
        """
        now = self._now(now)
        payment_id = payment.id
        sale_id = payment.sale_id

        try:
            result = await self.db.execute(select(Sale).where(Sale.id == sale_id))
            sale = result.scalar_one()
            sale.payments.remove(payment)
            await self.db.flush()
            await self.recompute_status(sale, now)
        except SQLAlchemyError as exc:
            await self._fail(str(sale_id), "la suppression du paiement", exc)

        logger.info(f"Paiement {payment_id} supprimé de la vente {sale.sale_number}")
        return sale

    async def set_as_debt(
        self,
        sale: Sale,
        days: int = settings.DEFAULT_DEBT_DAYS,
        now: datetime | None = None,
    ) -> Sale:
        """
        Give an unpaid or partially paid sale a due date ``days`` from now.

        Fully paid and overdue sales are left untouched.

        Raises:
            InvalidArgumentError: If days is less than 1
        """
        if days < 1:
            raise InvalidArgumentError("Le nombre de jours doit être au moins 1")

        if sale.payment_status not in OPEN_STATUSES:
            return sale

        now = self._now(now)
        sale.due_date = now + timedelta(days=days)
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            await self._fail(sale.sale_number, "la mise en crédit", exc)

        logger.info(f"Vente {sale.sale_number} mise en crédit, échéance le {sale.due_date:%Y-%m-%d}")
        return sale

    def is_near_due(self, sale: Sale, now: datetime | None = None) -> bool:
        """
        Check if an open sale is due within the near-due horizon.
        The remaining time is counted in whole days, truncated.
        """
        if sale.payment_status not in OPEN_STATUSES or sale.due_date is None:
            return False
        now = self._now(now)
        due_date = ensure_utc(sale.due_date)
        if due_date < now:
            return False
        return (due_date - now).days <= self.near_due_days

    def is_overdue(self, sale: Sale) -> bool:
        return sale.payment_status == PaymentStatus.OVERDUE

    def get_payment_summary(self, sale: Sale, now: datetime | None = None) -> PaymentSummary:
        """Payment standing of a sale. Read only."""
        return PaymentSummary(
            sale_id=sale.id,
            total_amount=sale.total_amount,
            total_paid=sale.total_paid,
            balance=sale.balance,
            payment_progress=sale.payment_progress,
            is_fully_paid=sale.is_fully_paid,
            is_overdue=self.is_overdue(sale),
            is_near_due=self.is_near_due(sale, now),
            due_date=sale.due_date,
            payments_count=len(sale.payments),
        )

    async def refresh_overdue_statuses(self, now: datetime | None = None) -> int:
        """
        Recompute open sales whose due date has passed.

        Statuses only change when payments change, so a sale can stay
        partial or unpaid after its due date until this sweep runs.

        Returns:
            Number of sales whose status changed
        """
        now = self._now(now)
        updated = 0

        try:
            result = await self.db.execute(
                select(Sale).where(
                    Sale.payment_status.in_(list(OPEN_STATUSES)),
                    Sale.due_date.is_not(None),
                    Sale.due_date < now,
                )
            )
            for sale in result.scalars().all():
                previous = sale.payment_status
                if await self.recompute_status(sale, now) != previous:
                    updated += 1
        except SQLAlchemyError as exc:
            await self._fail("*", "la mise à jour des échéances", exc)

        if updated:
            logger.info(f"{updated} vente(s) passée(s) en retard de paiement")
        return updated

    async def get_by_id(self, payment_id: int) -> Payment | None:
        """Get payment by ID."""
        result = await self.db.execute(
            select(Payment).where(Payment.id == payment_id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, payment_id: int) -> Payment:
        """Get payment by ID or raise 404."""
        payment = await self.get_by_id(payment_id)
        if not payment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Paiement non trouvé",
            )
        return payment

    async def list_by_sale(self, sale_id: int) -> list[Payment]:
        """List all payments for a sale, most recent first."""
        sale_result = await self.db.execute(
            select(Sale.id).where(Sale.id == sale_id)
        )
        if sale_result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vente non trouvée",
            )

        result = await self.db.execute(
            select(Payment)
            .where(Payment.sale_id == sale_id)
            .order_by(Payment.paid_at.desc())
        )
        return list(result.scalars().all())

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        from_date: date | None = None,
        to_date: date | None = None,
        method: PaymentMethod | None = None,
    ) -> tuple[list[Payment], int]:
        """List all payments with pagination and filters."""
        clauses = date_range_clauses(Payment.paid_at, from_date, to_date)
        if method:
            clauses.append(Payment.method == method)

        query = select(Payment).where(*clauses)
        count_query = select(func.count(Payment.id)).where(*clauses)

        # Get total count
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        # Get paginated results
        query = query.order_by(Payment.paid_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(query)
        payments = list(result.scalars().all())

        return payments, total

    async def get_stats(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> dict:
        """Get payment totals by method."""
        clauses = date_range_clauses(Payment.paid_at, from_date, to_date)

        result = await self.db.execute(
            select(Payment.method, func.sum(Payment.amount))
            .where(*clauses)
            .group_by(Payment.method)
        )
        by_method = {method.value: Decimal("0.00") for method in PaymentMethod}
        for method, amount in result.all():
            by_method[PaymentMethod(method).value] = _to_decimal(amount)

        return {
            "by_method": by_method,
            "total": sum(by_method.values(), Decimal("0.00")),
        }
