"""
Report service.
Read-only aggregates over sales: statistics, outstanding balances,
overdue and near-due lists, top customers and revenue trends.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.config import settings
from app.core.exceptions import InvalidArgumentError
from app.models.base import utc_now, ensure_utc
from app.models.sale import Sale, PaymentStatus, OPEN_STATUSES
from app.services.filters import date_range_clauses


TREND_PERIODS = ("daily", "monthly")


class ReportService:
    """Service for sale reports."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    async def _sales_where(self, *clauses) -> List[Sale]:
        result = await self.db.execute(
            select(Sale).where(*clauses).order_by(Sale.created_at.desc(), Sale.id.desc())
        )
        return list(result.scalars().all())

    async def get_with_balance(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> List[Sale]:
        """Sales that still have something to pay."""
        return await self._sales_where(
            Sale.payment_status.in_(list(PaymentStatus.with_balance())),
            *date_range_clauses(Sale.created_at, from_date, to_date),
        )

    async def get_outstanding_balance(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> Decimal:
        """Total balance of sales with an outstanding status."""
        sales = await self.get_with_balance(from_date, to_date)
        return sum((sale.balance for sale in sales), Decimal("0.00"))

    async def get_overdue(self) -> List[Sale]:
        return await self._sales_where(Sale.payment_status == PaymentStatus.OVERDUE)

    async def get_near_due(
        self,
        days: int | None = None,
        now: datetime | None = None,
    ) -> List[Sale]:
        """
        Open sales due within ``days`` whole days from now, past due dates excluded.
        """
        days = settings.NEAR_DUE_DAYS if days is None else days
        now = ensure_utc(now) if now is not None else self.clock()
        return await self._sales_where(
            Sale.payment_status.in_(list(OPEN_STATUSES)),
            Sale.due_date.is_not(None),
            Sale.due_date >= now,
            # (due_date - now).days <= days
            Sale.due_date < now + timedelta(days=days + 1),
        )

    async def get_statistics(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> Dict[str, Any]:
        """
        Get sales statistics.

        Returns:
            Counts by payment status, money totals and outstanding balance
        """
        clauses = date_range_clauses(Sale.created_at, from_date, to_date)

        totals_result = await self.db.execute(
            select(
                func.count(Sale.id),
                func.coalesce(func.sum(Sale.total_amount), 0),
                func.coalesce(func.sum(Sale.cost_amount), 0),
                func.coalesce(func.sum(Sale.profit_amount), 0),
            ).where(*clauses)
        )
        count, revenue, cost, profit = totals_result.one()

        status_result = await self.db.execute(
            select(Sale.payment_status, func.count(Sale.id))
            .where(*clauses)
            .group_by(Sale.payment_status)
        )
        by_status = {status: 0 for status in PaymentStatus}
        for payment_status, status_count in status_result.all():
            by_status[PaymentStatus(payment_status)] = status_count

        return {
            "total_sales": count or 0,
            "total_revenue": Decimal(str(revenue)),
            "total_cost": Decimal(str(cost)),
            "total_profit": Decimal(str(profit)),
            "fully_paid_count": by_status[PaymentStatus.FULLY_PAID],
            "partial_paid_count": by_status[PaymentStatus.PARTIAL],
            "unpaid_count": by_status[PaymentStatus.NO_PAYMENT],
            "overdue_count": by_status[PaymentStatus.OVERDUE],
            "outstanding_balance": await self.get_outstanding_balance(from_date, to_date),
        }

    async def get_top_customers(self, limit: int | None = None) -> List[Dict[str, Any]]:
        """Customers ranked by total purchase amount."""
        limit = settings.TOP_CUSTOMERS_LIMIT if limit is None else limit
        total_purchased = func.sum(Sale.total_amount).label("total_purchased")

        result = await self.db.execute(
            select(
                Sale.customer_name,
                Sale.customer_phone,
                total_purchased,
                func.count(Sale.id).label("total_orders"),
            )
            .group_by(Sale.customer_name, Sale.customer_phone)
            .order_by(total_purchased.desc())
            .limit(limit)
        )

        return [
            {
                "customer_name": row.customer_name,
                "customer_phone": row.customer_phone,
                "total_purchased": Decimal(str(row.total_purchased)),
                "total_orders": row.total_orders,
            }
            for row in result.all()
        ]

    async def get_revenue_trend(
        self,
        period: str = "daily",
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> List[Dict[str, Any]]:
        """
        Get revenue grouped by day or by month.

        Raises:
            InvalidArgumentError: If the period is not supported
        """
        if period not in TREND_PERIODS:
            raise InvalidArgumentError(
                f"Période inconnue '{period}', valeurs possibles: {', '.join(TREND_PERIODS)}"
            )

        result = await self.db.execute(
            select(Sale.created_at, Sale.total_amount)
            .where(*date_range_clauses(Sale.created_at, from_date, to_date))
        )

        revenue: Dict[date, Decimal] = defaultdict(lambda: Decimal("0.00"))
        counts: Dict[date, int] = defaultdict(int)
        for created_at, amount in result.all():
            day = ensure_utc(created_at).date()
            key = day if period == "daily" else day.replace(day=1)
            revenue[key] += amount
            counts[key] += 1

        return [
            {"period": key, "revenue": revenue[key], "sales_count": counts[key]}
            for key in sorted(revenue)
        ]
