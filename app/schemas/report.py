"""
Report schemas.
"""

from datetime import date
from decimal import Decimal

from app.schemas.base import BaseSchema
from app.schemas.sale import SaleResponse


class SaleStatistics(BaseSchema):
    """Aggregate figures over a set of sales."""

    total_sales: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    fully_paid_count: int
    partial_paid_count: int
    unpaid_count: int
    overdue_count: int
    outstanding_balance: Decimal


class OutstandingResponse(BaseSchema):
    """Sales with an outstanding balance and their total."""

    items: list[SaleResponse]
    total_balance: Decimal


class TopCustomer(BaseSchema):
    customer_name: str
    customer_phone: str | None
    total_purchased: Decimal
    total_orders: int


class RevenuePoint(BaseSchema):
    """Revenue of one period (a day or the first day of a month)."""

    period: date
    revenue: Decimal
    sales_count: int
