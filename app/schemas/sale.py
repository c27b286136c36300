"""
Sale schemas for request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import Field

from app.core.config import settings
from app.schemas.base import BaseSchema, PaginatedResponse
from app.schemas.payment import PaymentResponse
from app.models.sale import PaymentStatus


class PaymentStatusInfo(BaseSchema):
    """Presentation metadata of a payment status."""

    value: PaymentStatus
    label: str
    color: str
    icon: str
    has_balance: bool
    requires_action: bool


class SaleBase(BaseSchema):
    """Base sale schema."""

    customer_name: str = Field(..., min_length=1, max_length=150)
    customer_phone: str | None = Field(None, max_length=20)
    total_amount: Decimal = Field(..., ge=0)
    cost_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    profit_amount: Decimal = Decimal("0.00")


class SaleCreate(SaleBase):
    """Schema for creating a sale from a confirmed order."""

    order_id: int | None = None
    due_date: datetime | None = None


class SaleResponse(SaleBase):
    """Sale response schema."""

    id: int
    sale_number: str
    order_id: int | None
    payment_status: PaymentStatus
    payment_status_info: PaymentStatusInfo
    due_date: datetime | None
    total_paid: Decimal
    balance: Decimal
    is_fully_paid: bool
    payment_progress: Decimal
    profit_percentage: Decimal
    payments: list[PaymentResponse]
    created_at: datetime
    updated_at: datetime


class SaleListResponse(PaginatedResponse):
    """Paginated sale list response."""

    items: list[SaleResponse]


class DebtRequest(BaseSchema):
    """Schema for turning a sale into a debt with a due date."""

    days: int = settings.DEFAULT_DEBT_DAYS


class PaymentSummary(BaseSchema):
    """Payment standing of one sale."""

    sale_id: int
    total_amount: Decimal
    total_paid: Decimal
    balance: Decimal
    payment_progress: Decimal
    is_fully_paid: bool
    is_overdue: bool
    is_near_due: bool
    due_date: datetime | None
    payments_count: int


class StatusRefreshResponse(BaseSchema):
    """Result of the overdue sweep."""

    updated: int
