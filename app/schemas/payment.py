"""
Payment schemas for request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import Field

from app.schemas.base import BaseSchema, PaginatedResponse
from app.models.payment import PaymentMethod


class PaymentBase(BaseSchema):
    """Base payment schema."""

    amount: Decimal = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH
    reference: str | None = Field(None, max_length=100)
    notes: str | None = None


class PaymentCreate(PaymentBase):
    """Schema for creating a payment. ``paid_at`` defaults to now."""

    paid_at: datetime | None = None


class PaymentBatchCreate(BaseSchema):
    """Schema for recording several payments at once (split payments)."""

    payments: list[PaymentCreate] = Field(default_factory=list)


class PaymentResponse(PaymentBase):
    """Payment response schema."""

    id: int
    sale_id: int
    method_label: str
    paid_at: datetime
    created_at: datetime
    updated_at: datetime


class PaymentListResponse(PaginatedResponse):
    """Paginated payment list response."""

    items: list[PaymentResponse]
