"""
Pydantic schemas for request/response validation.
"""

from app.schemas.payment import (
    PaymentCreate,
    PaymentBatchCreate,
    PaymentResponse,
)
from app.schemas.sale import (
    SaleCreate,
    SaleResponse,
    DebtRequest,
    PaymentSummary,
)
from app.schemas.report import (
    SaleStatistics,
    TopCustomer,
    RevenuePoint,
)

__all__ = [
    # Payment
    "PaymentCreate",
    "PaymentBatchCreate",
    "PaymentResponse",
    # Sale
    "SaleCreate",
    "SaleResponse",
    "DebtRequest",
    "PaymentSummary",
    # Report
    "SaleStatistics",
    "TopCustomer",
    "RevenuePoint",
]
