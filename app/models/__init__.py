"""
Database models module.
All SQLAlchemy models are exported from here for easy imports.
"""

from app.models.sale import Sale, PaymentStatus
from app.models.payment import Payment, PaymentMethod


__all__ = [
    "Sale",
    "PaymentStatus",
    "Payment",
    "PaymentMethod",
]
