"""
Payment model for tracking sale payments.
Supports multiple payment methods and partial payments.
"""

from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from datetime import datetime
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Integer, Numeric, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, utc_now

if TYPE_CHECKING:
    from app.models.sale import Sale


class PaymentMethod(str, Enum):
    """Payment method enumeration."""
    CASH = "cash"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.CASH: "Cash",
            PaymentMethod.MOBILE_MONEY: "Mobile Money",
            PaymentMethod.BANK_TRANSFER: "Bank Transfer",
            PaymentMethod.CARD: "Card",
        }[self]


class Payment(BaseModel):
    """
    Payment model.

    Attributes:
        sale_id: Foreign key to the sale
        method: Method of payment
        amount: Payment amount
        reference: Payment reference (mobile money code, bank reference, etc.)
        notes: Additional notes about the payment
        paid_at: When the payment was received
    """

    __tablename__ = "payments"

    # Relationships
    sale_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Payment info
    method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(
            PaymentMethod,
            name="payment_method",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=PaymentMethod.CASH,
        index=True,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    reference: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        index=True,
        nullable=False,
    )

    # Relationships
    sale: Mapped["Sale"] = relationship(
        "Sale",
        back_populates="payments",
    )

    @property
    def method_label(self) -> str:
        return PaymentMethod(self.method).label

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, amount={self.amount}, method='{self.method}')>"
