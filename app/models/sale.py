"""
Sale model and payment status.
A sale is created from a confirmed order and accumulates payments
until it is fully paid.
"""

from typing import Optional, List, TYPE_CHECKING
from decimal import Decimal
from datetime import datetime
from enum import Enum
from sqlalchemy import String, Integer, Numeric, DateTime, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, ensure_utc

if TYPE_CHECKING:
    from app.models.payment import Payment


ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


class PaymentStatus(str, Enum):
    """Payment standing of a sale."""
    FULLY_PAID = "fully-paid"
    PARTIAL = "partial"
    NO_PAYMENT = "no-payment"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        match self:
            case PaymentStatus.FULLY_PAID:
                return "Fully Paid"
            case PaymentStatus.PARTIAL:
                return "Partially Paid"
            case PaymentStatus.NO_PAYMENT:
                return "No Payment"
            case PaymentStatus.OVERDUE:
                return "Overdue"

    @property
    def color(self) -> str:
        """Badge color for the UI."""
        match self:
            case PaymentStatus.FULLY_PAID:
                return "green"
            case PaymentStatus.PARTIAL:
                return "yellow"
            case PaymentStatus.NO_PAYMENT:
                return "gray"
            case PaymentStatus.OVERDUE:
                return "red"

    @property
    def icon(self) -> str:
        match self:
            case PaymentStatus.FULLY_PAID:
                return "✓"
            case PaymentStatus.PARTIAL:
                return "◐"
            case PaymentStatus.NO_PAYMENT:
                return "○"
            case PaymentStatus.OVERDUE:
                return "⚠"

    @property
    def has_balance(self) -> bool:
        """Whether the status implies an outstanding balance."""
        return self in PaymentStatus.with_balance()

    @property
    def is_fully_paid(self) -> bool:
        return self is PaymentStatus.FULLY_PAID

    @property
    def requires_action(self) -> bool:
        """Unpaid or overdue sales need follow-up."""
        return self in (PaymentStatus.NO_PAYMENT, PaymentStatus.OVERDUE)

    @classmethod
    def with_balance(cls) -> frozenset["PaymentStatus"]:
        """Statuses used to filter outstanding sales."""
        return frozenset({cls.PARTIAL, cls.NO_PAYMENT, cls.OVERDUE})

    def to_dict(self) -> dict:
        """Presentation payload for API responses."""
        return {
            "value": self.value,
            "label": self.label,
            "color": self.color,
            "icon": self.icon,
            "has_balance": self.has_balance,
            "requires_action": self.requires_action,
        }


# Statuses for which a due date can still be assigned or approached
OPEN_STATUSES = frozenset({PaymentStatus.NO_PAYMENT, PaymentStatus.PARTIAL})


def derive_payment_status(
    total_paid: Decimal,
    total_amount: Decimal,
    due_date: datetime | None,
    now: datetime,
) -> PaymentStatus:
    """
    Classify a sale from its totals and due date.

    Order matters: fully paid always wins, and a past due date wins over
    a partial payment.
    """
    if total_paid >= total_amount:
        return PaymentStatus.FULLY_PAID
    due_date = ensure_utc(due_date)
    if due_date is not None and ensure_utc(now) > due_date:
        return PaymentStatus.OVERDUE
    if total_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.NO_PAYMENT


class Sale(BaseModel):
    """
    Sale model.

    Attributes:
        sale_number: Unique sale number (SALE-YYYYMMDD-###)
        order_id: Identifier of the originating order, if any
        customer_name: Customer display name
        customer_phone: Customer phone number
        total_amount: Amount owed by the customer
        cost_amount: Cost of the goods sold
        profit_amount: Profit on the sale
        payment_status: Current payment status, recomputed after every payment change
        due_date: Deadline for the outstanding balance (debt sales only)
    """

    __tablename__ = "sales"
    __table_args__ = (
        Index("ix_sales_payment_status_due_date", "payment_status", "due_date"),
    )

    # Sale info
    sale_number: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    order_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        unique=True,
        nullable=True,
    )
    customer_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    customer_phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        index=True,
        nullable=True,
    )

    # Totals (computed by the order workflow)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=ZERO,
        nullable=False,
    )
    cost_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=ZERO,
        nullable=False,
    )
    profit_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=ZERO,
        nullable=False,
    )

    # Payment standing
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(
            PaymentStatus,
            name="payment_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=PaymentStatus.NO_PAYMENT,
        index=True,
        nullable=False,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        index=True,
        nullable=True,
    )

    # Relationships
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="sale",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Payment.paid_at",
    )

    @property
    def total_paid(self) -> Decimal:
        """Sum of all payments on this sale."""
        return sum((payment.amount for payment in self.payments), ZERO)

    @property
    def balance(self) -> Decimal:
        """Remaining balance, negative when overpaid."""
        return self.total_amount - self.total_paid

    @property
    def is_fully_paid(self) -> bool:
        return self.balance <= 0

    @property
    def has_payments(self) -> bool:
        return len(self.payments) > 0

    @property
    def payment_progress(self) -> Decimal:
        """Percentage of the owed amount already paid, capped at 100."""
        if self.total_amount <= 0:
            return ZERO
        progress = self.total_paid / self.total_amount * HUNDRED
        return min(HUNDRED, progress).quantize(CENTS)

    @property
    def profit_percentage(self) -> Decimal:
        """Profit as a percentage of cost."""
        if self.cost_amount <= 0:
            return ZERO
        return (self.profit_amount / self.cost_amount * HUNDRED).quantize(CENTS)

    @property
    def is_overdue(self) -> bool:
        return self.payment_status == PaymentStatus.OVERDUE

    @property
    def payment_status_info(self) -> dict:
        return PaymentStatus(self.payment_status).to_dict()

    def apply_payment_status(self, total_paid: Decimal, now: datetime) -> PaymentStatus:
        """
        Set ``payment_status`` from the given payment sum.
        Returns the new status.
        """
        self.payment_status = derive_payment_status(
            total_paid,
            self.total_amount,
            self.due_date,
            now,
        )
        return self.payment_status

    def __repr__(self) -> str:
        return f"<Sale(id={self.id}, number='{self.sale_number}', total={self.total_amount})>"
