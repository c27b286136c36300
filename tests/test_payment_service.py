"""
Payment lifecycle service tests.
"""

from datetime import timedelta
from decimal import Decimal
import pytest
from sqlalchemy import select, func

from app.core.exceptions import InvalidArgumentError, PersistenceError
from app.models.base import ensure_utc
from app.models.payment import Payment, PaymentMethod
from app.models.sale import PaymentStatus
from app.schemas.payment import PaymentCreate


def payment(amount: str, method: PaymentMethod = PaymentMethod.CASH, **kwargs) -> PaymentCreate:
    return PaymentCreate(amount=Decimal(amount), method=method, **kwargs)


async def count_payments(db_session, sale_id: int) -> int:
    result = await db_session.execute(
        select(func.count(Payment.id)).where(Payment.sale_id == sale_id)
    )
    return result.scalar()


@pytest.mark.asyncio
async def test_new_sale_has_no_payment(make_sale):
    sale = await make_sale()

    assert sale.payment_status == PaymentStatus.NO_PAYMENT
    assert sale.sale_number == "SALE-20250124-001"
    assert sale.payments == []


@pytest.mark.asyncio
async def test_partial_payment(make_sale, payment_service):
    """Test a 400 payment on a 1000 sale."""
    sale = await make_sale(total_amount="1000.00")

    created = await payment_service.add_payment(
        sale,
        payment("400.00", PaymentMethod.MOBILE_MONEY, reference="QR1234XYZ"),
    )

    assert created.id is not None
    assert created.sale_id == sale.id
    assert created.reference == "QR1234XYZ"
    assert sale.payment_status == PaymentStatus.PARTIAL
    assert sale.balance == Decimal("600")
    assert sale.payment_progress == Decimal("40")


@pytest.mark.asyncio
async def test_full_payment(make_sale, payment_service):
    sale = await make_sale(total_amount="1000.00")

    await payment_service.add_payment(sale, payment("1000.00"))

    assert sale.payment_status == PaymentStatus.FULLY_PAID
    assert sale.balance == Decimal("0")


@pytest.mark.asyncio
async def test_paid_at_defaults_to_now(make_sale, payment_service, now):
    sale = await make_sale()

    created = await payment_service.add_payment(sale, payment("100.00"))
    explicit = await payment_service.add_payment(
        sale, payment("100.00", paid_at=now - timedelta(hours=3))
    )

    assert created.paid_at.replace(tzinfo=None) == now.replace(tzinfo=None)
    assert explicit.paid_at.replace(tzinfo=None) == (now - timedelta(hours=3)).replace(tzinfo=None)


@pytest.mark.asyncio
async def test_unpaid_sale_past_due_is_overdue(make_sale, payment_service, now):
    sale = await make_sale(due_date=now - timedelta(days=1))

    assert sale.payment_status == PaymentStatus.OVERDUE

    await payment_service.recompute_status(sale)
    assert sale.payment_status == PaymentStatus.OVERDUE


@pytest.mark.asyncio
async def test_partial_payment_past_due_is_overdue(make_sale, payment_service, now):
    """Test a past due date wins over a partial payment."""
    sale = await make_sale(total_amount="1000.00")
    sale.due_date = now - timedelta(days=1)

    await payment_service.add_payment(sale, payment("500.00"))

    assert sale.payment_status == PaymentStatus.OVERDUE


@pytest.mark.asyncio
async def test_overpayment(make_sale, payment_service):
    sale = await make_sale(total_amount="500.00")

    await payment_service.add_payment(sale, payment("800.00"))

    assert sale.payment_status == PaymentStatus.FULLY_PAID
    assert sale.balance == Decimal("-300")
    assert sale.payment_progress == Decimal("100")


@pytest.mark.asyncio
async def test_add_multiple_payments(make_sale, payment_service, db_session):
    sale = await make_sale(total_amount="1000.00")

    created = await payment_service.add_multiple_payments(
        sale,
        [payment("500.00"), payment("500.00", PaymentMethod.CARD)],
    )

    assert len(created) == 2
    assert all(p.id is not None for p in created)
    assert await count_payments(db_session, sale.id) == 2
    assert sale.payment_status == PaymentStatus.FULLY_PAID


@pytest.mark.asyncio
async def test_batch_recomputes_status_once(make_sale, payment_service, monkeypatch):
    sale = await make_sale()
    calls = []
    recompute = payment_service.recompute_status

    async def counting_recompute(target, now=None):
        calls.append(target.id)
        return await recompute(target, now)

    monkeypatch.setattr(payment_service, "recompute_status", counting_recompute)

    await payment_service.add_multiple_payments(
        sale, [payment("100.00"), payment("200.00"), payment("300.00")]
    )

    assert calls == [sale.id]
    assert sale.payment_status == PaymentStatus.PARTIAL


@pytest.mark.asyncio
async def test_empty_batch_only_recomputes(make_sale, payment_service, db_session, monkeypatch, now):
    """Test an empty batch leaves the ledger alone but still refreshes status."""
    sale = await make_sale()
    sale.due_date = now - timedelta(hours=1)
    calls = []
    recompute = payment_service.recompute_status

    async def counting_recompute(target, now=None):
        calls.append(target.id)
        return await recompute(target, now)

    monkeypatch.setattr(payment_service, "recompute_status", counting_recompute)

    created = await payment_service.add_multiple_payments(sale, [])

    assert created == []
    assert calls == [sale.id]
    assert await count_payments(db_session, sale.id) == 0
    assert sale.payment_status == PaymentStatus.OVERDUE


@pytest.mark.asyncio
async def test_failed_batch_is_rolled_back(make_sale, payment_service, db_session):
    """Test a storage failure keeps none of the batch."""
    sale = await make_sale(total_amount="1000.00")
    broken = PaymentCreate.model_construct(
        amount=None,
        method=PaymentMethod.CASH,
        reference=None,
        notes=None,
        paid_at=None,
    )

    with pytest.raises(PersistenceError):
        await payment_service.add_multiple_payments(sale, [payment("1000.00"), broken])

    await db_session.refresh(sale)
    assert await count_payments(db_session, sale.id) == 0
    assert sale.payments == []
    assert sale.payment_status == PaymentStatus.NO_PAYMENT


@pytest.mark.asyncio
async def test_delete_only_payment_resets_status(make_sale, payment_service, db_session):
    sale = await make_sale(total_amount="500.00")
    created = await payment_service.add_payment(sale, payment("500.00"))
    assert sale.payment_status == PaymentStatus.FULLY_PAID

    updated = await payment_service.delete(created)

    assert updated is sale
    assert sale.payment_status == PaymentStatus.NO_PAYMENT
    assert sale.payments == []
    assert await count_payments(db_session, sale.id) == 0


@pytest.mark.asyncio
async def test_status_follows_payment_changes(make_sale, payment_service):
    """Test fully paid iff total paid covers the amount, across adds and deletes."""
    sale = await make_sale(total_amount="1000.00")

    first = await payment_service.add_payment(sale, payment("600.00"))
    assert sale.payment_status == PaymentStatus.PARTIAL

    second = await payment_service.add_payment(sale, payment("400.00"))
    assert sale.payment_status == PaymentStatus.FULLY_PAID

    await payment_service.delete(first)
    assert sale.payment_status == PaymentStatus.PARTIAL
    assert sale.total_paid == Decimal("400")

    await payment_service.delete(second)
    assert sale.payment_status == PaymentStatus.NO_PAYMENT


@pytest.mark.asyncio
async def test_set_as_debt(make_sale, payment_service, now):
    sale = await make_sale()

    await payment_service.set_as_debt(sale, 7)

    assert sale.due_date == now + timedelta(days=7)
    assert sale.payment_status == PaymentStatus.NO_PAYMENT


@pytest.mark.asyncio
async def test_set_as_debt_on_partial_sale(make_sale, payment_service, now):
    sale = await make_sale()
    await payment_service.add_payment(sale, payment("250.00"))

    await payment_service.set_as_debt(sale, 3)

    assert sale.due_date == now + timedelta(days=3)
    assert sale.payment_status == PaymentStatus.PARTIAL


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [0, -3])
async def test_set_as_debt_rejects_days_below_one(make_sale, payment_service, days):
    sale = await make_sale()

    with pytest.raises(InvalidArgumentError):
        await payment_service.set_as_debt(sale, days)

    assert sale.due_date is None


@pytest.mark.asyncio
async def test_set_as_debt_ignores_fully_paid_sale(make_sale, payment_service):
    sale = await make_sale(total_amount="300.00")
    await payment_service.add_payment(sale, payment("300.00"))

    await payment_service.set_as_debt(sale, 7)

    assert sale.due_date is None
    assert sale.payment_status == PaymentStatus.FULLY_PAID


@pytest.mark.asyncio
async def test_set_as_debt_keeps_overdue_due_date(make_sale, payment_service, now):
    due_date = now - timedelta(days=2)
    sale = await make_sale(due_date=due_date)
    assert sale.payment_status == PaymentStatus.OVERDUE

    await payment_service.set_as_debt(sale, 7)

    assert ensure_utc(sale.due_date) == due_date


@pytest.mark.asyncio
async def test_is_near_due(make_sale, payment_service, now):
    sale = await make_sale()
    assert payment_service.is_near_due(sale) is False

    await payment_service.set_as_debt(sale, 2)
    assert payment_service.is_near_due(sale) is True

    await payment_service.set_as_debt(sale, 7)
    assert payment_service.is_near_due(sale) is False
    assert payment_service.is_near_due(sale, now=now + timedelta(days=6)) is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "remaining, expected",
    [
        (timedelta(0), True),
        (timedelta(hours=20), True),
        (timedelta(days=2, hours=12), True),
        (timedelta(days=2, hours=23, minutes=59), True),
        (timedelta(days=3), False),
        (timedelta(days=3, hours=1), False),
    ],
)
async def test_near_due_counts_whole_days(make_sale, payment_service, now, remaining, expected):
    """Test the remaining time is truncated to whole days."""
    sale = await make_sale()
    sale.due_date = now + remaining

    assert payment_service.is_near_due(sale) is expected


@pytest.mark.asyncio
async def test_past_due_date_is_not_near_due(make_sale, payment_service, now):
    """Test a stale open status past its due date is not reported as near due."""
    sale = await make_sale()
    sale.due_date = now - timedelta(hours=1)

    assert sale.payment_status == PaymentStatus.NO_PAYMENT
    assert payment_service.is_near_due(sale) is False


@pytest.mark.asyncio
async def test_payment_summary(make_sale, payment_service, now):
    sale = await make_sale(total_amount="1000.00")
    await payment_service.add_multiple_payments(sale, [payment("300.00"), payment("100.00")])
    await payment_service.set_as_debt(sale, 1)

    summary = payment_service.get_payment_summary(sale)

    assert summary.sale_id == sale.id
    assert summary.total_amount == Decimal("1000")
    assert summary.total_paid == Decimal("400")
    assert summary.balance == Decimal("600")
    assert summary.payment_progress == Decimal("40")
    assert summary.is_fully_paid is False
    assert summary.is_overdue is False
    assert summary.is_near_due is True
    assert summary.due_date == now + timedelta(days=1)
    assert summary.payments_count == 2


@pytest.mark.asyncio
async def test_refresh_overdue_statuses(make_sale, payment_service, now):
    late = await make_sale(customer_name="Late")
    await payment_service.set_as_debt(late, 3)
    partial = await make_sale(customer_name="Partial")
    await payment_service.add_payment(partial, payment("100.00"))
    await payment_service.set_as_debt(partial, 3)
    later = await make_sale(customer_name="Later")
    await payment_service.set_as_debt(later, 30)
    paid = await make_sale(customer_name="Paid", total_amount="50.00")
    await payment_service.add_payment(paid, payment("50.00"))

    updated = await payment_service.refresh_overdue_statuses(now=now + timedelta(days=5))

    assert updated == 2
    assert late.payment_status == PaymentStatus.OVERDUE
    assert partial.payment_status == PaymentStatus.OVERDUE
    assert later.payment_status == PaymentStatus.NO_PAYMENT
    assert paid.payment_status == PaymentStatus.FULLY_PAID


@pytest.mark.asyncio
async def test_list_and_stats(make_sale, payment_service):
    sale = await make_sale()
    await payment_service.add_multiple_payments(
        sale,
        [
            payment("100.00"),
            payment("250.00", PaymentMethod.MOBILE_MONEY),
            payment("50.00", PaymentMethod.MOBILE_MONEY),
        ],
    )

    items, total = await payment_service.list(method=PaymentMethod.MOBILE_MONEY)
    assert total == 2
    assert {p.amount for p in items} == {Decimal("250.00"), Decimal("50.00")}

    by_sale = await payment_service.list_by_sale(sale.id)
    assert len(by_sale) == 3

    stats = await payment_service.get_stats()
    assert stats["by_method"]["mobile_money"] == Decimal("300")
    assert stats["by_method"]["cash"] == Decimal("100")
    assert stats["by_method"]["card"] == Decimal("0")
    assert stats["total"] == Decimal("400")
