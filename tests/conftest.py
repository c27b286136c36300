"""
Pytest configuration and fixtures.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.api.deps import get_payment_service, get_report_service, get_sale_service
from app.core.database import Base, get_db
from app.main import app
from app.models.sale import Sale
from app.schemas.sale import SaleCreate
from app.services.payment import PaymentService
from app.services.report import ReportService
from app.services.sale import SaleService


# Fixed reference time so status and due date checks are reproducible
NOW = datetime(2025, 1, 24, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
async def test_engine(tmp_path):
    """Create a test database engine on a fresh SQLite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def payment_service(db_session: AsyncSession) -> PaymentService:
    return PaymentService(db_session, clock=fixed_clock)


@pytest.fixture
def sale_service(db_session: AsyncSession) -> SaleService:
    return SaleService(db_session, clock=fixed_clock)


@pytest.fixture
def report_service(db_session: AsyncSession) -> ReportService:
    return ReportService(db_session, clock=fixed_clock)


@pytest.fixture
def make_sale(db_session: AsyncSession, sale_service: SaleService):
    """Factory creating committed sales."""

    async def _make_sale(
        total_amount: str = "1000.00",
        cost_amount: str = "600.00",
        profit_amount: str = "400.00",
        customer_name: str = "Amina Diallo",
        customer_phone: str | None = "+221770000001",
        due_date: datetime | None = None,
    ) -> Sale:
        sale = await sale_service.create(
            SaleCreate(
                customer_name=customer_name,
                customer_phone=customer_phone,
                total_amount=Decimal(total_amount),
                cost_amount=Decimal(cost_amount),
                profit_amount=Decimal(profit_amount),
                due_date=due_date,
            )
        )
        await db_session.commit()
        return sale

    return _make_sale


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session and clock overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sale_service] = lambda: SaleService(db_session, clock=fixed_clock)
    app.dependency_overrides[get_payment_service] = lambda: PaymentService(db_session, clock=fixed_clock)
    app.dependency_overrides[get_report_service] = lambda: ReportService(db_session, clock=fixed_clock)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
