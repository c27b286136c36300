"""
API Dependencies.
Common dependencies for database sessions and services.
"""

from typing import Annotated
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.services.payment import PaymentService
from app.services.report import ReportService
from app.services.sale import SaleService


def get_sale_service(db: AsyncSession = Depends(get_db)) -> SaleService:
    return SaleService(db)


def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


def get_report_service(db: AsyncSession = Depends(get_db)) -> ReportService:
    return ReportService(db)


# Type aliases for cleaner route signatures
SaleServiceDep = Annotated[SaleService, Depends(get_sale_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
