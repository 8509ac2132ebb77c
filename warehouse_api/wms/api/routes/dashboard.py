from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.deps import get_session
from wms.schemas.reports import CustomerAnalytics, DashboardMetrics
from wms.services.analytics import AnalyticsService

router = APIRouter(tags=["Dashboard"])


# PUBLIC_INTERFACE
@router.get(
    "/dashboard/metrics",
    response_model=DashboardMetrics,
    summary="Dashboard metrics",
    description="Product, stock and order headline numbers plus low-stock products and recent orders.",
)
async def dashboard_metrics(session: AsyncSession = Depends(get_session)) -> DashboardMetrics:
    return await AnalyticsService(session).dashboard()


# PUBLIC_INTERFACE
@router.get(
    "/customers/{customer_id}/analytics",
    response_model=CustomerAnalytics,
    summary="Customer analytics",
    description="Order count, spend, average order value, order frequency and status breakdown for a customer.",
)
async def customer_analytics(customer_id: UUID, session: AsyncSession = Depends(get_session)) -> CustomerAnalytics:
    return await AnalyticsService(session).customer_analytics(customer_id)
