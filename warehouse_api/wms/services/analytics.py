"""
Computed views: dashboard metrics and per-customer order analytics.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.constants import OrderStatus
from wms.core.errors import NotFoundError
from wms.db.base import as_utc, utcnow
from wms.db.models.catalog import Category, Product
from wms.db.models.inventory import InventoryRow
from wms.repositories.catalog import ProductRepository
from wms.repositories.orders import OrderRepository
from wms.repositories.partners import CustomerRepository
from wms.schemas.orders import OrderRead
from wms.schemas.reports import (
    CategoryCount,
    CustomerAnalytics,
    DashboardMetrics,
    LowStockProduct,
    StatusBreakdown,
)
from wms.services.stock import StockLedger

UNCATEGORIZED = "Uncategorized"


# PUBLIC_INTERFACE
def order_frequency(dates: Sequence[datetime]) -> float:
    """
    Orders per month between the first and last order.

    Fewer than two orders gives 0; orders that all fall in the same calendar month
    give the order count.
    """
    if len(dates) < 2:
        return 0.0
    ordered = sorted(as_utc(d) for d in dates)
    first, last = ordered[0], ordered[-1]
    months = (last.year - first.year) * 12 + (last.month - first.month)
    if months > 0:
        return round(len(dates) / months, 2)
    return float(len(dates))


class AnalyticsService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.customers = CustomerRepository(session)
        self.ledger = StockLedger(session)

    async def _inventory_value(self) -> float:
        stmt = select(
            func.coalesce(func.sum(InventoryRow.quantity * Product.unit_price), 0)
        ).join(Product, Product.id == InventoryRow.product_id)
        return round(float(await self.session.scalar(stmt) or 0), 2)

    async def _products_by_category(self) -> Dict[str, int]:
        stmt = (
            select(Category.name, func.count(Product.id))
            .select_from(Product)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.archived.is_(False))
            .group_by(Category.name)
        )
        res = await self.session.execute(stmt)
        return {(name or UNCATEGORIZED): int(n) for name, n in res.all()}

    # PUBLIC_INTERFACE
    async def dashboard(self, now: Optional[datetime] = None, recent: int = 5) -> DashboardMetrics:
        """Headline inventory and order numbers; "today" is the UTC calendar day of `now`."""
        now = as_utc(now or utcnow())
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        total_products = int(
            await self.session.scalar(
                select(func.count()).select_from(Product).where(Product.archived.is_(False))
            )
            or 0
        )
        low = await self.ledger.low_stock_products()
        status_counts = await self.orders.counts_by_status()
        recent_orders = await self.orders.recent_orders(limit=recent)

        return DashboardMetrics(
            total_products=total_products,
            low_stock_items=len(low),
            pending_orders=status_counts.get(OrderStatus.PENDING.value, 0),
            orders_by_status={s.value: status_counts.get(s.value, 0) for s in OrderStatus},
            completed_orders_today=await self.orders.count_completed_between(day_start, day_start + timedelta(days=1)),
            inventory_value=await self._inventory_value(),
            inventory_by_category=[
                CategoryCount(category=name, count=n)
                for name, n in sorted((await self._products_by_category()).items())
            ],
            low_stock_products=[
                LowStockProduct(
                    id=p.id, sku=p.sku, name=p.name, minimum_stock=p.minimum_stock, current_stock=qty
                )
                for p, qty in low
            ],
            recent_orders=[OrderRead.model_validate(o) for o in recent_orders],
        )

    # PUBLIC_INTERFACE
    async def customer_analytics(self, customer_id: UUID) -> CustomerAnalytics:
        """Order statistics for a customer across all of their orders."""
        customer = await self.customers.get_customer(customer_id)
        if not customer:
            raise NotFoundError("Customer not found", details={"customer_id": str(customer_id)})
        orders = await self.orders.orders_for_customer(customer_id)

        total_orders = len(orders)
        total_spent = round(sum(float(o.total_amount or 0) for o in orders), 2)
        return CustomerAnalytics(
            customer_id=customer_id,
            total_orders=total_orders,
            total_spent=total_spent,
            average_order_value=round(total_spent / total_orders, 2) if total_orders else 0.0,
            last_order_date=as_utc(orders[0].created_at) if orders else None,
            order_frequency=order_frequency([o.created_at for o in orders]),
            status_breakdown=StatusBreakdown(
                completed=sum(1 for o in orders if o.status == OrderStatus.COMPLETED.value),
                pending=sum(1 for o in orders if o.status == OrderStatus.PENDING.value),
                cancelled=sum(1 for o in orders if o.status == OrderStatus.CANCELLED.value),
            ),
        )
