from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select

from wms.db.models.orders import Order, ShipmentTracking
from .base import BaseRepository


class OrderRepository(BaseRepository):
    """Repository for orders, their items and tracking history."""

    async def list_orders(
        self,
        *,
        order_type: Optional[str] = None,
        status: Optional[str] = None,
        shipping_status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        supplier_id: Optional[UUID] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Order]:
        stmt = select(Order)
        if order_type:
            stmt = stmt.where(Order.order_type == order_type)
        if status:
            stmt = stmt.where(Order.status == status)
        if shipping_status:
            stmt = stmt.where(Order.shipping_status == shipping_status)
        if customer_id:
            stmt = stmt.where(Order.customer_id == customer_id)
        if supplier_id:
            stmt = stmt.where(Order.supplier_id == supplier_id)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(Order.order_number.ilike(like) | Order.tracking_number.ilike(like))
        stmt = stmt.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_order(self, order_id: UUID, *, for_update: bool = False) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update(of=Order)
        return await self.scalar_one_or_none(stmt)

    async def get_by_request_token(self, request_token: str) -> Optional[Order]:
        return await self.scalar_one_or_none(select(Order).where(Order.request_token == request_token))

    async def order_number_exists(self, order_number: str) -> bool:
        stmt = select(func.count()).select_from(Order).where(Order.order_number == order_number)
        return bool(await self.scalar(stmt))

    async def last_tracking_time(self, order_id: UUID) -> Optional[datetime]:
        stmt = select(func.max(ShipmentTracking.created_at)).where(ShipmentTracking.order_id == order_id)
        return await self.scalar(stmt)

    async def count_completed_between(self, start: datetime, end: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(Order)
            .where(Order.status == "completed", Order.updated_at >= start, Order.updated_at < end)
        )
        return int(await self.scalar(stmt) or 0)

    async def recent_orders(self, limit: int = 5) -> List[Order]:
        res = await self.scalars(select(Order).order_by(Order.created_at.desc()).limit(limit))
        return list(res)

    async def orders_for_customer(self, customer_id: UUID) -> List[Order]:
        stmt = select(Order).where(Order.customer_id == customer_id).order_by(Order.created_at.desc())
        res = await self.scalars(stmt)
        return list(res)

    async def counts_by_status(self) -> dict[str, int]:
        res = await self.execute(select(Order.status, func.count()).group_by(Order.status))
        return {status: int(n) for status, n in res.all()}
