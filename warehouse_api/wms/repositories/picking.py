from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select

from wms.core.constants import PickListStatus
from wms.db.models.fulfillment import PickList
from wms.db.models.orders import Order
from .base import BaseRepository


class PickListRepository(BaseRepository):
    """Repository for pick lists and their items."""

    async def list_pick_lists(
        self,
        *,
        status: Optional[str] = None,
        order_id: Optional[UUID] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[PickList]:
        stmt = select(PickList)
        if status:
            stmt = stmt.where(PickList.status == status)
        if order_id:
            stmt = stmt.where(PickList.order_id == order_id)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(
                PickList.pick_list_number.ilike(like)
                | PickList.order_id.in_(select(Order.id).where(Order.order_number.ilike(like)))
            )
        stmt = stmt.order_by(PickList.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_pick_list(self, pick_list_id: UUID, *, for_update: bool = False) -> Optional[PickList]:
        stmt = select(PickList).where(PickList.id == pick_list_id)
        if for_update:
            stmt = stmt.with_for_update(of=PickList)
        return await self.scalar_one_or_none(stmt)

    async def open_for_order(self, order_id: UUID) -> Optional[PickList]:
        """The order's pick list that is not cancelled, if any."""
        stmt = select(PickList).where(
            PickList.order_id == order_id, PickList.status != PickListStatus.CANCELLED.value
        )
        return await self.scalar_one_or_none(stmt)

    async def number_exists(self, pick_list_number: str) -> bool:
        stmt = select(func.count()).select_from(PickList).where(PickList.pick_list_number == pick_list_number)
        return bool(await self.scalar(stmt))
