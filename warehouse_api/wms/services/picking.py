"""
Pick lists for outbound orders.

Stock for an outbound order is deducted when the order is created, so a pick
list only tells a picker what to fetch and where: one item per product and
location the order's FIFO allocation drained. Recording picks never moves
stock.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.constants import OrderStatus, OrderType, PickItemStatus, PickListStatus
from wms.core.errors import ConflictError, NotFoundError, ValidationError
from wms.core.settings import get_app_settings
from wms.db.base import utcnow
from wms.db.models.fulfillment import PickList, PickListItem
from wms.db.models.orders import Order
from wms.repositories.inventory import AllocationRepository, InventoryRepository, LocationRepository
from wms.repositories.orders import OrderRepository
from wms.repositories.picking import PickListRepository
from wms.schemas.picking import PickListCreate, PickListItemUpdate
from wms.services.base import BaseService
from wms.services.numbering import generate_pick_list_number
from wms.services.status_machine import ensure_pick_list_transition

logger = logging.getLogger(__name__)

OPEN_PICK_LIST_STATUSES = (PickListStatus.PENDING.value, PickListStatus.IN_PROGRESS.value)


def pick_item_status(quantity: int, quantity_picked: int) -> PickItemStatus:
    if quantity_picked <= 0:
        return PickItemStatus.PENDING
    if quantity_picked >= quantity:
        return PickItemStatus.PICKED
    return PickItemStatus.PARTIAL


class PickListService(BaseService):
    """Create pick lists from allocations and track picking progress."""

    def __init__(
        self,
        session: AsyncSession,
        number_factory: Callable[[], str] = generate_pick_list_number,
    ) -> None:
        super().__init__(session)
        self.pick_lists = PickListRepository(session)
        self.orders = OrderRepository(session)
        self.allocations = AllocationRepository(session)
        self.inventory = InventoryRepository(session)
        self.locations = LocationRepository(session)
        self.number_factory = number_factory
        self.settings = get_app_settings()

    async def get_pick_list(self, pick_list_id: UUID, *, for_update: bool = False) -> PickList:
        pick_list = await self.pick_lists.get_pick_list(pick_list_id, for_update=for_update)
        if not pick_list:
            raise NotFoundError("Pick list not found", details={"pick_list_id": str(pick_list_id)})
        return pick_list

    async def list_pick_lists(self, **filters) -> List[PickList]:
        return await self.pick_lists.list_pick_lists(**filters)

    async def _next_number(self) -> str:
        attempts = self.settings.ORDER_NUMBER_MAX_ATTEMPTS
        for _ in range(attempts):
            candidate = self.number_factory()
            if not await self.pick_lists.number_exists(candidate):
                return candidate
        raise ConflictError("Could not generate a unique pick list number", details={"attempts": attempts})

    async def _plan_items(self, order: Order) -> List[PickListItem]:
        # (product, location) -> quantity, in allocation order
        planned: Dict[Tuple[UUID, Optional[UUID]], int] = {}
        allocations = await self.allocations.list_for_order(order.id)
        row_locations = await self.inventory.locations_for_rows(
            line.inventory_id for a in allocations for line in a.lines if line.inventory_id is not None
        )
        for allocation in allocations:
            for line in allocation.lines:
                key = (allocation.product_id, row_locations.get(line.inventory_id))
                planned[key] = planned.get(key, 0) + line.quantity
        if not planned:
            for item in order.items:
                planned[(item.product_id, None)] = item.quantity

        return [
            PickListItem(
                line_no=line_no,
                product_id=product_id,
                location_id=location_id,
                quantity=quantity,
                quantity_picked=0,
                status=PickItemStatus.PENDING.value,
            )
            for line_no, ((product_id, location_id), quantity) in enumerate(planned.items(), start=1)
        ]

    # PUBLIC_INTERFACE
    async def create_pick_list(self, payload: PickListCreate) -> PickList:
        """
        Create the pick list of an outbound order.

        Items come from the order's stock allocation lines grouped by product and
        the location of the drained row. An order has at most one pick list that
        is not cancelled.

        Raises:
            ValidationError: inbound order, or order already completed or cancelled.
            ConflictError: the order already has an open or completed pick list.
        """
        async with self.unit_of_work():
            order = await self.orders.get_order(payload.order_id, for_update=True)
            if not order:
                raise NotFoundError("Order not found", details={"order_id": str(payload.order_id)})
            if order.order_type != OrderType.OUTBOUND.value:
                raise ValidationError("Pick lists can only be created for outbound orders")
            if order.status in (OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value):
                raise ValidationError(f"Order is {order.status}; no picking is needed")
            existing = await self.pick_lists.open_for_order(order.id)
            if existing is not None:
                raise ConflictError(
                    "Order already has a pick list",
                    details={"pick_list_id": str(existing.id), "pick_list_number": existing.pick_list_number},
                )

            pick_list = PickList(
                pick_list_number=await self._next_number(),
                order=order,
                status=PickListStatus.PENDING.value,
                notes=payload.notes,
            )
            pick_list.items = await self._plan_items(order)
            await self.pick_lists.add(pick_list)
            await self.pick_lists.flush()
        logger.info(
            "Created pick list %s for order %s with %d item(s)",
            pick_list.pick_list_number,
            order.order_number,
            len(pick_list.items),
        )
        return pick_list

    # PUBLIC_INTERFACE
    async def assign(self, pick_list_id: UUID, assigned_to: str) -> PickList:
        """Assign a picker; a pending list starts (in_progress) when assigned."""
        async with self.unit_of_work():
            pick_list = await self.get_pick_list(pick_list_id, for_update=True)
            if pick_list.status not in OPEN_PICK_LIST_STATUSES:
                raise ValidationError(f"Pick list is {pick_list.status}; it can no longer be assigned")
            if pick_list.status == PickListStatus.PENDING.value:
                pick_list.status = ensure_pick_list_transition(
                    pick_list.status, PickListStatus.IN_PROGRESS.value
                ).value
            pick_list.assigned_to = assigned_to
            await self.pick_lists.flush()
        logger.info("Pick list %s assigned to %s", pick_list.pick_list_number, assigned_to)
        return pick_list

    # PUBLIC_INTERFACE
    async def update_status(self, pick_list_id: UUID, status: PickListStatus) -> PickList:
        """
        Move a pick list along pending -> in_progress -> completed, or cancel it.

        Completing requires every item to have at least one unit picked and
        stamps completed_at.
        """
        async with self.unit_of_work():
            pick_list = await self.get_pick_list(pick_list_id, for_update=True)
            previous = pick_list.status
            target = ensure_pick_list_transition(previous, status.value)
            if target is PickListStatus.COMPLETED:
                unpicked = [str(i.id) for i in pick_list.items if i.status == PickItemStatus.PENDING.value]
                if unpicked:
                    raise ValidationError(
                        "Every item must be picked before completing", details={"pick_list_item_ids": unpicked}
                    )
                pick_list.completed_at = utcnow()
            pick_list.status = target.value
            await self.pick_lists.flush()
        logger.info("Pick list %s status %s -> %s", pick_list.pick_list_number, previous, pick_list.status)
        return pick_list

    # PUBLIC_INTERFACE
    async def update_item(self, pick_list_id: UUID, item_id: UUID, payload: PickListItemUpdate) -> PickList:
        """
        Record picking progress for one item.

        quantity_picked may not exceed the item quantity; the item status follows
        it (pending, partial, picked). Picking on a pending list starts it.
        """
        async with self.unit_of_work():
            pick_list = await self.get_pick_list(pick_list_id, for_update=True)
            if pick_list.status not in OPEN_PICK_LIST_STATUSES:
                raise ValidationError(f"Pick list is {pick_list.status}; items can no longer change")
            item = next((i for i in pick_list.items if i.id == item_id), None)
            if item is None:
                raise NotFoundError("Pick list item not found", details={"pick_list_item_id": str(item_id)})

            if payload.quantity_picked is not None:
                if payload.quantity_picked > item.quantity:
                    raise ValidationError(
                        "Picked quantity cannot exceed the quantity to pick",
                        details={"quantity": item.quantity, "quantity_picked": payload.quantity_picked},
                    )
                item.quantity_picked = payload.quantity_picked
                item.status = pick_item_status(item.quantity, item.quantity_picked).value
            if payload.location_id is not None:
                if not await self.locations.get_location(payload.location_id):
                    raise NotFoundError("Location not found", details={"location_id": str(payload.location_id)})
                item.location_id = payload.location_id
            if payload.notes is not None:
                item.notes = payload.notes

            if pick_list.status == PickListStatus.PENDING.value and item.quantity_picked > 0:
                pick_list.status = ensure_pick_list_transition(
                    pick_list.status, PickListStatus.IN_PROGRESS.value
                ).value
            await self.pick_lists.flush()
        return pick_list
