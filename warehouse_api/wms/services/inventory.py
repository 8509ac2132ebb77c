from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from wms.core.constants import AdjustmentType
from wms.core.errors import (
    ConcurrentStockUpdateError,
    ConflictError,
    DuplicateInventoryError,
    NotFoundError,
    ValidationError,
)
from wms.db.models.inventory import InventoryRow, WarehouseLocation
from wms.repositories.catalog import ProductRepository
from wms.repositories.inventory import InventoryRepository, LocationRepository
from wms.schemas.inventory import (
    InventoryCreate,
    LocationCreate,
    LocationRead,
    LocationUpdate,
    LocationUsageRead,
    StockAdjustment,
)
from wms.services.base import BaseService
from wms.services.stock import CapacityChecker

logger = logging.getLogger(__name__)


class InventoryService(BaseService):
    """
    Stock receipt, adjustment, relocation and removal of inventory rows.

    Every mutation that adds units to a location goes through the capacity
    checker first; removals use conditional updates so quantity never drops
    below zero.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.inventory = InventoryRepository(session)
        self.locations = LocationRepository(session)
        self.products = ProductRepository(session)
        self.capacity = CapacityChecker(session)

    async def get_row(self, inventory_id: UUID, *, for_update: bool = False) -> InventoryRow:
        row = await self.inventory.get_row(inventory_id, for_update=for_update)
        if not row:
            raise NotFoundError("Inventory record not found", details={"inventory_id": str(inventory_id)})
        return row

    # PUBLIC_INTERFACE
    async def receive_stock(self, payload: InventoryCreate) -> InventoryRow:
        """
        Record new stock at a location.

        Raises:
            NotFoundError: unknown product or location.
            DuplicateInventoryError: a row for the same product, location and lot exists.
            CapacityExceededError: the location cannot hold the extra units.
        """
        async with self.unit_of_work():
            product = await self.products.get_product(payload.product_id)
            if not product:
                raise NotFoundError("Product not found", details={"product_id": str(payload.product_id)})

            duplicate = await self.inventory.find_by_key(payload.product_id, payload.location_id, payload.lot_number)
            if duplicate is not None:
                raise DuplicateInventoryError(
                    "Inventory for this product, location and lot already exists; adjust it instead",
                    details={"inventory_id": str(duplicate.id)},
                )

            await self.capacity.check([(payload.location_id, payload.quantity)])

            row = InventoryRow(
                product_id=payload.product_id,
                location_id=payload.location_id,
                quantity=payload.quantity,
                lot_number=payload.lot_number,
                expiry_date=payload.expiry_date,
            )
            await self.inventory.add(row)
            await self.inventory.flush()
        logger.info("Received %d of %s at location %s", row.quantity, product.sku, row.location_id)
        return row

    # PUBLIC_INTERFACE
    async def adjust_stock(self, inventory_id: UUID, payload: StockAdjustment) -> InventoryRow:
        """
        Add or remove units on a single row.

        Raises:
            ValidationError: removal would take the row below zero.
            CapacityExceededError: an addition would overflow the row's location.
        """
        async with self.unit_of_work():
            row = await self.get_row(inventory_id, for_update=True)
            if payload.adjustment_type == AdjustmentType.ADD:
                await self.capacity.check([(row.location_id, payload.quantity)])
                new_qty = await self.inventory.increment(row.id, payload.quantity)
                if new_qty is None:
                    raise NotFoundError("Inventory record not found", details={"inventory_id": str(inventory_id)})
            else:
                if payload.quantity > row.quantity:
                    raise ValidationError(
                        "Stock cannot be negative",
                        details={"quantity": row.quantity, "requested": payload.quantity},
                    )
                new_qty = await self.inventory.deduct(row.id, payload.quantity)
                if new_qty is None:
                    raise ConcurrentStockUpdateError(
                        "Stock changed while adjusting; retry the request",
                        details={"inventory_id": str(inventory_id)},
                    )
            set_committed_value(row, "quantity", new_qty)
        logger.info(
            "Adjusted inventory %s: %s %d -> %d", row.id, payload.adjustment_type.value, payload.quantity, new_qty
        )
        return row

    # PUBLIC_INTERFACE
    async def relocate(self, inventory_id: UUID, location_id: UUID) -> InventoryRow:
        """Move a whole inventory row to another location after checking the target's capacity."""
        async with self.unit_of_work():
            row = await self.get_row(inventory_id, for_update=True)
            if row.location_id == location_id:
                return row
            target = await self.locations.get_location(location_id)
            if not target:
                raise NotFoundError("Location not found", details={"location_id": str(location_id)})
            duplicate = await self.inventory.find_by_key(row.product_id, location_id, row.lot_number)
            if duplicate is not None:
                raise DuplicateInventoryError(
                    "Target location already holds this product and lot",
                    details={"inventory_id": str(duplicate.id)},
                )
            if row.quantity > 0:
                await self.capacity.check([(location_id, row.quantity)])
            previous = row.location_id
            row.location = target
            await self.inventory.flush()
        logger.info("Relocated inventory %s from %s to %s", row.id, previous, location_id)
        return row

    # PUBLIC_INTERFACE
    async def delete(self, inventory_id: UUID) -> None:
        """Delete an inventory row; only rows holding zero units may be removed."""
        async with self.unit_of_work():
            row = await self.get_row(inventory_id, for_update=True)
            if row.quantity != 0:
                raise ValidationError(
                    "Only inventory records with zero quantity can be deleted",
                    details={"quantity": row.quantity},
                )
            await self.inventory.delete(row)
            await self.inventory.flush()


def location_usage_read(location: WarehouseLocation, usage: int) -> LocationUsageRead:
    data = LocationRead.model_validate(location).model_dump()
    return LocationUsageRead(
        **data,
        current_usage=usage,
        available_capacity=location.capacity - usage,
        over_stock=usage > location.capacity,
    )


class LocationService(BaseService):
    """Warehouse location maintenance and fill-level views."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.locations = LocationRepository(session)

    async def get_location(self, location_id: UUID) -> WarehouseLocation:
        location = await self.locations.get_location(location_id)
        if not location:
            raise NotFoundError("Location not found", details={"location_id": str(location_id)})
        return location

    # PUBLIC_INTERFACE
    async def list_with_usage(self, limit: int = 100, offset: int = 0) -> List[LocationUsageRead]:
        """Locations with current usage, free capacity and an over-stock flag."""
        locations = await self.locations.list_locations(limit=limit, offset=offset)
        usage = await self.locations.usage_by_location([loc.id for loc in locations])
        return [location_usage_read(loc, usage.get(loc.id, 0)) for loc in locations]

    async def get_with_usage(self, location_id: UUID) -> LocationUsageRead:
        location = await self.get_location(location_id)
        usage = await self.locations.usage_by_location([location.id])
        return location_usage_read(location, usage.get(location.id, 0))

    # PUBLIC_INTERFACE
    async def create_location(self, payload: LocationCreate) -> WarehouseLocation:
        """Create a location; the zone/aisle/rack/bin code must be unique."""
        async with self.unit_of_work():
            existing = await self.locations.get_by_code(payload.zone, payload.aisle, payload.rack, payload.bin)
            if existing is not None:
                raise ConflictError("Location code already exists", details={"code": existing.code})
            data = payload.model_dump()
            data["rotation_method"] = payload.rotation_method.value
            location = WarehouseLocation(**data)
            await self.locations.add(location)
            await self.locations.flush()
        return location

    # PUBLIC_INTERFACE
    async def update_location(self, location_id: UUID, payload: LocationUpdate) -> WarehouseLocation:
        """Apply a partial update; capacity may not drop below what is already stored."""
        async with self.unit_of_work():
            location = await self.get_location(location_id)
            changes = payload.model_dump(exclude_unset=True)
            if changes.get("capacity") is not None:
                usage = (await self.locations.usage_by_location([location.id])).get(location.id, 0)
                if changes["capacity"] < usage:
                    raise ValidationError(
                        f"Capacity cannot be lower than current usage ({usage})",
                        details={"capacity": changes["capacity"], "current_usage": usage},
                    )
            if changes.get("rotation_method") is not None:
                changes["rotation_method"] = changes["rotation_method"].value
            for field, value in changes.items():
                if value is None and field in ("capacity", "reserved", "rotation_method"):
                    continue
                setattr(location, field, value)
            await self.locations.flush()
        return location

    # PUBLIC_INTERFACE
    async def delete_location(self, location_id: UUID) -> None:
        """Delete an empty location."""
        async with self.unit_of_work():
            location = await self.get_location(location_id)
            usage = await self.locations.usage_by_location([location.id])
            if location.id in usage:
                raise ConflictError(
                    "Location still holds inventory records",
                    details={"code": location.code, "current_usage": usage[location.id]},
                )
            await self.locations.delete(location)
            await self.locations.flush()
