from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update

from wms.db.base import utcnow
from wms.db.models.catalog import Product
from wms.db.models.inventory import (
    InventoryRow,
    StockAllocation,
    WarehouseLocation,
)
from .base import BaseRepository


class LocationRepository(BaseRepository):
    """Repository for warehouse locations."""

    async def list_locations(self, limit: int = 100, offset: int = 0) -> List[WarehouseLocation]:
        stmt = (
            select(WarehouseLocation)
            .order_by(
                WarehouseLocation.zone,
                WarehouseLocation.aisle,
                WarehouseLocation.rack,
                WarehouseLocation.bin,
            )
            .offset(offset)
            .limit(limit)
        )
        result = await self.scalars(stmt)
        return list(result)

    async def get_location(self, location_id: UUID) -> Optional[WarehouseLocation]:
        stmt = select(WarehouseLocation).where(WarehouseLocation.id == location_id)
        return await self.scalar_one_or_none(stmt)

    async def get_many(self, location_ids: Iterable[UUID]) -> dict[UUID, WarehouseLocation]:
        ids = list(set(location_ids))
        if not ids:
            return {}
        res = await self.scalars(select(WarehouseLocation).where(WarehouseLocation.id.in_(ids)))
        return {loc.id: loc for loc in res}

    async def get_by_code(self, zone: str, aisle: str, rack: str, bin_: str) -> Optional[WarehouseLocation]:
        stmt = select(WarehouseLocation).where(
            WarehouseLocation.zone == zone,
            WarehouseLocation.aisle == aisle,
            WarehouseLocation.rack == rack,
            WarehouseLocation.bin == bin_,
        )
        return await self.scalar_one_or_none(stmt)

    async def usage_by_location(self, location_ids: Optional[Iterable[UUID]] = None) -> dict[UUID, int]:
        """Sum of inventory quantity per location (locations with no stock are omitted)."""
        stmt = select(InventoryRow.location_id, func.coalesce(func.sum(InventoryRow.quantity), 0)).group_by(
            InventoryRow.location_id
        )
        if location_ids is not None:
            ids = list(set(location_ids))
            if not ids:
                return {}
            stmt = stmt.where(InventoryRow.location_id.in_(ids))
        res = await self.execute(stmt)
        return {loc_id: int(total) for loc_id, total in res.all()}


class InventoryRepository(BaseRepository):
    """Repository for inventory rows (the stock ledger)."""

    async def list_inventory(
        self,
        *,
        product_id: Optional[UUID] = None,
        location_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[InventoryRow]:
        stmt = select(InventoryRow)
        if product_id:
            stmt = stmt.where(InventoryRow.product_id == product_id)
        if location_id:
            stmt = stmt.where(InventoryRow.location_id == location_id)
        stmt = stmt.order_by(InventoryRow.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_row(self, inventory_id: UUID, *, for_update: bool = False) -> Optional[InventoryRow]:
        stmt = select(InventoryRow).where(InventoryRow.id == inventory_id)
        if for_update:
            stmt = stmt.with_for_update(of=InventoryRow)
        return await self.scalar_one_or_none(stmt)

    async def rows_for_product_fifo(self, product_id: UUID, *, for_update: bool = False) -> List[InventoryRow]:
        """Inventory rows of a product, oldest first."""
        stmt = (
            select(InventoryRow)
            .where(InventoryRow.product_id == product_id)
            .order_by(InventoryRow.created_at.asc(), InventoryRow.id.asc())
        )
        if for_update:
            stmt = stmt.with_for_update(of=InventoryRow)
        res = await self.scalars(stmt)
        return list(res)

    async def total_for_product(self, product_id: UUID) -> int:
        stmt = select(func.coalesce(func.sum(InventoryRow.quantity), 0)).where(
            InventoryRow.product_id == product_id
        )
        return int(await self.scalar(stmt) or 0)

    async def locations_for_rows(self, inventory_ids: Iterable[UUID]) -> dict[UUID, UUID]:
        ids = list(set(inventory_ids))
        if not ids:
            return {}
        res = await self.execute(select(InventoryRow.id, InventoryRow.location_id).where(InventoryRow.id.in_(ids)))
        return {row_id: location_id for row_id, location_id in res.all()}

    async def low_stock_products(self) -> List[tuple[Product, int]]:
        """Active products whose summed stock is at or below minimum_stock, lowest first."""
        totals = (
            select(InventoryRow.product_id, func.sum(InventoryRow.quantity).label("total"))
            .group_by(InventoryRow.product_id)
            .subquery()
        )
        available = func.coalesce(totals.c.total, 0)
        stmt = (
            select(Product, available)
            .outerjoin(totals, totals.c.product_id == Product.id)
            .where(Product.archived.is_(False), available <= Product.minimum_stock)
            .order_by(available, Product.name)
        )
        res = await self.execute(stmt)
        return [(product, int(qty)) for product, qty in res.all()]

    async def find_by_key(
        self, product_id: UUID, location_id: UUID, lot_number: Optional[str]
    ) -> Optional[InventoryRow]:
        """Row for the (product, location, lot) key; a null lot matches only null lots."""
        stmt = select(InventoryRow).where(
            InventoryRow.product_id == product_id,
            InventoryRow.location_id == location_id,
        )
        if lot_number is None:
            stmt = stmt.where(InventoryRow.lot_number.is_(None))
        else:
            stmt = stmt.where(InventoryRow.lot_number == lot_number)
        stmt = stmt.order_by(InventoryRow.created_at.asc()).limit(1)
        return await self.scalar_one_or_none(stmt)

    async def deduct(self, inventory_id: UUID, quantity: int) -> Optional[int]:
        """
        Conditionally subtract quantity from a row.

        Returns the new quantity, or None when the row no longer holds enough stock.
        """
        stmt = (
            update(InventoryRow)
            .where(InventoryRow.id == inventory_id, InventoryRow.quantity >= quantity)
            .values(quantity=InventoryRow.quantity - quantity, updated_at=utcnow())
            .returning(InventoryRow.quantity)
            .execution_options(synchronize_session=False)
        )
        res = await self.execute(stmt)
        return res.scalar_one_or_none()

    async def increment(self, inventory_id: UUID, quantity: int) -> Optional[int]:
        """Atomically add quantity to a row; returns the new quantity or None if the row is gone."""
        stmt = (
            update(InventoryRow)
            .where(InventoryRow.id == inventory_id)
            .values(quantity=InventoryRow.quantity + quantity, updated_at=utcnow())
            .returning(InventoryRow.quantity)
            .execution_options(synchronize_session=False)
        )
        res = await self.execute(stmt)
        return res.scalar_one_or_none()


class AllocationRepository(BaseRepository):
    """Repository for recorded FIFO allocations."""

    async def get_by_token(self, request_token: str) -> Optional[StockAllocation]:
        stmt = select(StockAllocation).where(StockAllocation.request_token == request_token)
        return await self.scalar_one_or_none(stmt)

    async def list_for_order(self, order_id: UUID) -> List[StockAllocation]:
        stmt = (
            select(StockAllocation)
            .where(StockAllocation.order_id == order_id)
            .order_by(StockAllocation.created_at.asc())
        )
        res = await self.scalars(stmt)
        return list(res)
