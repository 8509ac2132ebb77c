"""
Stock ledger, FIFO allocation and location capacity checks.

These are the building blocks shared by inventory and order operations. The
`*_in_transaction` methods assume the caller owns the transaction; the public
wrappers open their own unit of work.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from wms.core.errors import (
    ConcurrentStockUpdateError,
    ConflictError,
    CapacityExceededError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from wms.db.base import as_utc
from wms.db.models.catalog import Product
from wms.db.models.inventory import StockAllocation, StockAllocationLine
from wms.repositories.catalog import ProductRepository
from wms.repositories.inventory import (
    AllocationRepository,
    InventoryRepository,
    LocationRepository,
)
from wms.schemas.catalog import StockSummary
from wms.services.base import BaseService

logger = logging.getLogger(__name__)

# Tokens under this prefix are minted for order items and never accepted from callers.
ORDER_TOKEN_PREFIX = "order:"


def order_allocation_token(order_id: UUID, product_id: UUID) -> str:
    return f"{ORDER_TOKEN_PREFIX}{order_id}:{product_id}"


def is_low_stock(available: int, minimum_stock: int) -> bool:
    return available <= minimum_stock


class StockLedger:
    """Read-only view over inventory rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.inventory = InventoryRepository(session)

    # PUBLIC_INTERFACE
    async def available_quantity(self, product_id: UUID) -> int:
        """Sum of quantity across every inventory row of the product (0 when none)."""
        return await self.inventory.total_for_product(product_id)

    async def summary(self, product: Product) -> StockSummary:
        available = await self.available_quantity(product.id)
        return StockSummary(
            product_id=product.id,
            available=available,
            minimum_stock=product.minimum_stock,
            low_stock=is_low_stock(available, product.minimum_stock),
        )

    async def low_stock_products(self) -> List[Tuple[Product, int]]:
        """Active products at or below their minimum stock, lowest available first."""
        return await self.inventory.low_stock_products()


class _StockRow(Protocol):
    id: UUID
    quantity: int
    created_at: datetime


@dataclass(frozen=True)
class PlannedDeduction:
    inventory_id: UUID
    quantity: int


# PUBLIC_INTERFACE
def plan_fifo_allocation(rows: Sequence[_StockRow], quantity: int) -> List[PlannedDeduction]:
    """
    Decide how much to take from each row, oldest first.

    Rows are drained in `created_at` order (ties keep the given order) until the
    requested quantity is covered. Raises InsufficientStockError when the rows
    do not hold enough stock.
    """
    if quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", details={"quantity": quantity})

    ordered = sorted(rows, key=lambda r: as_utc(r.created_at))

    available = sum(max(r.quantity, 0) for r in ordered)
    if available < quantity:
        product_id = getattr(ordered[0], "product_id", None) if ordered else None
        raise InsufficientStockError(product_id, quantity, available)

    plan: List[PlannedDeduction] = []
    remaining = quantity
    for row in ordered:
        if remaining == 0:
            break
        if row.quantity <= 0:
            continue
        take = min(remaining, row.quantity)
        plan.append(PlannedDeduction(inventory_id=row.id, quantity=take))
        remaining -= take
    return plan


class StockAllocator(BaseService):
    """
    FIFO stock deduction.

    Rows are locked, the plan is computed, and each step is applied as a
    conditional update that only succeeds while the row still holds enough stock.
    A request token makes retries return the first result instead of deducting
    again.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.inventory = InventoryRepository(session)
        self.allocations = AllocationRepository(session)
        self.products = ProductRepository(session)

    # PUBLIC_INTERFACE
    async def allocate(
        self,
        product_id: UUID,
        quantity: int,
        *,
        request_token: Optional[str] = None,
        order_id: Optional[UUID] = None,
    ) -> StockAllocation:
        """Allocate stock in its own transaction."""
        if request_token and request_token.startswith(ORDER_TOKEN_PREFIX):
            raise ValidationError(
                f"Request tokens starting with '{ORDER_TOKEN_PREFIX}' are reserved for orders",
                details={"request_token": request_token},
            )
        async with self.unit_of_work():
            allocation = await self.allocate_in_transaction(
                product_id, quantity, request_token=request_token, order_id=order_id
            )
        return allocation

    async def allocate_in_transaction(
        self,
        product_id: UUID,
        quantity: int,
        *,
        request_token: Optional[str] = None,
        order_id: Optional[UUID] = None,
    ) -> StockAllocation:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer", details={"quantity": quantity})

        token = request_token or uuid.uuid4().hex
        existing = await self.allocations.get_by_token(token)
        if existing is not None:
            if (
                existing.product_id != product_id
                or existing.quantity != quantity
                or existing.order_id != order_id
            ):
                raise ConflictError(
                    "Request token was already used for a different allocation",
                    details={"request_token": token},
                )
            logger.info("Allocation %s replayed for token %s; no stock deducted", existing.id, token)
            return existing

        product = await self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found", details={"product_id": str(product_id)})

        rows = await self.inventory.rows_for_product_fifo(product_id, for_update=True)
        available = sum(r.quantity for r in rows)
        if available < quantity:
            raise InsufficientStockError(product_id, quantity, available, product_name=product.name)

        plan = plan_fifo_allocation(rows, quantity)
        by_id = {r.id: r for r in rows}
        allocation = StockAllocation(
            request_token=token, product_id=product_id, quantity=quantity, order_id=order_id
        )
        for seq_no, step in enumerate(plan, start=1):
            new_qty = await self.inventory.deduct(step.inventory_id, step.quantity)
            if new_qty is None:
                raise ConcurrentStockUpdateError(
                    "Stock changed while allocating; retry the request",
                    details={"inventory_id": str(step.inventory_id), "quantity": step.quantity},
                )
            set_committed_value(by_id[step.inventory_id], "quantity", new_qty)
            allocation.lines.append(
                StockAllocationLine(inventory_id=step.inventory_id, seq_no=seq_no, quantity=step.quantity)
            )

        await self.allocations.add(allocation)
        await self.allocations.flush()
        logger.info(
            "Allocated %d of product %s across %d row(s) (token=%s)",
            quantity,
            product_id,
            len(plan),
            token,
        )
        return allocation


@dataclass(frozen=True)
class CapacityUsage:
    location_id: UUID
    code: str
    capacity: int
    existing: int
    proposed: int

    @property
    def fits(self) -> bool:
        return not find_over_capacity(self.existing, self.proposed, self.capacity)


def find_over_capacity(usage: int, proposed: int, capacity: int) -> bool:
    """True when adding `proposed` units to `usage` would exceed `capacity`."""
    return usage + proposed > capacity


class CapacityChecker:
    """Validates batches of (location, quantity) assignments against location capacity."""

    def __init__(self, session: AsyncSession) -> None:
        self.locations = LocationRepository(session)

    async def evaluate(self, assignments: Iterable[Tuple[UUID, int]]) -> List[CapacityUsage]:
        """Per-location totals for the batch; does not raise on overflow."""
        proposed: dict[UUID, int] = {}
        for location_id, qty in assignments:
            proposed[location_id] = proposed.get(location_id, 0) + int(qty)
        if not proposed:
            return []

        locations = await self.locations.get_many(proposed.keys())
        missing = [str(loc_id) for loc_id in proposed if loc_id not in locations]
        if missing:
            raise NotFoundError("Location not found", details={"location_ids": missing})

        usage = await self.locations.usage_by_location(proposed.keys())
        return [
            CapacityUsage(
                location_id=loc_id,
                code=locations[loc_id].code,
                capacity=locations[loc_id].capacity,
                existing=usage.get(loc_id, 0),
                proposed=qty,
            )
            for loc_id, qty in proposed.items()
        ]

    # PUBLIC_INTERFACE
    async def check(self, assignments: Iterable[Tuple[UUID, int]]) -> List[CapacityUsage]:
        """
        Reject the whole batch if any location would go over capacity.

        Raises:
            CapacityExceededError: naming the first offending location code.
            NotFoundError: when a location id does not exist.
        """
        results = await self.evaluate(assignments)
        for item in results:
            if not item.fits:
                logger.warning(
                    "Rejected assignment batch: location %s capacity=%d existing=%d proposed=%d",
                    item.code,
                    item.capacity,
                    item.existing,
                    item.proposed,
                )
                raise CapacityExceededError(item.code, item.capacity, item.existing, item.proposed)
        return results
