from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.deps import get_session
from wms.repositories.inventory import InventoryRepository
from wms.schemas.inventory import (
    AllocationRead,
    AllocationRequest,
    InventoryCreate,
    InventoryRead,
    InventoryRelocate,
    StockAdjustment,
)
from wms.services.inventory import InventoryService
from wms.services.stock import StockAllocator

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[InventoryRead],
    summary="List inventory records",
    description="Inventory rows, newest first, optionally filtered by product or location.",
)
async def list_inventory(
    session: AsyncSession = Depends(get_session),
    product_id: Optional[UUID] = Query(None, description="Filter by product"),
    location_id: Optional[UUID] = Query(None, description="Filter by location"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[InventoryRead]:
    """
    Return inventory rows.

    Query params allow filtering by product_id and location_id.
    """
    repo = InventoryRepository(session)
    rows = await repo.list_inventory(product_id=product_id, location_id=location_id, limit=limit, offset=offset)
    return [InventoryRead.model_validate(r) for r in rows]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=InventoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Receive stock",
    description="Record stock at a location. Rejected when the location would exceed its capacity "
    "or a record for the same product, location and lot already exists.",
)
async def receive_stock(payload: InventoryCreate, session: AsyncSession = Depends(get_session)) -> InventoryRead:
    row = await InventoryService(session).receive_stock(payload)
    return InventoryRead.model_validate(row)


# PUBLIC_INTERFACE
@router.post(
    "/allocations",
    response_model=AllocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Allocate stock (FIFO)",
    description="Deduct a quantity of a product from its oldest inventory rows first. "
    "Repeating a request_token returns the original allocation without deducting again.",
)
async def allocate_stock(payload: AllocationRequest, session: AsyncSession = Depends(get_session)) -> AllocationRead:
    allocation = await StockAllocator(session).allocate(
        payload.product_id, payload.quantity, request_token=payload.request_token
    )
    return AllocationRead.model_validate(allocation)


# PUBLIC_INTERFACE
@router.get("/{inventory_id}", response_model=InventoryRead, summary="Get inventory record")
async def get_inventory(inventory_id: UUID, session: AsyncSession = Depends(get_session)) -> InventoryRead:
    row = await InventoryService(session).get_row(inventory_id)
    return InventoryRead.model_validate(row)


# PUBLIC_INTERFACE
@router.post(
    "/{inventory_id}/adjust",
    response_model=InventoryRead,
    summary="Adjust stock",
    description="Add to or remove from one inventory record. Quantity cannot go below zero.",
)
async def adjust_stock(
    inventory_id: UUID, payload: StockAdjustment, session: AsyncSession = Depends(get_session)
) -> InventoryRead:
    row = await InventoryService(session).adjust_stock(inventory_id, payload)
    return InventoryRead.model_validate(row)


# PUBLIC_INTERFACE
@router.post(
    "/{inventory_id}/relocate",
    response_model=InventoryRead,
    summary="Move stock to another location",
)
async def relocate_inventory(
    inventory_id: UUID, payload: InventoryRelocate, session: AsyncSession = Depends(get_session)
) -> InventoryRead:
    row = await InventoryService(session).relocate(inventory_id, payload.location_id)
    return InventoryRead.model_validate(row)


# PUBLIC_INTERFACE
@router.delete(
    "/{inventory_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete empty inventory record",
)
async def delete_inventory(inventory_id: UUID, session: AsyncSession = Depends(get_session)) -> Response:
    await InventoryService(session).delete(inventory_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
