from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.constants import PickListStatus
from wms.core.deps import get_session
from wms.schemas.picking import (
    PickListAssign,
    PickListCreate,
    PickListDetail,
    PickListItemUpdate,
    PickListRead,
    PickListStatusUpdate,
)
from wms.services.picking import PickListService

router = APIRouter(prefix="/pick-lists", tags=["Picking"])


# PUBLIC_INTERFACE
@router.get("", response_model=List[PickListRead], summary="List pick lists")
async def list_pick_lists(
    session: AsyncSession = Depends(get_session),
    status_: Optional[PickListStatus] = Query(None, alias="status", description="Pick list status"),
    order_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Search pick list or order number"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[PickListRead]:
    items = await PickListService(session).list_pick_lists(
        status=status_.value if status_ else None,
        order_id=order_id,
        search=search,
        limit=limit,
        offset=offset,
    )
    return [PickListRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=PickListDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create pick list",
    description="Build the pick list of an outbound order from the locations its stock was allocated from.",
)
async def create_pick_list(payload: PickListCreate, session: AsyncSession = Depends(get_session)) -> PickListDetail:
    pick_list = await PickListService(session).create_pick_list(payload)
    return PickListDetail.model_validate(pick_list)


# PUBLIC_INTERFACE
@router.get("/{pick_list_id}", response_model=PickListDetail, summary="Get pick list with items")
async def get_pick_list(pick_list_id: UUID, session: AsyncSession = Depends(get_session)) -> PickListDetail:
    pick_list = await PickListService(session).get_pick_list(pick_list_id)
    return PickListDetail.model_validate(pick_list)


# PUBLIC_INTERFACE
@router.post("/{pick_list_id}/assign", response_model=PickListDetail, summary="Assign a picker")
async def assign_pick_list(
    pick_list_id: UUID, payload: PickListAssign, session: AsyncSession = Depends(get_session)
) -> PickListDetail:
    pick_list = await PickListService(session).assign(pick_list_id, payload.assigned_to)
    return PickListDetail.model_validate(pick_list)


# PUBLIC_INTERFACE
@router.patch(
    "/{pick_list_id}/status",
    response_model=PickListDetail,
    summary="Change pick list status",
    description="Allowed: pending -> in_progress | cancelled, in_progress -> completed | cancelled.",
)
async def update_pick_list_status(
    pick_list_id: UUID, payload: PickListStatusUpdate, session: AsyncSession = Depends(get_session)
) -> PickListDetail:
    pick_list = await PickListService(session).update_status(pick_list_id, payload.status)
    return PickListDetail.model_validate(pick_list)


# PUBLIC_INTERFACE
@router.patch(
    "/{pick_list_id}/items/{item_id}",
    response_model=PickListDetail,
    summary="Record picking progress for an item",
)
async def update_pick_list_item(
    pick_list_id: UUID,
    item_id: UUID,
    payload: PickListItemUpdate,
    session: AsyncSession = Depends(get_session),
) -> PickListDetail:
    pick_list = await PickListService(session).update_item(pick_list_id, item_id, payload)
    return PickListDetail.model_validate(pick_list)
