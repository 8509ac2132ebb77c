from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.deps import get_session
from wms.schemas.inventory import (
    CapacityCheckRequest,
    CapacityCheckResult,
    LocationCapacityRead,
    LocationCreate,
    LocationRead,
    LocationUpdate,
    LocationUsageRead,
)
from wms.services.inventory import LocationService
from wms.services.stock import CapacityChecker

router = APIRouter(prefix="/locations", tags=["Locations"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[LocationUsageRead],
    summary="List locations",
    description="Locations ordered by code, with current usage, free capacity and an over-stock flag.",
)
async def list_locations(
    session: AsyncSession = Depends(get_session),
    limit: int = Query(100, ge=1, le=1000, description="Max records"),
    offset: int = Query(0, ge=0, description="Records to skip"),
) -> List[LocationUsageRead]:
    return await LocationService(session).list_with_usage(limit=limit, offset=offset)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=LocationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create location",
    description="Create a location; the ZONE-AISLE-RACK-BIN code must be unique.",
)
async def create_location(payload: LocationCreate, session: AsyncSession = Depends(get_session)) -> LocationRead:
    location = await LocationService(session).create_location(payload)
    return LocationRead.model_validate(location)


# PUBLIC_INTERFACE
@router.post(
    "/capacity-check",
    response_model=CapacityCheckResult,
    summary="Check a put-away batch against capacity",
    description="Reports, per location, whether existing plus proposed quantity fits. Nothing is written.",
)
async def capacity_check(
    payload: CapacityCheckRequest, session: AsyncSession = Depends(get_session)
) -> CapacityCheckResult:
    results = await CapacityChecker(session).evaluate((a.location_id, a.quantity) for a in payload.assignments)
    locations = [
        LocationCapacityRead(
            location_id=r.location_id,
            code=r.code,
            capacity=r.capacity,
            existing=r.existing,
            proposed=r.proposed,
            fits=r.fits,
        )
        for r in results
    ]
    return CapacityCheckResult(ok=all(loc.fits for loc in locations), locations=locations)


# PUBLIC_INTERFACE
@router.get("/{location_id}", response_model=LocationUsageRead, summary="Get location")
async def get_location(location_id: UUID, session: AsyncSession = Depends(get_session)) -> LocationUsageRead:
    return await LocationService(session).get_with_usage(location_id)


# PUBLIC_INTERFACE
@router.patch("/{location_id}", response_model=LocationRead, summary="Update location")
async def update_location(
    location_id: UUID, payload: LocationUpdate, session: AsyncSession = Depends(get_session)
) -> LocationRead:
    location = await LocationService(session).update_location(location_id, payload)
    return LocationRead.model_validate(location)


# PUBLIC_INTERFACE
@router.delete(
    "/{location_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete location",
    description="Only locations without inventory records can be deleted.",
)
async def delete_location(location_id: UUID, session: AsyncSession = Depends(get_session)) -> Response:
    await LocationService(session).delete_location(location_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
