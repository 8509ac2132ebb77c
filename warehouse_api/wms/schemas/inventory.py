from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from wms.core.constants import AdjustmentType, RotationMethod


class LocationRead(BaseModel):
    """Read model for a warehouse location."""
    id: UUID = Field(..., description="Location ID")
    code: str = Field(..., description="Composite code ZONE-AISLE-RACK-BIN")
    name: Optional[str] = Field(None, description="Location name")
    zone: str
    aisle: str
    rack: str
    bin: str
    capacity: int = Field(..., description="Declared capacity in units")
    reserved: bool = Field(False)
    location_type: Optional[str] = Field(None)
    rotation_method: RotationMethod = Field(RotationMethod.FIFO)
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")

    class Config:
        from_attributes = True


class LocationUsageRead(LocationRead):
    """Location with its current fill level."""
    current_usage: int = Field(..., description="Sum of inventory quantity stored here")
    available_capacity: int = Field(..., description="capacity - current_usage (may be negative)")
    over_stock: bool = Field(..., description="True when current_usage exceeds capacity")


class LocationCreate(BaseModel):
    """Create location payload."""
    name: Optional[str] = Field(None)
    zone: str = Field(..., min_length=1)
    aisle: str = Field(..., min_length=1)
    rack: str = Field(..., min_length=1)
    bin: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=0)
    reserved: bool = Field(False)
    location_type: Optional[str] = Field(None)
    rotation_method: RotationMethod = Field(RotationMethod.FIFO)
    notes: Optional[str] = Field(None)


class LocationUpdate(BaseModel):
    """Partial location update."""
    name: Optional[str] = Field(None)
    capacity: Optional[int] = Field(None, ge=0)
    reserved: Optional[bool] = Field(None)
    location_type: Optional[str] = Field(None)
    rotation_method: Optional[RotationMethod] = Field(None)
    notes: Optional[str] = Field(None)


class InventoryRead(BaseModel):
    """Read model for an inventory row."""
    id: UUID = Field(..., description="Inventory row ID")
    product_id: UUID = Field(..., description="Product ID")
    location_id: UUID = Field(..., description="Location ID")
    quantity: int = Field(..., description="Quantity on hand")
    lot_number: Optional[str] = Field(None, description="Lot number")
    expiry_date: Optional[date] = Field(None, description="Expiry date")
    created_at: datetime = Field(..., description="Created timestamp (FIFO key)")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class InventoryCreate(BaseModel):
    """Stock receipt into a location."""
    product_id: UUID
    location_id: UUID
    quantity: int = Field(..., gt=0)
    lot_number: Optional[str] = Field(None)
    expiry_date: Optional[date] = Field(None)


class StockAdjustment(BaseModel):
    """Add to or remove from a single inventory row."""
    quantity: int = Field(..., gt=0)
    adjustment_type: AdjustmentType = Field(AdjustmentType.ADD)


class InventoryRelocate(BaseModel):
    """Move an inventory row to another location."""
    location_id: UUID


class AllocationRequest(BaseModel):
    """FIFO deduction request."""
    product_id: UUID
    quantity: int = Field(..., gt=0)
    request_token: Optional[str] = Field(
        None, description="Client token; repeating a token returns the first result without deducting again"
    )


class AllocationLineRead(BaseModel):
    inventory_id: Optional[UUID] = None
    quantity: int

    class Config:
        from_attributes = True


class AllocationRead(BaseModel):
    """Recorded allocation and the rows it drained."""
    id: UUID
    request_token: str
    product_id: UUID
    quantity: int
    order_id: Optional[UUID] = None
    lines: List[AllocationLineRead] = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True


class LocationAssignment(BaseModel):
    """Proposed quantity for a location."""
    location_id: UUID
    quantity: int = Field(..., gt=0)


class CapacityCheckRequest(BaseModel):
    assignments: List[LocationAssignment] = Field(..., min_length=1)


class LocationCapacityRead(BaseModel):
    location_id: UUID
    code: str
    capacity: int
    existing: int
    proposed: int
    fits: bool


class CapacityCheckResult(BaseModel):
    """Per-location outcome of a capacity batch check."""
    ok: bool
    locations: List[LocationCapacityRead]
