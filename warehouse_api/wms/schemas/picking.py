from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from wms.core.constants import PickItemStatus, PickListStatus


class PickListCreate(BaseModel):
    """Create a pick list for an outbound order."""
    order_id: UUID
    notes: Optional[str] = None


class PickListAssign(BaseModel):
    assigned_to: str = Field(..., min_length=1, description="Picker name or identifier")


class PickListStatusUpdate(BaseModel):
    status: PickListStatus


class PickListItemUpdate(BaseModel):
    """Record picking progress for one item; omitted fields are left unchanged."""
    quantity_picked: Optional[int] = Field(None, ge=0)
    location_id: Optional[UUID] = None
    notes: Optional[str] = None


class PickListItemRead(BaseModel):
    id: UUID
    line_no: int
    product_id: UUID
    location_id: Optional[UUID] = None
    quantity: int
    quantity_picked: int
    status: PickItemStatus
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class PickListRead(BaseModel):
    """Pick list header read model."""
    id: UUID
    pick_list_number: str
    order_id: UUID
    status: PickListStatus
    assigned_to: Optional[str] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PickListDetail(PickListRead):
    """Pick list with its items."""
    items: List[PickListItemRead] = Field(default_factory=list)
