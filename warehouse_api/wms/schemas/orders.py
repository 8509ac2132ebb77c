from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from wms.core.constants import OrderStatus, OrderType, ShippingStatus
from wms.schemas.partners import CreditAssessmentRead


class ShippingAddress(BaseModel):
    street: str
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str


class OrderItemCreate(BaseModel):
    """Line item on a new order."""
    product_id: UUID
    quantity: int = Field(..., gt=0)
    unit_price: Optional[float] = Field(
        None, ge=0, description="Defaults to the product's current unit price"
    )


class OrderCreate(BaseModel):
    """Create order payload."""
    order_type: OrderType
    supplier_id: Optional[UUID] = Field(None, description="Required for inbound orders")
    customer_id: Optional[UUID] = Field(None, description="Required for outbound orders")
    expected_arrival: Optional[date] = None
    notes: Optional[str] = None
    shipping_method: Optional[str] = None
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[date] = None
    shipping_address: Optional[ShippingAddress] = None
    shipping_cost: float = Field(0, ge=0)
    items: List[OrderItemCreate] = Field(..., min_length=1)
    auto_raise_credit_limit: bool = Field(
        False,
        description="Proceed when the order exceeds the customer's credit limit by raising the limit",
    )
    request_token: Optional[str] = Field(
        None, description="Client token; resubmitting the same token returns the existing order"
    )


class OrderItemRead(BaseModel):
    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True


class ShipmentTrackingRead(BaseModel):
    id: UUID
    order_id: UUID
    status: ShippingStatus
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    """Order header read model."""
    id: UUID
    order_number: str
    order_type: OrderType
    status: OrderStatus
    supplier_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    expected_arrival: Optional[date] = None
    notes: Optional[str] = None
    total_amount: float
    shipping_method: Optional[str] = None
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[date] = None
    shipping_address: Optional[dict] = None
    shipping_cost: float = 0
    shipping_status: ShippingStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderDetail(OrderRead):
    """Order with its items and tracking history."""
    items: List[OrderItemRead] = Field(default_factory=list)
    tracking_history: List[ShipmentTrackingRead] = Field(default_factory=list)


class OrderCreated(OrderDetail):
    """Created order plus the credit assessment made for outbound orders."""
    credit: Optional[CreditAssessmentRead] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class ShippingStatusUpdate(BaseModel):
    status: ShippingStatus
    location: Optional[str] = None
    notes: Optional[str] = None


class ItemLocationAssignment(BaseModel):
    """Where one inbound order item is put away."""
    order_item_id: UUID
    location_id: UUID
    lot_number: Optional[str] = None
    expiry_date: Optional[date] = None


class AssignLocationsRequest(BaseModel):
    assignments: List[ItemLocationAssignment] = Field(..., min_length=1)
