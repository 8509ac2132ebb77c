from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.constants import OrderStatus, OrderType, ShippingStatus
from wms.core.deps import get_session
from wms.schemas.inventory import AllocationRead
from wms.schemas.orders import (
    AssignLocationsRequest,
    OrderCreate,
    OrderCreated,
    OrderDetail,
    OrderRead,
    OrderStatusUpdate,
    ShippingStatusUpdate,
)
from wms.schemas.partners import CreditAssessmentRead
from wms.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[OrderRead],
    summary="List orders",
    description="Orders newest first, filterable by type, status and shipping status.",
)
async def list_orders(
    session: AsyncSession = Depends(get_session),
    order_type: Optional[OrderType] = Query(None, description="inbound | outbound"),
    status_: Optional[OrderStatus] = Query(None, alias="status", description="Order status"),
    shipping_status: Optional[ShippingStatus] = Query(None, description="Shipping status"),
    customer_id: Optional[UUID] = Query(None),
    supplier_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Search order or tracking number"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[OrderRead]:
    orders = await OrderService(session).list_orders(
        order_type=order_type.value if order_type else None,
        status=status_.value if status_ else None,
        shipping_status=shipping_status.value if shipping_status else None,
        customer_id=customer_id,
        supplier_id=supplier_id,
        search=search,
        limit=limit,
        offset=offset,
    )
    return [OrderRead.model_validate(o) for o in orders]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=OrderCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description=(
        "Create an inbound or outbound order with its items in one transaction. Outbound orders are "
        "credit-checked and their stock is allocated FIFO immediately."
    ),
)
async def create_order(payload: OrderCreate, session: AsyncSession = Depends(get_session)) -> OrderCreated:
    """
    Create an order.

    Returns:
        OrderCreated: the order with items and, for outbound orders, the credit assessment.
    """
    order, credit = await OrderService(session).create_order(payload)
    detail = OrderDetail.model_validate(order)
    return OrderCreated(
        **detail.model_dump(),
        credit=CreditAssessmentRead(**asdict(credit)) if credit else None,
    )


# PUBLIC_INTERFACE
@router.get("/{order_id}", response_model=OrderDetail, summary="Get order with items and tracking history")
async def get_order(order_id: UUID, session: AsyncSession = Depends(get_session)) -> OrderDetail:
    order = await OrderService(session).get_order(order_id)
    return OrderDetail.model_validate(order)


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}/allocations",
    response_model=List[AllocationRead],
    summary="List stock allocations of an order",
    description="The FIFO deductions made when an outbound order was created, with the rows each one drained.",
)
async def list_order_allocations(order_id: UUID, session: AsyncSession = Depends(get_session)) -> List[AllocationRead]:
    allocations = await OrderService(session).list_allocations(order_id)
    return [AllocationRead.model_validate(a) for a in allocations]


# PUBLIC_INTERFACE
@router.patch(
    "/{order_id}/status",
    response_model=OrderDetail,
    summary="Change order status",
    description="Allowed: pending -> processing | cancelled, processing -> completed | cancelled.",
)
async def update_order_status(
    order_id: UUID, payload: OrderStatusUpdate, session: AsyncSession = Depends(get_session)
) -> OrderDetail:
    order = await OrderService(session).update_status(order_id, payload.status)
    return OrderDetail.model_validate(order)


# PUBLIC_INTERFACE
@router.patch(
    "/{order_id}/shipping-status",
    response_model=OrderDetail,
    summary="Change shipping status",
    description="Allowed: pending -> in_transit -> delivered | failed. Each change appends a tracking entry.",
)
async def update_shipping_status(
    order_id: UUID, payload: ShippingStatusUpdate, session: AsyncSession = Depends(get_session)
) -> OrderDetail:
    order = await OrderService(session).update_shipping_status(order_id, payload)
    return OrderDetail.model_validate(order)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/assign-locations",
    response_model=OrderDetail,
    summary="Put away an inbound order",
    description="Assign every item of an inbound order to a location, add the stock and complete the order.",
)
async def assign_locations(
    order_id: UUID, payload: AssignLocationsRequest, session: AsyncSession = Depends(get_session)
) -> OrderDetail:
    order = await OrderService(session).assign_locations(order_id, payload)
    return OrderDetail.model_validate(order)
