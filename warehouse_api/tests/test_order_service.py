import pytest
from sqlalchemy import func, select

from wms.core.constants import CreditStatus, OrderStatus, OrderType, ShippingStatus
from wms.core.errors import (
    CapacityExceededError,
    ConflictError,
    CreditLimitExceededError,
    InsufficientStockError,
    InvalidTransitionError,
    ValidationError,
)
from wms.db.base import as_utc
from wms.db.models import Customer, InventoryRow, Order, StockAllocation
from wms.repositories.inventory import AllocationRepository
from wms.schemas.orders import (
    AssignLocationsRequest,
    ItemLocationAssignment,
    OrderCreate,
    OrderItemCreate,
    ShippingStatusUpdate,
)
from wms.services.numbering import is_valid_order_number
from wms.services.orders import OrderService
from wms.services.stock import ORDER_TOKEN_PREFIX, StockAllocator, order_allocation_token


def outbound(customer_id, *items, **extra):
    return OrderCreate(
        order_type=OrderType.OUTBOUND,
        customer_id=customer_id,
        items=[OrderItemCreate(product_id=pid, quantity=qty) for pid, qty in items],
        **extra,
    )


def inbound(supplier_id, *items):
    return OrderCreate(
        order_type=OrderType.INBOUND,
        supplier_id=supplier_id,
        items=[OrderItemCreate(product_id=pid, quantity=qty) for pid, qty in items],
    )


async def quantity_of(session, row_id):
    return await session.scalar(select(InventoryRow.quantity).where(InventoryRow.id == row_id))


async def balance_of(session, customer_id):
    return await session.scalar(select(Customer.current_balance).where(Customer.id == customer_id))


async def order_count(session):
    return await session.scalar(select(func.count()).select_from(Order))


async def test_outbound_order_allocates_stock_and_charges_customer(session, factory):
    customer = await factory.customer(credit_limit=1000)
    product = await factory.product(unit_price=10)
    loc = await factory.location()
    old = await factory.stock(product, loc, 10, age_days=5, lot_number="old")
    new = await factory.stock(product, loc, 10, age_days=1, lot_number="new")

    order, credit = await OrderService(session).create_order(outbound(customer.id, (product.id, 15)))

    assert is_valid_order_number(order.order_number)
    assert order.status == OrderStatus.PENDING.value
    assert order.shipping_status == ShippingStatus.PENDING.value
    assert order.total_amount == 150
    assert [item.subtotal for item in order.items] == [150]
    assert credit.status is CreditStatus.OK
    assert await quantity_of(session, old.id) == 0
    assert await quantity_of(session, new.id) == 5
    assert await balance_of(session, customer.id) == 150

    allocations = await AllocationRepository(session).list_for_order(order.id)
    assert [a.quantity for a in allocations] == [15]


async def test_order_over_credit_limit_is_blocked(session, factory):
    customer = await factory.customer(credit_limit=100)
    product = await factory.product(unit_price=50)
    loc = await factory.location()
    row = await factory.stock(product, loc, 10)
    customer_id, product_id, row_id = customer.id, product.id, row.id

    with pytest.raises(CreditLimitExceededError) as exc:
        await OrderService(session).create_order(outbound(customer_id, (product_id, 3)))

    assert exc.value.details["new_balance"] == 150
    assert await order_count(session) == 0
    assert await quantity_of(session, row_id) == 10
    assert await balance_of(session, customer_id) == 0


async def test_auto_raise_accepts_order_over_limit(session, factory):
    customer = await factory.customer(credit_limit=100)
    product = await factory.product(unit_price=50)
    loc = await factory.location()
    await factory.stock(product, loc, 10)

    order, credit = await OrderService(session).create_order(
        outbound(customer.id, (product.id, 3), auto_raise_credit_limit=True)
    )

    assert credit.status is CreditStatus.EXCEEDS_LIMIT
    await session.refresh(customer)
    assert customer.credit_limit == 300
    assert customer.current_balance == 150
    assert order.total_amount == 150


async def test_shortfall_on_any_item_rolls_back_the_whole_order(session, factory):
    customer = await factory.customer(credit_limit=10000)
    plenty = await factory.product(unit_price=1)
    scarce = await factory.product(unit_price=1)
    loc = await factory.location()
    plenty_row = await factory.stock(plenty, loc, 100)
    await factory.stock(scarce, loc, 2)
    customer_id, plenty_id, scarce_id, plenty_row_id = customer.id, plenty.id, scarce.id, plenty_row.id

    with pytest.raises(InsufficientStockError):
        await OrderService(session).create_order(outbound(customer_id, (plenty_id, 10), (scarce_id, 5)))

    assert await order_count(session) == 0
    assert await quantity_of(session, plenty_row_id) == 100
    assert await balance_of(session, customer_id) == 0
    assert await session.scalar(select(func.count()).select_from(StockAllocation)) == 0


async def test_request_token_replays_existing_order(session, factory):
    customer = await factory.customer(credit_limit=1000)
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    row = await factory.stock(product, loc, 10)
    svc = OrderService(session)
    payload = outbound(customer.id, (product.id, 4), request_token="checkout-42")

    first, _ = await svc.create_order(payload)
    second, _ = await svc.create_order(payload)

    assert first.id == second.id
    assert await order_count(session) == 1
    assert await quantity_of(session, row.id) == 6
    assert await balance_of(session, customer.id) == 4


async def test_request_token_reused_for_different_order_conflicts(session, factory):
    customer = await factory.customer(credit_limit=1000)
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    row = await factory.stock(product, loc, 10)
    customer_id, product_id, row_id = customer.id, product.id, row.id
    svc = OrderService(session)
    await svc.create_order(outbound(customer_id, (product_id, 4), request_token="checkout-43"))

    with pytest.raises(ConflictError):
        await svc.create_order(outbound(customer_id, (product_id, 5), request_token="checkout-43"))

    assert await order_count(session) == 1
    assert await quantity_of(session, row_id) == 6
    assert await balance_of(session, customer_id) == 4


async def test_manual_allocation_token_does_not_shadow_order_allocation(session, factory):
    customer = await factory.customer(credit_limit=1000)
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    row = await factory.stock(product, loc, 10)
    product_id, row_id = product.id, row.id
    await StockAllocator(session).allocate(product_id, 3, request_token=f"batch-7:{product_id}")

    order, _ = await OrderService(session).create_order(
        outbound(customer.id, (product_id, 3), request_token="batch-7")
    )

    assert await quantity_of(session, row_id) == 4
    allocations = await AllocationRepository(session).list_for_order(order.id)
    assert [(a.quantity, a.order_id) for a in allocations] == [(3, order.id)]
    assert allocations[0].request_token.startswith(ORDER_TOKEN_PREFIX)


async def test_order_allocation_token_cannot_be_replayed_for_another_order(session, factory):
    customer = await factory.customer(credit_limit=1000)
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    row = await factory.stock(product, loc, 10)
    product_id, row_id = product.id, row.id
    order, _ = await OrderService(session).create_order(outbound(customer.id, (product_id, 2)))
    token = order_allocation_token(order.id, product_id)
    allocator = StockAllocator(session)

    with pytest.raises(ConflictError):
        await allocator.allocate_in_transaction(product_id, 2, request_token=token, order_id=None)
    await session.rollback()
    with pytest.raises(ValidationError):
        await allocator.allocate(product_id, 2, request_token=token)

    assert await quantity_of(session, row_id) == 8


async def test_order_validation_errors(session, factory):
    customer = await factory.customer()
    product = await factory.product()
    archived = await factory.product()
    archived.archived = True
    await session.commit()
    customer_id, product_id, archived_id = customer.id, product.id, archived.id
    svc = OrderService(session)

    with pytest.raises(ValidationError):
        await svc.create_order(
            OrderCreate(order_type=OrderType.INBOUND, items=[OrderItemCreate(product_id=product_id, quantity=1)])
        )
    with pytest.raises(ValidationError):
        await svc.create_order(outbound(customer_id, (product_id, 1), (product_id, 2)))
    with pytest.raises(ValidationError):
        await svc.create_order(outbound(customer_id, (archived_id, 1)))
    assert await order_count(session) == 0


async def test_order_number_collision_regenerates(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    numbers = iter(["ORD-20240101-0001", "ORD-20240101-0001", "ORD-20240101-0002"])
    svc = OrderService(session, number_factory=lambda: next(numbers))

    first, _ = await svc.create_order(inbound(supplier.id, (product.id, 1)))
    second, _ = await svc.create_order(inbound(supplier.id, (product.id, 1)))

    assert first.order_number == "ORD-20240101-0001"
    assert second.order_number == "ORD-20240101-0002"


async def test_order_number_attempts_are_bounded(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    supplier_id, product_id = supplier.id, product.id
    svc = OrderService(session, number_factory=lambda: "ORD-20240101-0001")
    await svc.create_order(inbound(supplier_id, (product_id, 1)))

    with pytest.raises(ConflictError):
        await svc.create_order(inbound(supplier_id, (product_id, 1)))


async def test_assign_locations_puts_away_and_completes(session, factory):
    supplier = await factory.supplier()
    bolts = await factory.product(unit_price=2)
    nuts = await factory.product(unit_price=1)
    shelf = await factory.location(capacity=100)
    bin_ = await factory.location(capacity=100)
    existing = await factory.stock(bolts, shelf, 10, lot_number="LOT-A")
    svc = OrderService(session)

    order, credit = await svc.create_order(inbound(supplier.id, (bolts.id, 5), (nuts.id, 4)))
    assert credit is None
    bolts_item, nuts_item = order.items

    order = await svc.assign_locations(
        order.id,
        AssignLocationsRequest(
            assignments=[
                ItemLocationAssignment(order_item_id=bolts_item.id, location_id=shelf.id, lot_number="LOT-A"),
                ItemLocationAssignment(order_item_id=nuts_item.id, location_id=bin_.id),
            ]
        ),
    )

    assert order.status == OrderStatus.COMPLETED.value
    assert await quantity_of(session, existing.id) == 15
    nuts_rows = (
        await session.execute(select(InventoryRow.quantity).where(InventoryRow.product_id == nuts.id))
    ).scalars().all()
    assert nuts_rows == [4]


async def test_assign_locations_requires_every_item(session, factory):
    supplier = await factory.supplier()
    a = await factory.product()
    b = await factory.product()
    loc = await factory.location()
    svc = OrderService(session)
    order, _ = await svc.create_order(inbound(supplier.id, (a.id, 1), (b.id, 1)))
    order_id, first_item_id, loc_id = order.id, order.items[0].id, loc.id

    with pytest.raises(ValidationError):
        await svc.assign_locations(
            order_id,
            AssignLocationsRequest(assignments=[ItemLocationAssignment(order_item_id=first_item_id, location_id=loc_id)]),
        )
    assert await session.scalar(select(Order.status).where(Order.id == order_id)) == "pending"


async def test_assign_locations_respects_capacity(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    loc = await factory.location(capacity=10)
    svc = OrderService(session)
    order, _ = await svc.create_order(inbound(supplier.id, (product.id, 11)))
    order_id, item_id, loc_id = order.id, order.items[0].id, loc.id

    with pytest.raises(CapacityExceededError):
        await svc.assign_locations(
            order_id,
            AssignLocationsRequest(assignments=[ItemLocationAssignment(order_item_id=item_id, location_id=loc_id)]),
        )
    assert await session.scalar(select(func.count()).select_from(InventoryRow)) == 0


async def test_assign_locations_rejects_outbound_orders(session, factory):
    customer = await factory.customer()
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    await factory.stock(product, loc, 5)
    svc = OrderService(session)
    order, _ = await svc.create_order(outbound(customer.id, (product.id, 1)))

    with pytest.raises(ValidationError):
        await svc.assign_locations(
            order.id,
            AssignLocationsRequest(
                assignments=[ItemLocationAssignment(order_item_id=order.items[0].id, location_id=loc.id)]
            ),
        )


async def test_status_transitions(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    svc = OrderService(session)
    order, _ = await svc.create_order(inbound(supplier.id, (product.id, 1)))
    order_id = order.id

    order = await svc.update_status(order_id, OrderStatus.PROCESSING)
    assert order.status == "processing"
    order = await svc.update_status(order_id, OrderStatus.CANCELLED)
    assert order.status == "cancelled"

    with pytest.raises(InvalidTransitionError):
        await svc.update_status(order_id, OrderStatus.COMPLETED)


async def test_shipping_updates_append_tracking_in_order(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    svc = OrderService(session)
    order, _ = await svc.create_order(inbound(supplier.id, (product.id, 1)))
    order_id = order.id
    assert order.tracking_history == []

    await svc.update_shipping_status(
        order_id, ShippingStatusUpdate(status=ShippingStatus.IN_TRANSIT, location="Hub 1")
    )
    order = await svc.update_shipping_status(order_id, ShippingStatusUpdate(status=ShippingStatus.DELIVERED))

    assert order.shipping_status == "delivered"
    history = order.tracking_history
    assert [t.status for t in history] == ["in_transit", "delivered"]
    assert history[0].location == "Hub 1"
    assert as_utc(history[0].created_at) < as_utc(history[1].created_at)


async def test_shipping_cannot_skip_in_transit(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    svc = OrderService(session)
    order, _ = await svc.create_order(inbound(supplier.id, (product.id, 1)))
    order_id = order.id

    with pytest.raises(InvalidTransitionError):
        await svc.update_shipping_status(order_id, ShippingStatusUpdate(status=ShippingStatus.DELIVERED))
    assert await session.scalar(select(Order.shipping_status).where(Order.id == order_id)) == "pending"
