import pytest
from sqlalchemy import select

from wms.core.constants import OrderType, PickItemStatus, PickListStatus
from wms.core.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from wms.db.models import InventoryRow
from wms.schemas.orders import OrderCreate, OrderItemCreate
from wms.schemas.picking import PickListCreate, PickListItemUpdate
from wms.services.numbering import is_valid_pick_list_number
from wms.services.orders import OrderService
from wms.services.picking import PickListService, pick_item_status


def outbound(customer_id, *items):
    return OrderCreate(
        order_type=OrderType.OUTBOUND,
        customer_id=customer_id,
        items=[OrderItemCreate(product_id=pid, quantity=qty) for pid, qty in items],
    )


@pytest.mark.parametrize(
    "quantity,picked,expected",
    [(5, 0, PickItemStatus.PENDING), (5, 2, PickItemStatus.PARTIAL), (5, 5, PickItemStatus.PICKED)],
)
def test_pick_item_status(quantity, picked, expected):
    assert pick_item_status(quantity, picked) is expected


async def test_pick_list_follows_fifo_allocation(session, factory):
    customer = await factory.customer(credit_limit=10000)
    bolts = await factory.product(unit_price=1)
    nuts = await factory.product(unit_price=1)
    aisle_a, aisle_b = await factory.location(), await factory.location()
    await factory.stock(bolts, aisle_a, 4, age_days=10, lot_number="old")
    await factory.stock(bolts, aisle_b, 10, age_days=1, lot_number="new")
    await factory.stock(nuts, aisle_b, 10)
    order, _ = await OrderService(session).create_order(outbound(customer.id, (bolts.id, 6), (nuts.id, 3)))

    pick_list = await PickListService(session).create_pick_list(PickListCreate(order_id=order.id, notes="Dock 2"))

    assert is_valid_pick_list_number(pick_list.pick_list_number)
    assert pick_list.status == PickListStatus.PENDING.value
    assert [(i.product_id, i.location_id, i.quantity) for i in pick_list.items] == [
        (bolts.id, aisle_a.id, 4),
        (bolts.id, aisle_b.id, 2),
        (nuts.id, aisle_b.id, 3),
    ]
    assert all(i.quantity_picked == 0 for i in pick_list.items)


async def test_one_open_pick_list_per_order(session, factory):
    customer = await factory.customer()
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    await factory.stock(product, loc, 5)
    order, _ = await OrderService(session).create_order(outbound(customer.id, (product.id, 2)))
    svc = PickListService(session)
    first = await svc.create_pick_list(PickListCreate(order_id=order.id))
    order_id, first_id = order.id, first.id

    with pytest.raises(ConflictError):
        await svc.create_pick_list(PickListCreate(order_id=order_id))

    await svc.update_status(first_id, PickListStatus.CANCELLED)
    second = await svc.create_pick_list(PickListCreate(order_id=order_id))
    assert second.id != first_id


async def test_pick_list_requires_open_outbound_order(session, factory):
    supplier = await factory.supplier()
    product = await factory.product()
    inbound, _ = await OrderService(session).create_order(
        OrderCreate(
            order_type=OrderType.INBOUND,
            supplier_id=supplier.id,
            items=[OrderItemCreate(product_id=product.id, quantity=1)],
        )
    )
    inbound_id = inbound.id

    with pytest.raises(ValidationError):
        await PickListService(session).create_pick_list(PickListCreate(order_id=inbound_id))


async def test_picking_progress_and_completion(session, factory):
    customer = await factory.customer()
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    row = await factory.stock(product, loc, 10)
    order, _ = await OrderService(session).create_order(outbound(customer.id, (product.id, 5)))
    svc = PickListService(session)
    pick_list = await svc.create_pick_list(PickListCreate(order_id=order.id))
    item_id = pick_list.items[0].id

    pick_list = await svc.update_item(pick_list.id, item_id, PickListItemUpdate(quantity_picked=3))
    assert pick_list.status == PickListStatus.IN_PROGRESS.value
    assert pick_list.items[0].status == PickItemStatus.PARTIAL.value

    pick_list = await svc.assign(pick_list.id, "Sam")
    assert pick_list.assigned_to == "Sam"

    pick_list = await svc.update_item(pick_list.id, item_id, PickListItemUpdate(quantity_picked=5, notes="ok"))
    assert pick_list.items[0].status == PickItemStatus.PICKED.value

    pick_list = await svc.update_status(pick_list.id, PickListStatus.COMPLETED)
    assert pick_list.status == PickListStatus.COMPLETED.value
    assert pick_list.completed_at is not None

    # stock was taken when the order was created; picking does not move it again
    assert await session.scalar(select(InventoryRow.quantity).where(InventoryRow.id == row.id)) == 5


async def test_picking_rules(session, factory):
    customer = await factory.customer()
    product = await factory.product(unit_price=1)
    loc = await factory.location()
    await factory.stock(product, loc, 10)
    order, _ = await OrderService(session).create_order(outbound(customer.id, (product.id, 4)))
    svc = PickListService(session)
    pick_list = await svc.create_pick_list(PickListCreate(order_id=order.id))
    pick_list_id, item_id = pick_list.id, pick_list.items[0].id

    with pytest.raises(InvalidTransitionError):
        await svc.update_status(pick_list_id, PickListStatus.COMPLETED)
    await svc.assign(pick_list_id, "Sam")
    with pytest.raises(ValidationError):
        await svc.update_status(pick_list_id, PickListStatus.COMPLETED)
    with pytest.raises(ValidationError):
        await svc.update_item(pick_list_id, item_id, PickListItemUpdate(quantity_picked=5))
    with pytest.raises(NotFoundError):
        await svc.update_item(pick_list_id, pick_list_id, PickListItemUpdate(quantity_picked=1))

    await svc.update_status(pick_list_id, PickListStatus.CANCELLED)
    with pytest.raises(ValidationError):
        await svc.update_item(pick_list_id, item_id, PickListItemUpdate(quantity_picked=1))
    with pytest.raises(ValidationError):
        await svc.assign(pick_list_id, "Alex")
