import uuid
from datetime import datetime, timezone

import pytest

from wms.core.constants import OrderType
from wms.core.errors import NotFoundError
from wms.schemas.orders import AssignLocationsRequest, ItemLocationAssignment, OrderCreate, OrderItemCreate
from wms.services.analytics import AnalyticsService, order_frequency
from wms.services.orders import OrderService


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_order_frequency():
    assert order_frequency([]) == 0
    assert order_frequency([utc(2024, 1, 5)]) == 0
    assert order_frequency([utc(2024, 1, 5), utc(2024, 1, 20)]) == 2
    assert order_frequency([utc(2024, 1, 5), utc(2024, 2, 1), utc(2024, 4, 2)]) == 1


async def test_dashboard_metrics(session, factory):
    tools = await factory.category("Tools")
    hammer = await factory.product("Hammer", unit_price=12.5, minimum_stock=5, category=tools)
    tape = await factory.product("Tape", unit_price=2, minimum_stock=100)
    retired = await factory.product("Retired", unit_price=1)
    retired.archived = True
    await session.commit()
    loc = await factory.location()
    await factory.stock(hammer, loc, 10)
    await factory.stock(tape, loc, 20)
    supplier = await factory.supplier()

    svc = OrderService(session)
    received, _ = await svc.create_order(
        OrderCreate(
            order_type=OrderType.INBOUND,
            supplier_id=supplier.id,
            items=[OrderItemCreate(product_id=hammer.id, quantity=2)],
        )
    )
    await svc.assign_locations(
        received.id,
        AssignLocationsRequest(
            assignments=[ItemLocationAssignment(order_item_id=received.items[0].id, location_id=loc.id)]
        ),
    )
    await svc.create_order(
        OrderCreate(
            order_type=OrderType.INBOUND,
            supplier_id=supplier.id,
            items=[OrderItemCreate(product_id=tape.id, quantity=1)],
        )
    )

    metrics = await AnalyticsService(session).dashboard()

    assert metrics.total_products == 2
    assert metrics.low_stock_items == 1
    assert [p.name for p in metrics.low_stock_products] == ["Tape"]
    assert metrics.pending_orders == 1
    assert metrics.orders_by_status["completed"] == 1
    assert metrics.completed_orders_today == 1
    assert metrics.inventory_value == 12 * 12.5 + 20 * 2
    assert [(c.category, c.count) for c in metrics.inventory_by_category] == [("Tools", 1), ("Uncategorized", 1)]
    assert len(metrics.recent_orders) == 2


async def test_customer_analytics(session, factory):
    customer = await factory.customer(credit_limit=10000)
    product = await factory.product(unit_price=10)
    loc = await factory.location()
    await factory.stock(product, loc, 100)
    svc = OrderService(session)
    for qty in (3, 7):
        await svc.create_order(
            OrderCreate(
                order_type=OrderType.OUTBOUND,
                customer_id=customer.id,
                items=[OrderItemCreate(product_id=product.id, quantity=qty)],
            )
        )

    stats = await AnalyticsService(session).customer_analytics(customer.id)

    assert stats.total_orders == 2
    assert stats.total_spent == 100
    assert stats.average_order_value == 50
    assert stats.order_frequency == 2
    assert stats.status_breakdown.pending == 2
    assert stats.last_order_date is not None


async def test_customer_analytics_unknown_customer(session):
    with pytest.raises(NotFoundError):
        await AnalyticsService(session).customer_analytics(uuid.uuid4())
