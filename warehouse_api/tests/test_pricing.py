import uuid
from datetime import timedelta

import pytest

from wms.core.constants import OrderType
from wms.core.errors import NotFoundError, ValidationError
from wms.db.base import utcnow
from wms.schemas.orders import OrderCreate, OrderItemCreate
from wms.schemas.partners import CustomerPriceCreate
from wms.services.orders import OrderService
from wms.services.pricing import PricingService, apply_pricing_rule


@pytest.mark.parametrize(
    "list_price,special,discount,expected",
    [
        (10, None, None, 10),
        (10, 7.5, None, 7.5),
        (10, 7.5, 50, 7.5),
        (10, None, 15, 8.5),
        (19.99, None, 10, 17.99),
        (0.05, None, 50, 0.03),
        (10, None, 100, 0),
    ],
)
def test_apply_pricing_rule(list_price, special, discount, expected):
    assert apply_pricing_rule(list_price, special, discount) == expected


def rule(product_id, *, special=None, discount=None, start=0, end=None):
    today = utcnow().date()
    return CustomerPriceCreate(
        product_id=product_id,
        special_price=special,
        discount_percentage=discount,
        valid_from=today + timedelta(days=start),
        valid_to=None if end is None else today + timedelta(days=end),
    )


async def test_latest_rule_in_force_applies(session, factory):
    customer = await factory.customer()
    product = await factory.product(unit_price=20)
    svc = PricingService(session)
    older = await svc.add_rule(customer.id, rule(product.id, special=15, start=-30))
    newer = await svc.add_rule(customer.id, rule(product.id, discount=10, start=-5))
    await svc.add_rule(customer.id, rule(product.id, special=1, start=-60, end=-31))
    await svc.add_rule(customer.id, rule(product.id, special=2, start=3))

    price = await svc.effective_price(customer.id, product.id)

    assert price.list_price == 20
    assert price.unit_price == 18
    assert price.rule_id == newer.id

    earlier = await svc.effective_price(customer.id, product.id, on=utcnow().date() - timedelta(days=10))
    assert earlier.rule_id == older.id
    assert earlier.unit_price == 15


async def test_no_rule_uses_list_price(session, factory):
    customer = await factory.customer()
    other = await factory.customer()
    product = await factory.product(unit_price=12.5)
    await PricingService(session).add_rule(other.id, rule(product.id, special=5))

    price = await PricingService(session).effective_price(customer.id, product.id)

    assert price.unit_price == 12.5
    assert price.rule_id is None


async def test_rule_validation(session, factory):
    customer = await factory.customer()
    product = await factory.product()
    customer_id, product_id = customer.id, product.id
    svc = PricingService(session)

    with pytest.raises(ValidationError):
        await svc.add_rule(customer_id, rule(product_id))
    with pytest.raises(ValidationError):
        await svc.add_rule(customer_id, rule(product_id, special=5, start=0, end=-1))
    with pytest.raises(NotFoundError):
        await svc.add_rule(customer_id, rule(uuid.uuid4(), special=5))
    with pytest.raises(NotFoundError):
        await svc.add_rule(uuid.uuid4(), rule(product_id, special=5))

    assert await svc.list_rules(customer_id) == []


async def test_delete_rule_checks_owner(session, factory):
    customer = await factory.customer()
    other = await factory.customer()
    product = await factory.product()
    svc = PricingService(session)
    added = await svc.add_rule(customer.id, rule(product.id, special=5))
    customer_id, other_id, rule_id = customer.id, other.id, added.id

    await svc.delete_rule(customer_id, rule_id)
    assert await svc.list_rules(customer_id) == []

    with pytest.raises(NotFoundError):
        await svc.delete_rule(other_id, rule_id)


async def test_outbound_order_defaults_to_customer_price(session, factory):
    customer = await factory.customer(credit_limit=1000)
    discounted = await factory.product(unit_price=10)
    regular = await factory.product(unit_price=4)
    loc = await factory.location()
    await factory.stock(discounted, loc, 10)
    await factory.stock(regular, loc, 10)
    await PricingService(session).add_rule(customer.id, rule(discounted.id, discount=20))

    order, _ = await OrderService(session).create_order(
        OrderCreate(
            order_type=OrderType.OUTBOUND,
            customer_id=customer.id,
            items=[
                OrderItemCreate(product_id=discounted.id, quantity=5),
                OrderItemCreate(product_id=regular.id, quantity=2),
            ],
        )
    )

    assert [item.unit_price for item in order.items] == [8, 4]
    assert order.total_amount == 48


async def test_explicit_unit_price_overrides_customer_price(session, factory):
    customer = await factory.customer(credit_limit=1000)
    product = await factory.product(unit_price=10)
    loc = await factory.location()
    await factory.stock(product, loc, 10)
    await PricingService(session).add_rule(customer.id, rule(product.id, special=6))

    order, _ = await OrderService(session).create_order(
        OrderCreate(
            order_type=OrderType.OUTBOUND,
            customer_id=customer.id,
            items=[OrderItemCreate(product_id=product.id, quantity=1, unit_price=9)],
        )
    )

    assert order.items[0].unit_price == 9
