import pytest
from sqlalchemy import func, select

from wms.core.constants import AdjustmentType
from wms.core.errors import (
    CapacityExceededError,
    ConflictError,
    DuplicateInventoryError,
    ValidationError,
)
from wms.db.models import InventoryRow
from wms.schemas.inventory import InventoryCreate, LocationCreate, LocationUpdate, StockAdjustment
from wms.services.inventory import InventoryService, LocationService


async def test_receive_stock_creates_row(session, factory):
    product = await factory.product()
    loc = await factory.location(capacity=100)

    row = await InventoryService(session).receive_stock(
        InventoryCreate(product_id=product.id, location_id=loc.id, quantity=40, lot_number="L1")
    )

    assert row.quantity == 40
    assert row.lot_number == "L1"


async def test_receive_stock_rejects_duplicate_key(session, factory):
    product = await factory.product()
    loc = await factory.location()
    await factory.stock(product, loc, 5, lot_number="L1")
    payload = InventoryCreate(product_id=product.id, location_id=loc.id, quantity=1, lot_number="L1")

    with pytest.raises(DuplicateInventoryError):
        await InventoryService(session).receive_stock(payload)


async def test_receive_stock_rejects_over_capacity(session, factory):
    product = await factory.product()
    loc = await factory.location(capacity=100)
    await factory.stock(product, loc, 80, lot_number="L1")
    product_id, loc_id = product.id, loc.id

    with pytest.raises(CapacityExceededError):
        await InventoryService(session).receive_stock(
            InventoryCreate(product_id=product_id, location_id=loc_id, quantity=30, lot_number="L2")
        )
    count = await session.scalar(select(func.count()).select_from(InventoryRow))
    assert count == 1


async def test_adjust_stock_add_and_remove(session, factory):
    product = await factory.product()
    loc = await factory.location(capacity=100)
    row = await factory.stock(product, loc, 10)
    svc = InventoryService(session)

    row = await svc.adjust_stock(row.id, StockAdjustment(quantity=5, adjustment_type=AdjustmentType.ADD))
    assert row.quantity == 15
    row = await svc.adjust_stock(row.id, StockAdjustment(quantity=15, adjustment_type=AdjustmentType.REMOVE))
    assert row.quantity == 0


async def test_adjust_stock_cannot_go_negative(session, factory):
    product = await factory.product()
    loc = await factory.location()
    row = await factory.stock(product, loc, 3)
    row_id = row.id

    with pytest.raises(ValidationError) as exc:
        await InventoryService(session).adjust_stock(
            row_id, StockAdjustment(quantity=4, adjustment_type=AdjustmentType.REMOVE)
        )
    assert exc.value.message == "Stock cannot be negative"
    assert await session.scalar(select(InventoryRow.quantity).where(InventoryRow.id == row_id)) == 3


async def test_relocate_checks_target_capacity(session, factory):
    product = await factory.product()
    source = await factory.location(capacity=100)
    small = await factory.location(capacity=5)
    large = await factory.location(capacity=50)
    row = await factory.stock(product, source, 10)
    row_id, small_id, large_id = row.id, small.id, large.id
    svc = InventoryService(session)

    with pytest.raises(CapacityExceededError):
        await svc.relocate(row_id, small_id)

    moved = await svc.relocate(row_id, large_id)
    assert moved.location_id == large_id


async def test_delete_requires_zero_quantity(session, factory):
    product = await factory.product()
    loc = await factory.location()
    full = await factory.stock(product, loc, 2, lot_number="a")
    empty = await factory.stock(product, loc, 0, lot_number="b")
    full_id, empty_id = full.id, empty.id
    svc = InventoryService(session)

    with pytest.raises(ValidationError):
        await svc.delete(full_id)
    await svc.delete(empty_id)

    remaining = (await session.execute(select(InventoryRow.id))).scalars().all()
    assert remaining == [full_id]


async def test_location_usage_and_capacity_floor(session, factory):
    product = await factory.product()
    svc = LocationService(session)
    loc = await svc.create_location(LocationCreate(zone="B", aisle="02", rack="03", bin="04", capacity=50))
    loc_id = loc.id
    await factory.stock(product, loc, 30)

    usage = await svc.get_with_usage(loc_id)
    assert usage.code == "B-02-03-04"
    assert usage.current_usage == 30
    assert usage.available_capacity == 20
    assert not usage.over_stock

    with pytest.raises(ValidationError):
        await svc.update_location(loc_id, LocationUpdate(capacity=20))
    updated = await svc.update_location(loc_id, LocationUpdate(capacity=30))
    assert updated.capacity == 30


async def test_location_code_is_unique(session):
    svc = LocationService(session)
    payload = LocationCreate(zone="A", aisle="01", rack="01", bin="01", capacity=10)
    await svc.create_location(payload)
    with pytest.raises(ConflictError):
        await svc.create_location(payload)


async def test_location_with_inventory_cannot_be_deleted(session, factory):
    product = await factory.product()
    loc = await factory.location()
    await factory.stock(product, loc, 1)

    with pytest.raises(ConflictError):
        await LocationService(session).delete_location(loc.id)
