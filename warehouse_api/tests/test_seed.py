from sqlalchemy import func, select

from wms.db.models import InventoryRow, Product, WarehouseLocation
from wms.db.seed import LOCATIONS, OPENING_STOCK, PRODUCTS, seed_session
from wms.services.stock import StockLedger


async def count(session, model):
    return await session.scalar(select(func.count()).select_from(model))


async def test_seed_is_idempotent(session):
    await seed_session(session)
    await session.commit()
    await seed_session(session)
    await session.commit()

    assert await count(session, Product) == len(PRODUCTS)
    assert await count(session, WarehouseLocation) == len(LOCATIONS)
    assert await count(session, InventoryRow) == len(OPENING_STOCK)


async def test_seeded_stock_flags_low_products(session):
    await seed_session(session)
    await session.commit()

    low = await StockLedger(session).low_stock_products()
    assert {p.sku for p, _ in low} == {"PACK-2001", "HARD-3001"}
