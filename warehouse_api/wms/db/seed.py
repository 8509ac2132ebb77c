"""
Database seeding utilities for sample warehouse data.

Seeds (each step is skipped when its rows already exist):
- Categories and products
- Warehouse locations in two zones
- Opening stock for the sample products
- One supplier and one customer with a credit limit

Usage:
  python -m wms.db.run_migrations upgrade head
  python -m wms.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.logging import correlation_scope
from wms.db.base import utcnow
from wms.db.models import (
    Category,
    Customer,
    InventoryRow,
    Product,
    Supplier,
    WarehouseLocation,
)
from wms.db.session import session_scope

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("Electronics", "Devices and components"),
    ("Packaging", "Boxes, tape and fillers"),
    ("Hardware", "Fasteners and tools"),
]

# sku, name, category, unit_price, minimum_stock
PRODUCTS = [
    ("ELEC-1001", "USB-C Charger 65W", "Electronics", 29.90, 20),
    ("ELEC-1002", "HDMI Cable 2m", "Electronics", 7.50, 50),
    ("PACK-2001", "Shipping Box M", "Packaging", 0.85, 200),
    ("PACK-2002", "Packing Tape", "Packaging", 2.10, 40),
    ("HARD-3001", "Hex Bolt M8 (100)", "Hardware", 12.00, 10),
]

# zone, aisle, rack, bin, capacity
LOCATIONS = [
    ("A", "01", "01", "01", 500),
    ("A", "01", "01", "02", 500),
    ("A", "02", "01", "01", 300),
    ("B", "01", "01", "01", 1000),
    ("B", "01", "02", "01", 1000),
]

# sku, location code, quantity, lot, age in days
OPENING_STOCK = [
    ("ELEC-1001", "A-01-01-01", 40, "L-2401", 30),
    ("ELEC-1001", "A-01-01-02", 25, "L-2402", 10),
    ("ELEC-1002", "A-02-01-01", 120, None, 20),
    ("PACK-2001", "B-01-01-01", 150, None, 15),
    ("PACK-2002", "B-01-02-01", 60, None, 5),
    ("HARD-3001", "A-02-01-01", 8, "H-1", 40),
]


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with sample catalog, locations, stock and partners.

    Safe to run repeatedly; nothing is inserted into tables that already hold data.
    """
    with correlation_scope("seed"):
        async with session_scope() as session:
            await seed_session(session)
        logger.info("Seed data is in place")


async def seed_session(session: AsyncSession) -> None:
    """Insert the sample rows through `session` without committing."""
    categories = await _seed_categories(session)
    products = await _seed_products(session, categories)
    locations = await _seed_locations(session)
    await _seed_stock(session, products, locations)
    await _seed_partners(session)


async def _is_empty(session: AsyncSession, model) -> bool:
    return not (await session.scalar(select(func.count()).select_from(model)))


async def _seed_categories(session: AsyncSession) -> Dict[str, Category]:
    existing = {c.name: c for c in (await session.execute(select(Category))).scalars()}
    for name, description in CATEGORIES:
        if name not in existing:
            cat = Category(name=name, description=description)
            session.add(cat)
            existing[name] = cat
    await session.flush()
    return existing


async def _seed_products(session: AsyncSession, categories: Dict[str, Category]) -> Dict[str, Product]:
    existing = {p.sku: p for p in (await session.execute(select(Product))).unique().scalars()}
    for sku, name, category, price, minimum in PRODUCTS:
        if sku not in existing:
            product = Product(
                sku=sku, name=name, category=categories[category], unit_price=price, minimum_stock=minimum
            )
            session.add(product)
            existing[sku] = product
    await session.flush()
    return existing


async def _seed_locations(session: AsyncSession) -> Dict[str, WarehouseLocation]:
    existing = {loc.code: loc for loc in (await session.execute(select(WarehouseLocation))).scalars()}
    for zone, aisle, rack, bin_, capacity in LOCATIONS:
        code = f"{zone}-{aisle}-{rack}-{bin_}"
        if code not in existing:
            loc = WarehouseLocation(
                name=f"Zone {zone} bin {code}", zone=zone, aisle=aisle, rack=rack, bin=bin_, capacity=capacity
            )
            session.add(loc)
            existing[code] = loc
    await session.flush()
    return existing


async def _seed_stock(
    session: AsyncSession, products: Dict[str, Product], locations: Dict[str, WarehouseLocation]
) -> None:
    if not await _is_empty(session, InventoryRow):
        logger.info("Inventory already present; skipping opening stock")
        return
    now = utcnow()
    for sku, code, qty, lot, age_days in OPENING_STOCK:
        stamp = now - timedelta(days=age_days)
        session.add(
            InventoryRow(
                product_id=products[sku].id,
                location_id=locations[code].id,
                quantity=qty,
                lot_number=lot,
                created_at=stamp,
                updated_at=stamp,
            )
        )
    await session.flush()


async def _seed_partners(session: AsyncSession) -> None:
    if await _is_empty(session, Supplier):
        session.add(Supplier(name="Northwind Components", contact_name="Ana Ruiz", email="orders@northwind.example"))
    if await _is_empty(session, Customer):
        session.add(
            Customer(
                name="Contoso Retail",
                contact_name="Sam Lee",
                email="purchasing@contoso.example",
                credit_limit=5000,
                current_balance=0,
            )
        )
    await session.flush()


def main() -> None:
    asyncio.run(seed_all())


if __name__ == "__main__":
    main()
