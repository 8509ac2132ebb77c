"""
Tabular report builders.

Each builder returns a pandas DataFrame; the reports router renders it as CSV,
XLSX or PDF.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wms.db.models.catalog import Category, Product
from wms.db.models.inventory import InventoryRow, WarehouseLocation
from wms.db.models.orders import Order
from wms.db.models.partners import Customer, Supplier
from wms.services.stock import StockLedger

INVENTORY_VALUATION_COLUMNS = [
    "sku",
    "product",
    "category",
    "location",
    "lot_number",
    "expiry_date",
    "quantity",
    "unit_price",
    "value",
]
LOW_STOCK_COLUMNS = ["sku", "product", "minimum_stock", "current_stock", "shortfall"]
ORDER_COLUMNS = [
    "order_number",
    "order_type",
    "status",
    "shipping_status",
    "partner",
    "total_amount",
    "created_at",
]


# PUBLIC_INTERFACE
async def inventory_valuation_frame(session: AsyncSession) -> pd.DataFrame:
    """One row per inventory record with its value (quantity x unit price)."""
    location_code = (
        WarehouseLocation.zone + "-" + WarehouseLocation.aisle + "-" + WarehouseLocation.rack + "-" + WarehouseLocation.bin
    )
    stmt = (
        select(
            Product.sku,
            Product.name,
            Category.name,
            location_code,
            InventoryRow.lot_number,
            InventoryRow.expiry_date,
            InventoryRow.quantity,
            Product.unit_price,
        )
        .select_from(InventoryRow)
        .join(Product, Product.id == InventoryRow.product_id)
        .join(WarehouseLocation, WarehouseLocation.id == InventoryRow.location_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .order_by(Product.sku, InventoryRow.created_at)
    )
    rows = (await session.execute(stmt)).all()
    df = pd.DataFrame(
        [tuple(r) for r in rows],
        columns=[c for c in INVENTORY_VALUATION_COLUMNS if c != "value"],
    )
    df["value"] = (df["quantity"].astype(float) * df["unit_price"].astype(float)).round(2)
    return df


# PUBLIC_INTERFACE
async def low_stock_frame(session: AsyncSession) -> pd.DataFrame:
    """Products at or below their minimum stock."""
    low = await StockLedger(session).low_stock_products()
    records = [
        (p.sku, p.name, p.minimum_stock, qty, max(p.minimum_stock - qty, 0)) for p, qty in low
    ]
    return pd.DataFrame(records, columns=LOW_STOCK_COLUMNS)


# PUBLIC_INTERFACE
async def orders_frame(
    session: AsyncSession,
    *,
    order_type: Optional[str] = None,
    status: Optional[str] = None,
) -> pd.DataFrame:
    """Order headers with the supplier or customer name."""
    stmt = (
        select(
            Order.order_number,
            Order.order_type,
            Order.status,
            Order.shipping_status,
            func.coalesce(Customer.name, Supplier.name),
            Order.total_amount,
            Order.created_at,
        )
        .select_from(Order)
        .outerjoin(Customer, Customer.id == Order.customer_id)
        .outerjoin(Supplier, Supplier.id == Order.supplier_id)
        .order_by(Order.created_at.desc())
    )
    if order_type:
        stmt = stmt.where(Order.order_type == order_type)
    if status:
        stmt = stmt.where(Order.status == status)
    rows = (await session.execute(stmt)).all()
    return pd.DataFrame([tuple(r) for r in rows], columns=ORDER_COLUMNS)
