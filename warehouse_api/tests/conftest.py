from __future__ import annotations

import itertools
import os
from datetime import timedelta
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")

import wms.db.models  # noqa: E402,F401  register mappers
from wms.db.base import Base, utcnow  # noqa: E402
from wms.db.models import (  # noqa: E402
    Category,
    Customer,
    InventoryRow,
    Product,
    Supplier,
    WarehouseLocation,
)
from wms.db.session import get_async_session  # noqa: E402


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


class Factory:
    """Creates committed rows for tests."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._seq = itertools.count(1)

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def category(self, name: Optional[str] = None) -> Category:
        return await self._save(Category(name=name or f"Category {next(self._seq)}"))

    async def product(
        self,
        name: Optional[str] = None,
        *,
        sku: Optional[str] = None,
        unit_price: float = 10.0,
        minimum_stock: int = 0,
        category: Optional[Category] = None,
    ) -> Product:
        n = next(self._seq)
        return await self._save(
            Product(
                sku=sku or f"SKU-{n:04d}",
                name=name or f"Product {n}",
                unit_price=unit_price,
                minimum_stock=minimum_stock,
                category=category,
                archived=False,
            )
        )

    async def location(self, capacity: int = 1000, *, zone: str = "A", bin_: Optional[str] = None) -> WarehouseLocation:
        return await self._save(
            WarehouseLocation(
                zone=zone,
                aisle="01",
                rack="01",
                bin=bin_ or f"{next(self._seq):02d}",
                capacity=capacity,
                reserved=False,
                rotation_method="FIFO",
            )
        )

    async def stock(
        self,
        product: Product,
        location: WarehouseLocation,
        quantity: int,
        *,
        age_days: int = 0,
        lot_number: Optional[str] = None,
    ) -> InventoryRow:
        stamp = utcnow() - timedelta(days=age_days)
        return await self._save(
            InventoryRow(
                product_id=product.id,
                location_id=location.id,
                quantity=quantity,
                lot_number=lot_number,
                created_at=stamp,
                updated_at=stamp,
            )
        )

    async def supplier(self, name: str = "Acme Supply") -> Supplier:
        return await self._save(Supplier(name=name))

    async def customer(self, credit_limit: float = 1000, current_balance: float = 0) -> Customer:
        return await self._save(
            Customer(name=f"Customer {next(self._seq)}", credit_limit=credit_limit, current_balance=current_balance)
        )


@pytest.fixture
def factory(session) -> Factory:
    return Factory(session)


@pytest.fixture
async def client(session_maker):
    from wms.api.main import app

    async def _session_override():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = _session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
