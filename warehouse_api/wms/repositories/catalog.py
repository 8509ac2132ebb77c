from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import or_, select

from wms.db.models.catalog import Category, Product
from .base import BaseRepository


class CategoryRepository(BaseRepository):
    """Repository for product categories."""

    async def list_categories(self) -> List[Category]:
        res = await self.scalars(select(Category).order_by(Category.name))
        return list(res)

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        return await self.scalar_one_or_none(select(Category).where(Category.id == category_id))

    async def get_by_name(self, name: str) -> Optional[Category]:
        return await self.scalar_one_or_none(select(Category).where(Category.name == name))


class ProductRepository(BaseRepository):
    """Repository for catalog products."""

    async def list_products(
        self,
        *,
        search: Optional[str] = None,
        category_id: Optional[UUID] = None,
        include_archived: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Product]:
        stmt = select(Product)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(Product.sku.ilike(like), Product.name.ilike(like)))
        if category_id:
            stmt = stmt.where(Product.category_id == category_id)
        if not include_archived:
            stmt = stmt.where(Product.archived.is_(False))
        stmt = stmt.order_by(Product.name).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_product(self, product_id: UUID) -> Optional[Product]:
        return await self.scalar_one_or_none(select(Product).where(Product.id == product_id))

    async def get_by_sku(self, sku: str) -> Optional[Product]:
        return await self.scalar_one_or_none(select(Product).where(Product.sku == sku))

    async def get_many(self, product_ids: Iterable[UUID]) -> dict[UUID, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        res = await self.scalars(select(Product).where(Product.id.in_(ids)))
        return {p.id: p for p in res}
