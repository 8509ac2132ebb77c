from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.errors import ConflictError, NotFoundError
from wms.db.models.catalog import Category, Product
from wms.repositories.catalog import CategoryRepository, ProductRepository
from wms.schemas.catalog import CategoryCreate, ProductCreate, ProductDetail, ProductRead, ProductUpdate
from wms.services.base import BaseService
from wms.services.stock import StockLedger

logger = logging.getLogger(__name__)


class CatalogService(BaseService):
    """Products and categories."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.products = ProductRepository(session)
        self.categories = CategoryRepository(session)
        self.ledger = StockLedger(session)

    async def get_product(self, product_id: UUID) -> Product:
        product = await self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found", details={"product_id": str(product_id)})
        return product

    # PUBLIC_INTERFACE
    async def product_detail(self, product_id: UUID) -> ProductDetail:
        """Product with its stock ledger summary."""
        product = await self.get_product(product_id)
        stock = await self.ledger.summary(product)
        return ProductDetail(**ProductRead.model_validate(product).model_dump(), stock=stock)

    async def _ensure_category(self, category_id: UUID | None) -> Category | None:
        if category_id is None:
            return None
        category = await self.categories.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found", details={"category_id": str(category_id)})
        return category

    # PUBLIC_INTERFACE
    async def create_product(self, payload: ProductCreate) -> Product:
        """Create a product; SKU must be unique."""
        async with self.unit_of_work():
            if await self.products.get_by_sku(payload.sku):
                raise ConflictError("A product with this SKU already exists", details={"sku": payload.sku})
            category = await self._ensure_category(payload.category_id)
            product = Product(**payload.model_dump(exclude={"category_id"}), category=category)
            await self.products.add(product)
            await self.products.flush()
        logger.info("Created product %s (%s)", product.sku, product.id)
        return product

    # PUBLIC_INTERFACE
    async def update_product(self, product_id: UUID, payload: ProductUpdate) -> Product:
        """Apply a partial update to a product."""
        async with self.unit_of_work():
            product = await self.get_product(product_id)
            changes = payload.model_dump(exclude_unset=True)
            new_sku = changes.get("sku")
            if new_sku and new_sku != product.sku and await self.products.get_by_sku(new_sku):
                raise ConflictError("A product with this SKU already exists", details={"sku": new_sku})
            if "category_id" in changes:
                product.category = await self._ensure_category(changes.pop("category_id"))
            for field, value in changes.items():
                if value is None and field in ("sku", "name", "unit_price", "minimum_stock", "archived"):
                    continue
                setattr(product, field, value)
            await self.products.flush()
        return product

    # PUBLIC_INTERFACE
    async def archive_product(self, product_id: UUID) -> Product:
        """Hide a product from default listings; history keeps referencing it."""
        async with self.unit_of_work():
            product = await self.get_product(product_id)
            product.archived = True
            await self.products.flush()
        return product

    # PUBLIC_INTERFACE
    async def create_category(self, payload: CategoryCreate) -> Category:
        async with self.unit_of_work():
            if await self.categories.get_by_name(payload.name):
                raise ConflictError("Category already exists", details={"name": payload.name})
            category = Category(**payload.model_dump())
            await self.categories.add(category)
            await self.categories.flush()
        return category
