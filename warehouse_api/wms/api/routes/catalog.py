from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.deps import get_session
from wms.repositories.catalog import CategoryRepository, ProductRepository
from wms.schemas.catalog import (
    CategoryCreate,
    CategoryRead,
    ProductCreate,
    ProductDetail,
    ProductRead,
    ProductUpdate,
    StockSummary,
)
from wms.services.catalog import CatalogService

router = APIRouter(tags=["Catalog"])


# PUBLIC_INTERFACE
@router.get(
    "/products",
    response_model=List[ProductRead],
    summary="List products",
    description="List products with optional search across SKU and name. Archived products are hidden by default.",
)
async def list_products(
    session: AsyncSession = Depends(get_session),
    search: Optional[str] = Query(None, description="Search in SKU or name"),
    category_id: Optional[UUID] = Query(None, description="Filter by category"),
    include_archived: bool = Query(False, description="Include archived products"),
    limit: int = Query(100, ge=1, le=1000, description="Max records"),
    offset: int = Query(0, ge=0, description="Records to skip"),
) -> List[ProductRead]:
    repo = ProductRepository(session)
    items = await repo.list_products(
        search=search, category_id=category_id, include_archived=include_archived, limit=limit, offset=offset
    )
    return [ProductRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post(
    "/products",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="Create a product. The SKU must be unique.",
)
async def create_product(payload: ProductCreate, session: AsyncSession = Depends(get_session)) -> ProductRead:
    product = await CatalogService(session).create_product(payload)
    return ProductRead.model_validate(product)


# PUBLIC_INTERFACE
@router.get(
    "/products/{product_id}",
    response_model=ProductDetail,
    summary="Get product",
    description="Product details including available stock and the low-stock flag.",
)
async def get_product(product_id: UUID, session: AsyncSession = Depends(get_session)) -> ProductDetail:
    return await CatalogService(session).product_detail(product_id)


# PUBLIC_INTERFACE
@router.patch(
    "/products/{product_id}",
    response_model=ProductRead,
    summary="Update product",
)
async def update_product(
    product_id: UUID, payload: ProductUpdate, session: AsyncSession = Depends(get_session)
) -> ProductRead:
    product = await CatalogService(session).update_product(product_id, payload)
    return ProductRead.model_validate(product)


# PUBLIC_INTERFACE
@router.delete(
    "/products/{product_id}",
    response_model=ProductRead,
    summary="Archive product",
    description="Products are archived rather than deleted so orders and inventory keep their references.",
)
async def archive_product(product_id: UUID, session: AsyncSession = Depends(get_session)) -> ProductRead:
    product = await CatalogService(session).archive_product(product_id)
    return ProductRead.model_validate(product)


# PUBLIC_INTERFACE
@router.get(
    "/products/{product_id}/stock",
    response_model=StockSummary,
    summary="Product stock summary",
    description="Sum of quantity across all inventory rows of the product.",
)
async def product_stock(product_id: UUID, session: AsyncSession = Depends(get_session)) -> StockSummary:
    svc = CatalogService(session)
    product = await svc.get_product(product_id)
    return await svc.ledger.summary(product)


# PUBLIC_INTERFACE
@router.get("/categories", response_model=List[CategoryRead], summary="List categories")
async def list_categories(session: AsyncSession = Depends(get_session)) -> List[CategoryRead]:
    items = await CategoryRepository(session).list_categories()
    return [CategoryRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post(
    "/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
async def create_category(payload: CategoryCreate, session: AsyncSession = Depends(get_session)) -> CategoryRead:
    category = await CatalogService(session).create_category(payload)
    return CategoryRead.model_validate(category)
