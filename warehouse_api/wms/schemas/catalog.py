from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryRead(BaseModel):
    """Category read model."""
    id: UUID = Field(..., description="Category ID")
    name: str = Field(..., description="Category name")
    description: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created at")

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    """Create category payload."""
    name: str = Field(..., min_length=1, description="Unique category name")
    description: Optional[str] = Field(None)


class ProductRead(BaseModel):
    """Product read model."""
    id: UUID = Field(..., description="Product ID")
    sku: str = Field(..., description="Stock keeping unit (unique)")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None)
    category_id: Optional[UUID] = Field(None)
    category: Optional[CategoryRead] = Field(None)
    unit_price: float = Field(..., description="Unit price")
    minimum_stock: int = Field(..., description="Low-stock threshold")
    archived: bool = Field(False)
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    """Create product payload."""
    sku: str = Field(..., min_length=1, description="Unique SKU")
    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(None)
    category_id: Optional[UUID] = Field(None)
    unit_price: float = Field(0, ge=0)
    minimum_stock: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Partial product update; omitted fields are left unchanged."""
    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None)
    category_id: Optional[UUID] = Field(None)
    unit_price: Optional[float] = Field(None, ge=0)
    minimum_stock: Optional[int] = Field(None, ge=0)
    archived: Optional[bool] = Field(None)


class StockSummary(BaseModel):
    """Ledger view of a product's stock across all locations."""
    product_id: UUID = Field(..., description="Product ID")
    available: int = Field(..., description="Sum of quantity across inventory rows")
    minimum_stock: int = Field(..., description="Low-stock threshold")
    low_stock: bool = Field(..., description="True when available <= minimum_stock")


class ProductDetail(ProductRead):
    """Product with its stock summary."""
    stock: StockSummary
