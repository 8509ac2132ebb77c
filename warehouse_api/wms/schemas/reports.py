from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from wms.schemas.orders import OrderRead


class CategoryCount(BaseModel):
    category: str
    count: int


class LowStockProduct(BaseModel):
    id: UUID
    sku: str
    name: str
    minimum_stock: int
    current_stock: int


class DashboardMetrics(BaseModel):
    """Headline numbers for the dashboard."""
    total_products: int = Field(..., description="Non-archived products")
    low_stock_items: int = Field(..., description="Products at or below minimum stock")
    pending_orders: int
    orders_by_status: Dict[str, int] = Field(default_factory=dict, description="Order count per status")
    completed_orders_today: int
    inventory_value: float = Field(..., description="Sum of quantity x unit price")
    inventory_by_category: List[CategoryCount] = Field(default_factory=list)
    low_stock_products: List[LowStockProduct] = Field(default_factory=list)
    recent_orders: List[OrderRead] = Field(default_factory=list)


class StatusBreakdown(BaseModel):
    completed: int = 0
    pending: int = 0
    cancelled: int = 0


class CustomerAnalytics(BaseModel):
    """Order history statistics for one customer."""
    customer_id: UUID
    total_orders: int
    total_spent: float
    average_order_value: float
    last_order_date: Optional[datetime] = None
    order_frequency: float = Field(..., description="Orders per month")
    status_breakdown: StatusBreakdown
