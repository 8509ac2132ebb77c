from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Integer, Numeric, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.core.constants import OrderStatus, ShippingStatus
from wms.db.base import Base, UUIDPkMixin, TimestampMixin
from wms.db.models.catalog import Product
from wms.db.models.partners import Customer, Supplier


class Order(UUIDPkMixin, TimestampMixin, Base):
    """Inbound (from supplier) or outbound (to customer) order header with shipping details."""
    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    order_type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=OrderStatus.PENDING.value, index=True)
    # Optional client token making order creation safe to retry.
    request_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True, unique=True)
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    expected_arrival: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)

    shipping_method: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    carrier: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tracking_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_delivery: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    shipping_address: Mapped[Optional[dict]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )
    shipping_cost: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    shipping_status: Mapped[str] = mapped_column(Text, nullable=False, default=ShippingStatus.PENDING.value)

    supplier: Mapped[Optional[Supplier]] = relationship(Supplier, lazy="joined")
    customer: Mapped[Optional[Customer]] = relationship(Customer, lazy="joined")
    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.line_no",
    )
    tracking_history: Mapped[List["ShipmentTracking"]] = relationship(
        "ShipmentTracking",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ShipmentTracking.created_at",
    )


class OrderItem(UUIDPkMixin, TimestampMixin, Base):
    """Order line; immutable once written."""
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    subtotal: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)

    order: Mapped[Order] = relationship(Order, back_populates="items")
    product: Mapped[Product] = relationship(Product, lazy="joined")


class ShipmentTracking(UUIDPkMixin, TimestampMixin, Base):
    """Append-only record of a shipping-status change."""
    __tablename__ = "shipment_tracking"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    order: Mapped[Order] = relationship(Order, back_populates="tracking_history")
