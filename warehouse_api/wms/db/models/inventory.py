from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.core.constants import RotationMethod
from wms.db.base import Base, UUIDPkMixin, TimestampMixin
from wms.db.models.catalog import Product


class WarehouseLocation(UUIDPkMixin, TimestampMixin, Base):
    """Storage slot addressed by zone/aisle/rack/bin with a declared capacity."""
    __tablename__ = "warehouse_locations"
    __table_args__ = (
        UniqueConstraint("zone", "aisle", "rack", "bin", name="uq_warehouse_locations_code"),
        CheckConstraint("capacity >= 0", name="capacity_non_negative"),
    )

    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    zone: Mapped[str] = mapped_column(Text, nullable=False)
    aisle: Mapped[str] = mapped_column(Text, nullable=False)
    rack: Mapped[str] = mapped_column(Text, nullable=False)
    bin: Mapped[str] = mapped_column(Text, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reserved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    location_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Declared only; allocation always drains oldest rows first.
    rotation_method: Mapped[str] = mapped_column(Text, nullable=False, default=RotationMethod.FIFO.value)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def code(self) -> str:
        return f"{self.zone}-{self.aisle}-{self.rack}-{self.bin}"


class InventoryRow(UUIDPkMixin, TimestampMixin, Base):
    """Quantity of one product held at one location, optionally for a lot."""
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        Index("ix_inventory_product_created", "product_id", "created_at"),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("warehouse_locations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lot_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    product: Mapped[Product] = relationship(Product, lazy="joined", innerjoin=True)
    location: Mapped[WarehouseLocation] = relationship(WarehouseLocation, lazy="joined", innerjoin=True)


class StockAllocation(UUIDPkMixin, TimestampMixin, Base):
    """One FIFO deduction request, keyed by a caller-supplied token for idempotent retries."""
    __tablename__ = "stock_allocations"

    request_token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=True, index=True
    )

    lines: Mapped[List["StockAllocationLine"]] = relationship(
        "StockAllocationLine",
        back_populates="allocation",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="StockAllocationLine.seq_no",
    )


class StockAllocationLine(UUIDPkMixin, TimestampMixin, Base):
    """Quantity taken from a single inventory row by an allocation."""
    __tablename__ = "stock_allocation_lines"

    allocation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("stock_allocations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("inventory.id", ondelete="SET NULL"), nullable=True
    )
    seq_no: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    allocation: Mapped[StockAllocation] = relationship(StockAllocation, back_populates="lines")
