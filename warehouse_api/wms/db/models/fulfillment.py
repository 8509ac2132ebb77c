from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.core.constants import PickItemStatus, PickListStatus
from wms.db.base import Base, UUIDPkMixin, TimestampMixin
from wms.db.models.catalog import Product
from wms.db.models.inventory import WarehouseLocation
from wms.db.models.orders import Order


class PickList(UUIDPkMixin, TimestampMixin, Base):
    """Picking work for one outbound order."""
    __tablename__ = "pick_lists"

    pick_list_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default=PickListStatus.PENDING.value, index=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    order: Mapped[Order] = relationship(Order, lazy="joined", innerjoin=True)
    items: Mapped[List["PickListItem"]] = relationship(
        "PickListItem",
        back_populates="pick_list",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PickListItem.line_no",
    )


class PickListItem(UUIDPkMixin, TimestampMixin, Base):
    """Quantity of a product to pick, usually from the location its stock was allocated from."""
    __tablename__ = "pick_list_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint("quantity_picked >= 0 AND quantity_picked <= quantity", name="quantity_picked_range"),
    )

    pick_list_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pick_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("warehouse_locations.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_picked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=PickItemStatus.PENDING.value)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    pick_list: Mapped[PickList] = relationship(PickList, back_populates="items")
    product: Mapped[Product] = relationship(Product, lazy="joined")
    location: Mapped[Optional[WarehouseLocation]] = relationship(WarehouseLocation, lazy="joined")
