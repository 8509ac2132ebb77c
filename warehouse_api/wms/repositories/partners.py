from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import desc, or_, select

from wms.db.models.partners import CommunicationLog, Customer, CustomerPrice, Supplier
from .base import BaseRepository


class SupplierRepository(BaseRepository):
    """Repository for suppliers."""

    async def list_suppliers(
        self, *, search: Optional[str], limit: int, offset: int
    ) -> List[Supplier]:
        stmt = select(Supplier)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(Supplier.name.ilike(like), Supplier.email.ilike(like)))
        stmt = stmt.order_by(Supplier.name).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_supplier(self, supplier_id: UUID) -> Optional[Supplier]:
        return await self.scalar_one_or_none(select(Supplier).where(Supplier.id == supplier_id))


class CustomerRepository(BaseRepository):
    """Repository for customers."""

    async def list_customers(
        self, *, search: Optional[str], limit: int, offset: int
    ) -> List[Customer]:
        stmt = select(Customer)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(Customer.name.ilike(like), Customer.email.ilike(like)))
        stmt = stmt.order_by(Customer.name).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_customer(self, customer_id: UUID, *, for_update: bool = False) -> Optional[Customer]:
        stmt = select(Customer).where(Customer.id == customer_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self.scalar_one_or_none(stmt)


class CustomerPriceRepository(BaseRepository):
    """Repository for customer pricing rules."""

    async def list_for_customer(self, customer_id: UUID) -> List[CustomerPrice]:
        stmt = (
            select(CustomerPrice)
            .where(CustomerPrice.customer_id == customer_id)
            .order_by(desc(CustomerPrice.valid_from), desc(CustomerPrice.created_at))
        )
        res = await self.scalars(stmt)
        return list(res)

    async def get_rule(self, rule_id: UUID) -> Optional[CustomerPrice]:
        return await self.scalar_one_or_none(select(CustomerPrice).where(CustomerPrice.id == rule_id))

    async def active_rules(
        self, customer_id: UUID, product_ids: Iterable[UUID], on: date
    ) -> dict[UUID, CustomerPrice]:
        """Rule in force on `on` per product; the latest valid_from wins on overlap."""
        ids = list(set(product_ids))
        if not ids:
            return {}
        stmt = (
            select(CustomerPrice)
            .where(
                CustomerPrice.customer_id == customer_id,
                CustomerPrice.product_id.in_(ids),
                CustomerPrice.valid_from <= on,
                or_(CustomerPrice.valid_to.is_(None), CustomerPrice.valid_to >= on),
            )
            .order_by(desc(CustomerPrice.valid_from), desc(CustomerPrice.created_at))
        )
        rules: dict[UUID, CustomerPrice] = {}
        for rule in await self.scalars(stmt):
            rules.setdefault(rule.product_id, rule)
        return rules


class CommunicationLogRepository(BaseRepository):
    """Repository for customer communication logs."""

    async def list_for_customer(self, customer_id: UUID, *, status: Optional[str] = None) -> List[CommunicationLog]:
        stmt = select(CommunicationLog).where(CommunicationLog.customer_id == customer_id)
        if status:
            stmt = stmt.where(CommunicationLog.status == status)
        stmt = stmt.order_by(desc(CommunicationLog.contact_date), desc(CommunicationLog.created_at))
        res = await self.scalars(stmt)
        return list(res)

    async def get_log(self, log_id: UUID) -> Optional[CommunicationLog]:
        return await self.scalar_one_or_none(select(CommunicationLog).where(CommunicationLog.id == log_id))
