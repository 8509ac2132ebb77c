from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.errors import NotFoundError, ValidationError
from wms.core.settings import get_app_settings
from wms.db.models.partners import CommunicationLog, Customer, Supplier
from wms.repositories.partners import CommunicationLogRepository, CustomerRepository, SupplierRepository
from wms.schemas.partners import (
    CommunicationLogCreate,
    CommunicationLogUpdate,
    CustomerCreate,
    SupplierCreate,
)
from wms.services.base import BaseService
from wms.services.credit import CreditAssessment, classify_credit, raised_limit_for

logger = logging.getLogger(__name__)


class SupplierService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.suppliers = SupplierRepository(session)

    # PUBLIC_INTERFACE
    async def create_supplier(self, payload: SupplierCreate) -> Supplier:
        """Create a supplier."""
        async with self.unit_of_work():
            supplier = Supplier(**payload.model_dump())
            await self.suppliers.add(supplier)
            await self.suppliers.flush()
        return supplier

    async def get_supplier(self, supplier_id: UUID) -> Supplier:
        supplier = await self.suppliers.get_supplier(supplier_id)
        if not supplier:
            raise NotFoundError("Supplier not found", details={"supplier_id": str(supplier_id)})
        return supplier


class CustomerService(BaseService):
    """
    Customer records and their credit position.

    Credit limits only change through `update_credit_limit` (manual edit) or
    `raise_credit_limit` (auto-raise when an over-limit order is accepted).
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.customers = CustomerRepository(session)
        self.settings = get_app_settings()

    # PUBLIC_INTERFACE
    async def create_customer(self, payload: CustomerCreate) -> Customer:
        """Create a customer with a zero balance."""
        async with self.unit_of_work():
            customer = Customer(**payload.model_dump(), current_balance=0)
            await self.customers.add(customer)
            await self.customers.flush()
        return customer

    async def get_customer(self, customer_id: UUID, *, for_update: bool = False) -> Customer:
        customer = await self.customers.get_customer(customer_id, for_update=for_update)
        if not customer:
            raise NotFoundError("Customer not found", details={"customer_id": str(customer_id)})
        return customer

    # PUBLIC_INTERFACE
    async def assess_credit(self, customer_id: UUID, total: float) -> CreditAssessment:
        """Classify a candidate order total for a customer without changing anything."""
        customer = await self.get_customer(customer_id)
        return self.classify(customer, total)

    def classify(self, customer: Customer, total: float) -> CreditAssessment:
        return classify_credit(
            customer.credit_limit,
            customer.current_balance,
            total,
            near_limit_ratio=self.settings.CREDIT_NEAR_LIMIT_RATIO,
        )

    # PUBLIC_INTERFACE
    async def update_credit_limit(self, customer_id: UUID, credit_limit: float) -> Customer:
        """
        Manually set a customer's credit limit.

        Raises:
            ValidationError: when the new limit is below the current balance.
        """
        async with self.unit_of_work():
            customer = await self.get_customer(customer_id, for_update=True)
            if credit_limit < float(customer.current_balance or 0):
                raise ValidationError(
                    "Credit limit cannot be less than current balance",
                    details={"credit_limit": credit_limit, "current_balance": customer.current_balance},
                )
            customer.credit_limit = credit_limit
            await self.customers.flush()
        logger.info("Credit limit for customer %s set to %.2f", customer.id, credit_limit)
        return customer

    async def raise_credit_limit(self, customer: Customer, total: float) -> float:
        """
        Apply the auto-raise rule to a locked customer inside the caller's transaction.

        The limit becomes factor x total, and never less than the balance after the
        order, so an accepted order does not leave the customer over limit.
        """
        new_balance = float(customer.current_balance or 0) + float(total)
        new_limit = max(raised_limit_for(total, self.settings.CREDIT_AUTO_RAISE_FACTOR), round(new_balance, 2))
        old_limit = customer.credit_limit
        if new_limit > float(old_limit or 0):
            customer.credit_limit = new_limit
        logger.info(
            "Auto-raised credit limit for customer %s from %.2f to %.2f",
            customer.id,
            float(old_limit or 0),
            float(customer.credit_limit),
        )
        return float(customer.credit_limit)


class CommunicationService(BaseService):
    """Contact history kept per customer."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.logs = CommunicationLogRepository(session)
        self.customers = CustomerRepository(session)

    async def _require_customer(self, customer_id: UUID) -> None:
        if not await self.customers.get_customer(customer_id):
            raise NotFoundError("Customer not found", details={"customer_id": str(customer_id)})

    async def _get_log(self, customer_id: UUID, log_id: UUID) -> CommunicationLog:
        log = await self.logs.get_log(log_id)
        if log is None or log.customer_id != customer_id:
            raise NotFoundError("Communication log not found", details={"log_id": str(log_id)})
        return log

    async def list_logs(self, customer_id: UUID, *, status: Optional[str] = None) -> List[CommunicationLog]:
        await self._require_customer(customer_id)
        return await self.logs.list_for_customer(customer_id, status=status)

    # PUBLIC_INTERFACE
    async def add_log(self, customer_id: UUID, payload: CommunicationLogCreate) -> CommunicationLog:
        """Record a contact with the customer."""
        if payload.follow_up_date is not None and payload.follow_up_date < payload.contact_date:
            raise ValidationError("Follow-up date cannot be before the contact date")
        async with self.unit_of_work():
            await self._require_customer(customer_id)
            data = payload.model_dump()
            log = CommunicationLog(
                customer_id=customer_id,
                **{**data, "channel": payload.channel.value, "status": payload.status.value},
            )
            await self.logs.add(log)
            await self.logs.flush()
        return log

    # PUBLIC_INTERFACE
    async def update_log(self, customer_id: UUID, log_id: UUID, payload: CommunicationLogUpdate) -> CommunicationLog:
        """Change status, follow-up date or content of a log entry."""
        async with self.unit_of_work():
            log = await self._get_log(customer_id, log_id)
            changes = payload.model_dump(exclude_unset=True)
            if changes.get("status") is None:
                changes.pop("status", None)
            else:
                changes["status"] = payload.status.value
            follow_up = changes.get("follow_up_date", log.follow_up_date)
            if follow_up is not None and follow_up < log.contact_date:
                raise ValidationError("Follow-up date cannot be before the contact date")
            for field, value in changes.items():
                setattr(log, field, value)
            await self.logs.flush()
        return log

    async def delete_log(self, customer_id: UUID, log_id: UUID) -> None:
        async with self.unit_of_work():
            log = await self._get_log(customer_id, log_id)
            await self.logs.delete(log)
