from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from wms.core.constants import (
    RECEIVABLE_ORDER_STATUSES,
    OrderStatus,
    OrderType,
    ShippingStatus,
)
from wms.core.errors import (
    ConflictError,
    CreditLimitExceededError,
    NotFoundError,
    ValidationError,
)
from wms.core.settings import get_app_settings
from wms.db.base import as_utc, utcnow
from wms.db.models.inventory import InventoryRow, StockAllocation
from wms.db.models.orders import Order, OrderItem, ShipmentTracking
from wms.repositories.catalog import ProductRepository
from wms.repositories.inventory import AllocationRepository, InventoryRepository
from wms.repositories.orders import OrderRepository
from wms.repositories.partners import SupplierRepository
from wms.schemas.orders import AssignLocationsRequest, OrderCreate, ShippingStatusUpdate
from wms.services.base import BaseService
from wms.services.credit import CreditAssessment
from wms.services.numbering import generate_order_number
from wms.services.partners import CustomerService
from wms.services.pricing import PricingService, price_for
from wms.services.stock import CapacityChecker, StockAllocator, order_allocation_token
from wms.services.status_machine import ensure_order_transition, ensure_shipping_transition

logger = logging.getLogger(__name__)

TRACKING_TICK = timedelta(microseconds=1)


def matches_request(order: Order, payload: OrderCreate) -> bool:
    """True when a stored order was created from an equivalent payload."""
    if order.order_type != payload.order_type.value:
        return False
    inbound = payload.order_type == OrderType.INBOUND
    if order.supplier_id != (payload.supplier_id if inbound else None):
        return False
    if order.customer_id != (None if inbound else payload.customer_id):
        return False
    stored = [(i.product_id, i.quantity) for i in order.items]
    requested = [(i.product_id, i.quantity) for i in payload.items]
    if stored != requested:
        return False
    return all(
        req.unit_price is None or abs(float(req.unit_price) - float(item.unit_price)) < 0.005
        for req, item in zip(payload.items, order.items)
    )


class OrderService(BaseService):
    """
    Order creation, inbound put-away and status progression.

    Each public operation is a single transaction: an outbound order either
    exists with its items, stock deductions and balance change, or none of them do.
    """

    def __init__(
        self,
        session: AsyncSession,
        number_factory: Callable[[], str] = generate_order_number,
    ) -> None:
        super().__init__(session)
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.suppliers = SupplierRepository(session)
        self.inventory = InventoryRepository(session)
        self.allocations = AllocationRepository(session)
        self.customers = CustomerService(session)
        self.pricing = PricingService(session)
        self.allocator = StockAllocator(session)
        self.capacity = CapacityChecker(session)
        self.number_factory = number_factory
        self.settings = get_app_settings()

    async def get_order(self, order_id: UUID, *, for_update: bool = False) -> Order:
        order = await self.orders.get_order(order_id, for_update=for_update)
        if not order:
            raise NotFoundError("Order not found", details={"order_id": str(order_id)})
        return order

    async def list_orders(self, **filters) -> List[Order]:
        return await self.orders.list_orders(**filters)

    async def list_allocations(self, order_id: UUID) -> List[StockAllocation]:
        """FIFO allocations made for an outbound order, oldest first."""
        await self.get_order(order_id)
        return await self.allocations.list_for_order(order_id)

    async def _next_order_number(self) -> str:
        attempts = self.settings.ORDER_NUMBER_MAX_ATTEMPTS
        for _ in range(attempts):
            candidate = self.number_factory()
            if not await self.orders.order_number_exists(candidate):
                return candidate
            logger.debug("Order number %s already taken; regenerating", candidate)
        raise ConflictError(
            "Could not generate a unique order number", details={"attempts": attempts}
        )

    # PUBLIC_INTERFACE
    async def create_order(self, payload: OrderCreate) -> Tuple[Order, Optional[CreditAssessment]]:
        """
        Create an order with its items.

        Outbound orders are credit-checked, stock is FIFO-allocated for every item
        and the customer's balance grows by the order total. Items without an
        explicit unit price use the customer's pricing rule in force today, if any,
        otherwise the product's list price. A repeated request
        token returns the order created by the first request; reusing it with a
        different customer, supplier or item list is a conflict.

        Returns:
            (order, credit assessment or None for inbound orders)
        """
        async with self.unit_of_work():
            if payload.request_token:
                existing = await self.orders.get_by_request_token(payload.request_token)
                if existing is not None:
                    if not matches_request(existing, payload):
                        raise ConflictError(
                            "Request token was already used for a different order",
                            details={"request_token": payload.request_token, "order_id": str(existing.id)},
                        )
                    logger.info("Order %s replayed for token %s", existing.order_number, payload.request_token)
                    return existing, None

            customer = None
            if payload.order_type == OrderType.INBOUND:
                if payload.supplier_id is None:
                    raise ValidationError("Inbound orders require a supplier")
                if not await self.suppliers.get_supplier(payload.supplier_id):
                    raise NotFoundError("Supplier not found", details={"supplier_id": str(payload.supplier_id)})
            else:
                if payload.customer_id is None:
                    raise ValidationError("Outbound orders require a customer")
                customer = await self.customers.get_customer(payload.customer_id, for_update=True)

            product_ids = [item.product_id for item in payload.items]
            if len(set(product_ids)) != len(product_ids):
                raise ValidationError("Each product may appear only once per order")
            products = await self.products.get_many(product_ids)
            missing = [str(pid) for pid in product_ids if pid not in products]
            if missing:
                raise NotFoundError("Product not found", details={"product_ids": missing})

            rules = await self.pricing.active_rules(customer.id, product_ids) if customer is not None else {}

            items: List[OrderItem] = []
            for line_no, item in enumerate(payload.items, start=1):
                product = products[item.product_id]
                if product.archived:
                    raise ValidationError(f"Product {product.sku} is archived", details={"product_id": str(product.id)})
                if item.unit_price is None:
                    unit_price = price_for(product, rules.get(product.id))
                else:
                    unit_price = item.unit_price
                items.append(
                    OrderItem(
                        line_no=line_no,
                        product_id=product.id,
                        quantity=item.quantity,
                        unit_price=unit_price,
                        subtotal=round(item.quantity * float(unit_price), 2),
                    )
                )
            total = round(sum(i.subtotal for i in items), 2)

            credit: Optional[CreditAssessment] = None
            if customer is not None:
                credit = self.customers.classify(customer, total)
                if credit.exceeds_limit:
                    if not payload.auto_raise_credit_limit:
                        raise CreditLimitExceededError(
                            credit.message,
                            details={
                                "credit_limit": credit.credit_limit,
                                "current_balance": credit.current_balance,
                                "new_balance": credit.new_balance,
                            },
                        )
                    await self.customers.raise_credit_limit(customer, total)

            order = Order(
                order_number=await self._next_order_number(),
                order_type=payload.order_type.value,
                status=OrderStatus.PENDING.value,
                request_token=payload.request_token,
                supplier_id=payload.supplier_id if payload.order_type == OrderType.INBOUND else None,
                customer_id=payload.customer_id if payload.order_type == OrderType.OUTBOUND else None,
                expected_arrival=payload.expected_arrival,
                notes=payload.notes,
                total_amount=total,
                shipping_method=payload.shipping_method,
                carrier=payload.carrier,
                tracking_number=payload.tracking_number,
                estimated_delivery=payload.estimated_delivery,
                shipping_address=payload.shipping_address.model_dump() if payload.shipping_address else None,
                shipping_cost=payload.shipping_cost,
                shipping_status=ShippingStatus.PENDING.value,
            )
            order.items = items
            order.tracking_history = []
            await self.orders.add(order)
            await self.orders.flush()

            if customer is not None:
                for item in items:
                    await self.allocator.allocate_in_transaction(
                        item.product_id,
                        item.quantity,
                        request_token=order_allocation_token(order.id, item.product_id),
                        order_id=order.id,
                    )
                customer.current_balance = round(float(customer.current_balance or 0) + total, 2)
                await self.orders.flush()

        logger.info(
            "Created %s order %s with %d item(s), total %.2f",
            order.order_type,
            order.order_number,
            len(items),
            total,
        )
        return order, credit

    # PUBLIC_INTERFACE
    async def assign_locations(self, order_id: UUID, payload: AssignLocationsRequest) -> Order:
        """
        Put away every item of an inbound order and complete it.

        All items must be assigned in one batch; the batch is capacity-checked as
        a whole. Stock lands on an existing row with the same product, location
        and lot when there is one, otherwise on a new row.
        """
        async with self.unit_of_work():
            order = await self.get_order(order_id, for_update=True)
            if order.order_type != OrderType.INBOUND.value:
                raise ValidationError("Locations can only be assigned to inbound orders")
            if OrderStatus(order.status) not in RECEIVABLE_ORDER_STATUSES:
                raise ValidationError(
                    f"Order is {order.status}; locations can only be assigned to pending or processing orders"
                )

            items = {item.id: item for item in order.items}
            seen = set()
            for a in payload.assignments:
                if a.order_item_id not in items:
                    raise ValidationError(
                        "Assignment references an item that is not on this order",
                        details={"order_item_id": str(a.order_item_id)},
                    )
                if a.order_item_id in seen:
                    raise ValidationError(
                        "Each order item may be assigned only once",
                        details={"order_item_id": str(a.order_item_id)},
                    )
                seen.add(a.order_item_id)
            unassigned = [str(item_id) for item_id in items if item_id not in seen]
            if unassigned:
                raise ValidationError("Every item must be assigned a location", details={"order_item_ids": unassigned})

            await self.capacity.check([(a.location_id, items[a.order_item_id].quantity) for a in payload.assignments])

            for a in payload.assignments:
                item = items[a.order_item_id]
                row = await self.inventory.find_by_key(item.product_id, a.location_id, a.lot_number)
                if row is not None:
                    new_qty = await self.inventory.increment(row.id, item.quantity)
                    set_committed_value(row, "quantity", new_qty)
                else:
                    await self.inventory.add(
                        InventoryRow(
                            product_id=item.product_id,
                            location_id=a.location_id,
                            quantity=item.quantity,
                            lot_number=a.lot_number,
                            expiry_date=a.expiry_date,
                        )
                    )
                    await self.inventory.flush()

            if order.status == OrderStatus.PENDING.value:
                order.status = ensure_order_transition(order.status, OrderStatus.PROCESSING.value).value
            order.status = ensure_order_transition(order.status, OrderStatus.COMPLETED.value).value
            await self.orders.flush()
        logger.info("Put away %d item(s) for order %s", len(payload.assignments), order.order_number)
        return order

    # PUBLIC_INTERFACE
    async def update_status(self, order_id: UUID, status: OrderStatus) -> Order:
        """Move an order along pending -> processing -> completed, or cancel it."""
        async with self.unit_of_work():
            order = await self.get_order(order_id, for_update=True)
            previous = order.status
            order.status = ensure_order_transition(previous, status.value).value
            await self.orders.flush()
        logger.info("Order %s status %s -> %s", order.order_number, previous, order.status)
        return order

    # PUBLIC_INTERFACE
    async def update_shipping_status(self, order_id: UUID, payload: ShippingStatusUpdate) -> Order:
        """
        Change the shipping status and append one tracking entry in the same transaction.

        Tracking timestamps are strictly increasing per order.
        """
        async with self.unit_of_work():
            order = await self.get_order(order_id, for_update=True)
            previous = order.shipping_status
            target = ensure_shipping_transition(previous, payload.status.value)

            stamp = utcnow()
            last = await self.orders.last_tracking_time(order.id)
            if last is not None and stamp <= as_utc(last):
                stamp = as_utc(last) + TRACKING_TICK

            entry = ShipmentTracking(
                status=target.value,
                location=payload.location,
                notes=payload.notes,
                created_at=stamp,
                updated_at=stamp,
            )
            order.shipping_status = target.value
            order.tracking_history.append(entry)
            await self.orders.flush()
        logger.info("Order %s shipping status %s -> %s", order.order_number, previous, target.value)
        return order
