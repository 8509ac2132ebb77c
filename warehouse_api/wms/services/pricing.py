"""
Customer-specific pricing rules.

A rule gives a customer either a fixed unit price or a percentage off the
product's list price for a date range. When several rules for the same product
are in force on a day, the one with the latest `valid_from` applies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.errors import NotFoundError, ValidationError
from wms.db.base import utcnow
from wms.db.models.catalog import Product
from wms.db.models.partners import CustomerPrice
from wms.repositories.catalog import ProductRepository
from wms.repositories.partners import CustomerPriceRepository, CustomerRepository
from wms.schemas.partners import CustomerPriceCreate
from wms.services.base import BaseService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# PUBLIC_INTERFACE
def apply_pricing_rule(
    list_price: float,
    special_price: Optional[float] = None,
    discount_percentage: Optional[float] = None,
) -> float:
    """Unit price after a rule: special_price if set, else list price less the discount, rounded to cents."""
    if special_price is not None:
        price = Decimal(str(special_price))
    elif discount_percentage is not None:
        price = Decimal(str(list_price)) * (Decimal(100) - Decimal(str(discount_percentage))) / Decimal(100)
    else:
        price = Decimal(str(list_price))
    return float(price.quantize(CENT, rounding=ROUND_HALF_UP))


def price_for(product: Product, rule: Optional[CustomerPrice]) -> float:
    if rule is None:
        return float(product.unit_price)
    return apply_pricing_rule(product.unit_price, rule.special_price, rule.discount_percentage)


@dataclass(frozen=True)
class EffectivePrice:
    customer_id: UUID
    product_id: UUID
    on: date
    list_price: float
    unit_price: float
    rule_id: Optional[UUID]


class PricingService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.rules = CustomerPriceRepository(session)
        self.customers = CustomerRepository(session)
        self.products = ProductRepository(session)

    async def _require_customer(self, customer_id: UUID) -> None:
        if not await self.customers.get_customer(customer_id):
            raise NotFoundError("Customer not found", details={"customer_id": str(customer_id)})

    async def _require_product(self, product_id: UUID) -> Product:
        product = await self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found", details={"product_id": str(product_id)})
        return product

    # PUBLIC_INTERFACE
    async def add_rule(self, customer_id: UUID, payload: CustomerPriceCreate) -> CustomerPrice:
        """
        Add a pricing rule for a customer and product.

        Raises:
            ValidationError: when neither a special price nor a discount is given,
                or when valid_to is before valid_from.
            NotFoundError: for an unknown customer or product.
        """
        if payload.special_price is None and payload.discount_percentage is None:
            raise ValidationError("A pricing rule needs a special price or a discount percentage")
        if payload.valid_to is not None and payload.valid_to < payload.valid_from:
            raise ValidationError(
                "valid_to cannot be before valid_from",
                details={"valid_from": payload.valid_from.isoformat(), "valid_to": payload.valid_to.isoformat()},
            )
        async with self.unit_of_work():
            await self._require_customer(customer_id)
            await self._require_product(payload.product_id)
            rule = CustomerPrice(customer_id=customer_id, **payload.model_dump())
            await self.rules.add(rule)
            await self.rules.flush()
        logger.info("Added pricing rule %s for customer %s, product %s", rule.id, customer_id, payload.product_id)
        return rule

    async def list_rules(self, customer_id: UUID) -> List[CustomerPrice]:
        await self._require_customer(customer_id)
        return await self.rules.list_for_customer(customer_id)

    # PUBLIC_INTERFACE
    async def delete_rule(self, customer_id: UUID, rule_id: UUID) -> None:
        """Delete one of the customer's pricing rules."""
        async with self.unit_of_work():
            rule = await self.rules.get_rule(rule_id)
            if rule is None or rule.customer_id != customer_id:
                raise NotFoundError("Pricing rule not found", details={"rule_id": str(rule_id)})
            await self.rules.delete(rule)
        logger.info("Deleted pricing rule %s for customer %s", rule_id, customer_id)

    async def active_rules(
        self, customer_id: UUID, product_ids: List[UUID], on: Optional[date] = None
    ) -> Dict[UUID, CustomerPrice]:
        return await self.rules.active_rules(customer_id, product_ids, on or utcnow().date())

    # PUBLIC_INTERFACE
    async def effective_price(self, customer_id: UUID, product_id: UUID, on: Optional[date] = None) -> EffectivePrice:
        """Unit price the customer pays for the product on `on` (today, UTC, by default)."""
        day = on or utcnow().date()
        await self._require_customer(customer_id)
        product = await self._require_product(product_id)
        rule = (await self.rules.active_rules(customer_id, [product_id], day)).get(product_id)
        return EffectivePrice(
            customer_id=customer_id,
            product_id=product_id,
            on=day,
            list_price=float(product.unit_price),
            unit_price=price_for(product, rule),
            rule_id=rule.id if rule else None,
        )
