from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.constants import CommunicationStatus
from wms.core.deps import get_session
from wms.repositories.orders import OrderRepository
from wms.repositories.partners import CustomerRepository, SupplierRepository
from wms.schemas.orders import OrderRead
from wms.schemas.partners import (
    CommunicationLogCreate,
    CommunicationLogRead,
    CommunicationLogUpdate,
    CreditAssessmentRead,
    CreditCheckRequest,
    CreditLimitUpdate,
    CustomerCreate,
    CustomerPriceCreate,
    CustomerPriceRead,
    CustomerRead,
    EffectivePriceRead,
    SupplierCreate,
    SupplierRead,
)
from wms.services.partners import CommunicationService, CustomerService, SupplierService
from wms.services.pricing import PricingService

router = APIRouter(tags=["Partners"])


# PUBLIC_INTERFACE
@router.get("/suppliers", response_model=List[SupplierRead], summary="List suppliers")
async def list_suppliers(
    session: AsyncSession = Depends(get_session),
    search: Optional[str] = Query(None, description="Search in name or email"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[SupplierRead]:
    items = await SupplierRepository(session).list_suppliers(search=search, limit=limit, offset=offset)
    return [SupplierRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post(
    "/suppliers",
    response_model=SupplierRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create supplier",
)
async def create_supplier(payload: SupplierCreate, session: AsyncSession = Depends(get_session)) -> SupplierRead:
    supplier = await SupplierService(session).create_supplier(payload)
    return SupplierRead.model_validate(supplier)


# PUBLIC_INTERFACE
@router.get("/suppliers/{supplier_id}", response_model=SupplierRead, summary="Get supplier")
async def get_supplier(supplier_id: UUID, session: AsyncSession = Depends(get_session)) -> SupplierRead:
    supplier = await SupplierService(session).get_supplier(supplier_id)
    return SupplierRead.model_validate(supplier)


# PUBLIC_INTERFACE
@router.get("/customers", response_model=List[CustomerRead], summary="List customers")
async def list_customers(
    session: AsyncSession = Depends(get_session),
    search: Optional[str] = Query(None, description="Search in name or email"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[CustomerRead]:
    items = await CustomerRepository(session).list_customers(search=search, limit=limit, offset=offset)
    return [CustomerRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.post(
    "/customers",
    response_model=CustomerRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create customer",
)
async def create_customer(payload: CustomerCreate, session: AsyncSession = Depends(get_session)) -> CustomerRead:
    customer = await CustomerService(session).create_customer(payload)
    return CustomerRead.model_validate(customer)


# PUBLIC_INTERFACE
@router.get("/customers/{customer_id}", response_model=CustomerRead, summary="Get customer")
async def get_customer(customer_id: UUID, session: AsyncSession = Depends(get_session)) -> CustomerRead:
    customer = await CustomerService(session).get_customer(customer_id)
    return CustomerRead.model_validate(customer)


# PUBLIC_INTERFACE
@router.put(
    "/customers/{customer_id}/credit-limit",
    response_model=CustomerRead,
    summary="Set credit limit",
    description="Manually set a customer's credit limit. It cannot be lower than the current balance.",
)
async def update_credit_limit(
    customer_id: UUID, payload: CreditLimitUpdate, session: AsyncSession = Depends(get_session)
) -> CustomerRead:
    customer = await CustomerService(session).update_credit_limit(customer_id, payload.credit_limit)
    return CustomerRead.model_validate(customer)


# PUBLIC_INTERFACE
@router.post(
    "/customers/{customer_id}/credit-check",
    response_model=CreditAssessmentRead,
    summary="Classify an order total against the credit limit",
    description="Returns ok, near_limit or exceeds_limit without changing the customer.",
)
async def credit_check(
    customer_id: UUID, payload: CreditCheckRequest, session: AsyncSession = Depends(get_session)
) -> CreditAssessmentRead:
    assessment = await CustomerService(session).assess_credit(customer_id, payload.total)
    return CreditAssessmentRead(**asdict(assessment))


# PUBLIC_INTERFACE
@router.get(
    "/customers/{customer_id}/orders",
    response_model=List[OrderRead],
    summary="Customer order history",
)
async def customer_orders(customer_id: UUID, session: AsyncSession = Depends(get_session)) -> List[OrderRead]:
    await CustomerService(session).get_customer(customer_id)
    orders = await OrderRepository(session).orders_for_customer(customer_id)
    return [OrderRead.model_validate(o) for o in orders]


# PUBLIC_INTERFACE
@router.get(
    "/customers/{customer_id}/pricing",
    response_model=List[CustomerPriceRead],
    summary="List customer pricing rules",
)
async def list_pricing_rules(customer_id: UUID, session: AsyncSession = Depends(get_session)) -> List[CustomerPriceRead]:
    rules = await PricingService(session).list_rules(customer_id)
    return [CustomerPriceRead.model_validate(r) for r in rules]


# PUBLIC_INTERFACE
@router.post(
    "/customers/{customer_id}/pricing",
    response_model=CustomerPriceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add customer pricing rule",
    description="A fixed special price or a discount off the list price, valid over a date range. "
    "Outbound order items without an explicit unit price use the rule in force.",
)
async def add_pricing_rule(
    customer_id: UUID, payload: CustomerPriceCreate, session: AsyncSession = Depends(get_session)
) -> CustomerPriceRead:
    rule = await PricingService(session).add_rule(customer_id, payload)
    return CustomerPriceRead.model_validate(rule)


# PUBLIC_INTERFACE
@router.delete(
    "/customers/{customer_id}/pricing/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete customer pricing rule",
)
async def delete_pricing_rule(customer_id: UUID, rule_id: UUID, session: AsyncSession = Depends(get_session)) -> Response:
    await PricingService(session).delete_rule(customer_id, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.get(
    "/customers/{customer_id}/prices/{product_id}",
    response_model=EffectivePriceRead,
    summary="Unit price a customer pays for a product",
)
async def effective_price(
    customer_id: UUID,
    product_id: UUID,
    on: Optional[date] = Query(None, description="Day to price for; defaults to today (UTC)"),
    session: AsyncSession = Depends(get_session),
) -> EffectivePriceRead:
    price = await PricingService(session).effective_price(customer_id, product_id, on)
    return EffectivePriceRead(**asdict(price))


# PUBLIC_INTERFACE
@router.get(
    "/customers/{customer_id}/communications",
    response_model=List[CommunicationLogRead],
    summary="List customer communication logs",
)
async def list_communications(
    customer_id: UUID,
    status_: Optional[CommunicationStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
) -> List[CommunicationLogRead]:
    logs = await CommunicationService(session).list_logs(customer_id, status=status_.value if status_ else None)
    return [CommunicationLogRead.model_validate(x) for x in logs]


# PUBLIC_INTERFACE
@router.post(
    "/customers/{customer_id}/communications",
    response_model=CommunicationLogRead,
    status_code=status.HTTP_201_CREATED,
    summary="Log a customer communication",
)
async def add_communication(
    customer_id: UUID, payload: CommunicationLogCreate, session: AsyncSession = Depends(get_session)
) -> CommunicationLogRead:
    log = await CommunicationService(session).add_log(customer_id, payload)
    return CommunicationLogRead.model_validate(log)


# PUBLIC_INTERFACE
@router.patch(
    "/customers/{customer_id}/communications/{log_id}",
    response_model=CommunicationLogRead,
    summary="Update a customer communication log",
)
async def update_communication(
    customer_id: UUID,
    log_id: UUID,
    payload: CommunicationLogUpdate,
    session: AsyncSession = Depends(get_session),
) -> CommunicationLogRead:
    log = await CommunicationService(session).update_log(customer_id, log_id, payload)
    return CommunicationLogRead.model_validate(log)


# PUBLIC_INTERFACE
@router.delete(
    "/customers/{customer_id}/communications/{log_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a customer communication log",
)
async def delete_communication(customer_id: UUID, log_id: UUID, session: AsyncSession = Depends(get_session)) -> Response:
    await CommunicationService(session).delete_log(customer_id, log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
