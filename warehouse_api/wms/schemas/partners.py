from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from wms.core.constants import CommunicationStatus, CommunicationType, CreditStatus


class SupplierRead(BaseModel):
    """Supplier read model."""
    id: UUID = Field(..., description="Supplier ID")
    name: str = Field(..., description="Supplier name")
    contact_name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class SupplierCreate(BaseModel):
    """Create supplier payload."""
    name: str = Field(..., min_length=1, description="Supplier name")
    contact_name: Optional[str] = Field(None)
    email: Optional[EmailStr] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)


class CustomerRead(BaseModel):
    """Customer read model including credit position."""
    id: UUID = Field(..., description="Customer ID")
    name: str = Field(..., description="Customer name")
    contact_name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    credit_limit: float = Field(..., description="Maximum outstanding balance")
    current_balance: float = Field(..., description="Outstanding balance")
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class CustomerCreate(BaseModel):
    """Create customer payload."""
    name: str = Field(..., min_length=1, description="Customer name")
    contact_name: Optional[str] = Field(None)
    email: Optional[EmailStr] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    credit_limit: float = Field(0, ge=0)


class CreditLimitUpdate(BaseModel):
    """New credit limit for a customer."""
    credit_limit: float = Field(..., ge=0)


class CreditCheckRequest(BaseModel):
    """Candidate order total to evaluate against a customer's credit."""
    total: float = Field(..., ge=0)


class CreditAssessmentRead(BaseModel):
    """Result of classifying an order total against a credit limit."""
    status: CreditStatus
    credit_limit: float
    current_balance: float
    new_balance: float
    available_credit: float
    message: Optional[str] = None


class CustomerPriceCreate(BaseModel):
    """Customer pricing rule; set special_price, discount_percentage or both (special_price wins)."""
    product_id: UUID
    special_price: Optional[float] = Field(None, ge=0, description="Fixed unit price for this customer")
    discount_percentage: Optional[float] = Field(
        None, ge=0, le=100, description="Percent off the product's unit price"
    )
    valid_from: date
    valid_to: Optional[date] = Field(None, description="Last day the rule applies; open-ended when omitted")


class CustomerPriceRead(BaseModel):
    id: UUID
    customer_id: UUID
    product_id: UUID
    special_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    valid_from: date
    valid_to: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EffectivePriceRead(BaseModel):
    """Unit price a customer pays for a product on a given day."""
    customer_id: UUID
    product_id: UUID
    on: date
    list_price: float
    unit_price: float
    rule_id: Optional[UUID] = Field(None, description="Pricing rule applied, if any")


class CommunicationLogCreate(BaseModel):
    channel: CommunicationType
    subject: str = Field(..., min_length=1)
    content: Optional[str] = None
    contact_date: date
    follow_up_date: Optional[date] = None
    status: CommunicationStatus = CommunicationStatus.PENDING


class CommunicationLogUpdate(BaseModel):
    """Partial update of a communication log entry."""
    status: Optional[CommunicationStatus] = None
    follow_up_date: Optional[date] = None
    content: Optional[str] = None


class CommunicationLogRead(BaseModel):
    id: UUID
    customer_id: UUID
    channel: CommunicationType
    subject: str
    content: Optional[str] = None
    contact_date: date
    follow_up_date: Optional[date] = None
    status: CommunicationStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
