from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class OrderStatus(str, Enum):
    """Order lifecycle states"""
    PENDING = "pending"         # Created, waiting for payment
    COMPLETED = "completed"     # Payment verified
    EXPIRED = "expired"         # Payment never arrived, tickets released


class CheckoutRequest(BaseModel):
    """Schema for checking out the cart"""
    promo_code: Optional[str] = Field(None, max_length=50)
    customer_name: Optional[str] = Field(None, max_length=100)
    customer_email: Optional[str] = Field(None, max_length=255)


class CheckoutPreviewRequest(BaseModel):
    promo_code: Optional[str] = Field(None, max_length=50)


class EventOrderBreakdown(BaseModel):
    """Pricing for one event group of the cart"""
    event_id: str
    event_title: Optional[str] = None
    tickets_count: int
    subtotal: Decimal
    discount: Decimal = Decimal("0")
    service_fee: Decimal
    total: Decimal
    promo_code_id: Optional[str] = None


class CheckoutPreview(BaseModel):
    orders: List[EventOrderBreakdown] = []
    subtotal: Decimal
    discount: Decimal
    service_fee: Decimal
    total: Decimal
    currency: str
    applied_promo_code: Optional[str] = None


class CheckoutResponse(BaseModel):
    """Checkout response"""
    order_ids: List[str]
    payment_reference: str
    checkout_url: str
    transaction_reference: Optional[str] = None
    amount: Decimal
    currency: str

    @field_validator('order_ids', mode='before')
    @classmethod
    def convert_uuids_to_str(cls, v):
        return [str(item) if isinstance(item, UUID) else item for item in v]


class VerifyPaymentRequest(BaseModel):
    payment_reference: str = Field(..., min_length=1, max_length=255)


class PaymentVerificationResponse(BaseModel):
    """Result returned to the payment callback page"""
    success: bool
    status: str
    payment_reference: str
    amount_paid: Optional[Decimal] = None
    order_ids: List[str] = []
    message: Optional[str] = None

    @field_validator('order_ids', mode='before')
    @classmethod
    def convert_uuids_to_str(cls, v):
        return [str(item) if isinstance(item, UUID) else item for item in v]


class Order(BaseModel):
    id: str
    user_id: str
    event_id: str
    status: OrderStatus
    total_amount: Decimal
    discount_amount: Decimal = Decimal("0")
    promo_code_id: Optional[str] = None
    payment_reference: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('id', 'user_id', 'event_id', 'promo_code_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v
