from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class DiscountType(str, Enum):
    """How a promo code discounts"""
    PERCENTAGE = "percentage"   # Percent of the subtotal
    FIXED = "fixed"             # Fixed amount, capped at the subtotal


class RejectionReason(str, Enum):
    """Why a promo code cannot be applied"""
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    MINIMUM_NOT_MET = "minimum_not_met"


class PromoCodeCreate(BaseModel):
    """Schema for creating a promo code"""
    code: Optional[str] = Field(None, max_length=50, description="Code; one is generated when empty")
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., gt=0)
    max_uses: Optional[int] = Field(None, ge=1, description="None = unlimited")
    min_purchase: Decimal = Field(default=Decimal("0"), ge=0)
    expires_at: Optional[datetime] = None
    event_id: Optional[str] = Field(None, description="None = every event of the seller")

    @field_validator('discount_value')
    @classmethod
    def percentage_not_above_100(cls, v, info):
        if info.data.get('discount_type') == DiscountType.PERCENTAGE and v > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return v


class PromoCode(BaseModel):
    """Full promo code schema"""
    id: str
    seller_id: Optional[str] = None
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    max_uses: Optional[int] = None
    used_count: int = 0
    min_purchase: Decimal = Decimal("0")
    expires_at: Optional[datetime] = None
    event_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @field_validator('id', 'seller_id', 'event_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v

    @field_validator('used_count', mode='before')
    @classmethod
    def none_to_zero(cls, v):
        return v or 0

    @field_validator('min_purchase', mode='before')
    @classmethod
    def none_to_decimal(cls, v):
        return v if v is not None else Decimal("0")

    @field_validator('is_active', mode='before')
    @classmethod
    def none_to_true(cls, v):
        return True if v is None else v

    class Config:
        from_attributes = True


class PromoEvaluation(BaseModel):
    """Result of checking a code against a subtotal"""
    is_valid: bool
    discount_amount: Decimal = Decimal("0")
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None


class ValidatePromoCodeRequest(BaseModel):
    """Request to validate a promo code"""
    code: str = Field(..., min_length=1, max_length=50)
    event_id: Optional[str] = None
    subtotal: Decimal = Field(..., ge=0)


class PromoCodeValidation(BaseModel):
    """Promo code validation result"""
    is_valid: bool
    promo_code_id: Optional[str] = None
    code: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_amount: Decimal = Decimal("0")
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None
