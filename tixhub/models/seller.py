from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class SellerTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class SellerApply(BaseModel):
    """Application to sell tickets"""
    business_name: str = Field(..., min_length=2, max_length=150)
    business_email: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)


class Seller(BaseModel):
    id: str
    user_id: str
    business_name: str
    business_email: Optional[str] = None
    description: Optional[str] = None
    verified: bool = False
    tier: SellerTier = SellerTier.BRONZE
    created_at: Optional[datetime] = None

    @field_validator('id', 'user_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v

    @field_validator('verified', mode='before')
    @classmethod
    def none_to_false(cls, v):
        return bool(v)

    @field_validator('tier', mode='before')
    @classmethod
    def default_tier(cls, v):
        return v or SellerTier.BRONZE


class DashboardStats(BaseModel):
    """Sales totals for the seller dashboard"""
    events_count: int = 0
    total_sales: int = 0
    total_revenue: Decimal = Decimal("0")
    total_tickets: int = 0


class DailySales(BaseModel):
    day: date
    revenue: Decimal = Decimal("0")
    orders: int = 0


class CategoryRevenue(BaseModel):
    category: str
    revenue: Decimal = Decimal("0")


class EventRevenue(BaseModel):
    event_id: str
    title: str
    revenue: Decimal = Decimal("0")
    tickets_sold: int = 0

    @field_validator('event_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v


class SellerAnalytics(BaseModel):
    """Charts for the seller analytics page, completed orders only"""
    total_revenue: Decimal = Decimal("0")
    total_tickets_sold: int = 0
    total_events: int = 0
    active_events: int = 0
    daily_sales: List[DailySales] = []
    revenue_by_category: List[CategoryRevenue] = []
    top_events: List[EventRevenue] = []
