from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, date as date_type
from decimal import Decimal
from enum import Enum
from uuid import UUID


class EventCategory(str, Enum):
    """Event categories"""
    FRIDAY_NIGHT = "friday-night"
    SATURDAY_VIBES = "saturday-vibes"
    SUNDAY_GROOVE = "sunday-groove"
    VIP_PREMIUM = "vip-premium"
    BEACH_PARTY = "beach-party"
    POOL_PARTY = "pool-party"
    CLUB_EVENT = "club-event"
    CONCERT = "concert"
    FESTIVAL = "festival"
    SPORTS = "sports"


class EventStatus(str, Enum):
    """Event lifecycle states"""
    ACTIVE = "active"
    HIDDEN = "hidden"
    VIP_ONLY = "vip-only"
    SOLD_OUT = "sold-out"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# Statuses shown in public listings
PUBLIC_EVENT_STATUSES = [EventStatus.ACTIVE.value, EventStatus.SOLD_OUT.value]


def _uuid_to_str(v):
    if isinstance(v, UUID):
        return str(v)
    return v


class Venue(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    city: str
    capacity: Optional[int] = None

    @field_validator('id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        return _uuid_to_str(v)


class TicketTypeCreate(BaseModel):
    """Ticket tier created together with its event"""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0)
    quantity: int = Field(..., ge=1)
    max_per_order: int = Field(default=10, ge=1)
    benefits: List[str] = []
    is_early_bird: bool = False


class TicketType(BaseModel):
    id: str
    event_id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    quantity: int
    sold: int = 0
    max_per_order: int = 10
    benefits: List[str] = []
    is_early_bird: bool = False

    @field_validator('id', 'event_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        return _uuid_to_str(v)

    @field_validator('benefits', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @property
    def remaining(self) -> int:
        return max(0, self.quantity - self.sold)


class TicketTypePublic(TicketType):
    """Ticket type as shown to buyers"""
    available: int = 0


class EventCreate(BaseModel):
    """Schema for a seller creating an event"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=300)
    category: EventCategory
    date: date_type
    start_time: str = Field(..., description="Door time, HH:MM")
    end_time: Optional[str] = None
    venue_id: Optional[str] = None
    cover_image: Optional[str] = None
    tags: List[str] = []
    is_featured: bool = False
    is_hot: bool = False
    age_restriction: Optional[int] = Field(None, ge=0)
    dress_code: Optional[str] = None
    ticket_types: List[TicketTypeCreate] = Field(..., min_length=1)


class EventSummary(BaseModel):
    """Listing card"""
    id: str
    title: str
    short_description: Optional[str] = None
    category: str
    date: date_type
    start_time: Optional[str] = None
    cover_image: Optional[str] = None
    status: str
    is_featured: bool = False
    is_hot: bool = False
    venue_name: Optional[str] = None
    venue_city: Optional[str] = None
    min_price: Optional[Decimal] = None
    total_tickets: int = 0
    sold_tickets: int = 0
    tickets_available: int = 0

    @field_validator('id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        return _uuid_to_str(v)

    class Config:
        from_attributes = True


class EventDetail(BaseModel):
    id: str
    seller_id: str
    title: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: str
    date: date_type
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    cover_image: Optional[str] = None
    tags: List[str] = []
    status: str
    is_featured: bool = False
    is_hot: bool = False
    age_restriction: Optional[int] = None
    dress_code: Optional[str] = None
    total_tickets: int = 0
    sold_tickets: int = 0
    venue: Optional[Venue] = None
    ticket_types: List[TicketTypePublic] = []
    created_at: Optional[datetime] = None

    @field_validator('id', 'seller_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        return _uuid_to_str(v)

    @field_validator('tags', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []


class FavoriteToggle(BaseModel):
    event_id: str
    is_favorite: bool


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class Review(BaseModel):
    id: str
    event_id: str
    user_id: str
    rating: int
    comment: Optional[str] = None
    author_name: Optional[str] = None
    created_at: datetime

    @field_validator('id', 'event_id', 'user_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        return _uuid_to_str(v)


class ReviewList(BaseModel):
    reviews: List[Review] = []
    average_rating: Optional[float] = None
    total: int = 0
