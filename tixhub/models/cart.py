from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date
from decimal import Decimal
from uuid import UUID


class CartItemCreate(BaseModel):
    """Schema for adding an item to the cart"""
    ticket_type_id: str = Field(..., description="Ticket type ID")
    quantity: int = Field(default=1, ge=1, le=50, description="Quantity to add")


class CartItemUpdate(BaseModel):
    """New quantity for a cart line; zero or less removes it"""
    quantity: int = Field(..., le=50)


class CartItem(BaseModel):
    """Cart line joined with its ticket type and event"""
    id: str
    ticket_type_id: str
    quantity: int
    ticket_type_name: str
    price: Decimal
    max_per_order: int = 10
    available: int = 0
    event_id: str
    event_title: str
    event_date: Optional[date] = None
    cover_image: Optional[str] = None
    line_total: Decimal = Decimal("0")

    @field_validator('id', 'ticket_type_id', 'event_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v


class CartResponse(BaseModel):
    items: List[CartItem] = []
    total_items: int = 0
    subtotal: Decimal = Decimal("0")
