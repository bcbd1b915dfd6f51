from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from enum import Enum
from uuid import UUID


class TicketStatus(str, Enum):
    """Ticket lifecycle states"""
    PENDING = "pending"         # Order not paid yet
    VALID = "valid"             # Paid, ready for the door
    USED = "used"               # Checked in
    CANCELLED = "cancelled"     # Order expired


class CheckInResult(str, Enum):
    """Outcome of scanning a ticket at the door"""
    VALID = "valid"
    NOT_FOUND = "not_found"
    WRONG_SELLER = "wrong_seller"
    ALREADY_USED = "already_used"
    NOT_VALID = "not_valid"


class MyTicket(BaseModel):
    """Buyer ticket with event info"""
    id: str
    order_id: str
    qr_code: str
    status: TicketStatus
    checked_in_at: Optional[datetime] = None
    ticket_type_name: str
    event_id: str
    event_title: str
    event_date: Optional[date] = None
    start_time: Optional[str] = None
    venue_name: Optional[str] = None

    @field_validator('id', 'order_id', 'event_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v


class TicketQRResponse(BaseModel):
    ticket_id: str
    qr_code: str
    qr_code_base64: str
    qr_code_data_url: str
    generated_at: datetime


class TicketLookupRequest(BaseModel):
    qr_code: str = Field(..., min_length=1, max_length=255)


class TicketLookup(BaseModel):
    """Ticket info shown to door staff after a scan"""
    result: CheckInResult
    message: str
    can_check_in: bool = False
    ticket_id: Optional[str] = None
    qr_code: Optional[str] = None
    status: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    ticket_type_name: Optional[str] = None
    event_title: Optional[str] = None
    event_date: Optional[date] = None
    holder_name: Optional[str] = None
    holder_email: Optional[str] = None

    @field_validator('ticket_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v


class CheckInResponse(BaseModel):
    ticket_id: str
    status: TicketStatus
    checked_in_at: datetime
    holder_name: Optional[str] = None

    @field_validator('ticket_id', mode='before')
    @classmethod
    def convert_uuid_to_str(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return v
