import logging
from typing import List
from datetime import datetime
from tixhub.database import get_db_connection
from tixhub.models.ticket import (
    MyTicket, TicketQRResponse, TicketLookup, CheckInResult, CheckInResponse, TicketStatus
)
from tixhub.utils.qr_generator import render_qr_png_base64, generate_data_url, is_qr_token
from tixhub.core.exceptions import NotFoundError, TicketError

logger = logging.getLogger(__name__)

QR_VISIBLE_STATUSES = [TicketStatus.VALID.value, TicketStatus.USED.value]

TICKET_LOOKUP_QUERY = """
    SELECT t.id, t.qr_code, t.status, t.checked_in_at,
           tt.name as ticket_type_name,
           e.id as event_id, e.title as event_title, e.date as event_date,
           e.seller_id,
           p.full_name as holder_name, p.email as holder_email
    FROM tickets t
    JOIN ticket_types tt ON t.ticket_type_id = tt.id
    JOIN events e ON tt.event_id = e.id
    LEFT JOIN profiles p ON p.user_id = t.user_id
"""


async def get_my_tickets(user_id: str) -> List[MyTicket]:
    """Buyer tickets, cancelled ones excluded"""
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch("""
            SELECT t.id, t.order_id, t.qr_code, t.status, t.checked_in_at,
                   tt.name as ticket_type_name,
                   e.id as event_id, e.title as event_title, e.date as event_date,
                   e.start_time, v.name as venue_name
            FROM tickets t
            JOIN ticket_types tt ON t.ticket_type_id = tt.id
            JOIN events e ON tt.event_id = e.id
            LEFT JOIN venues v ON e.venue_id = v.id
            WHERE t.user_id = $1 AND t.status <> 'cancelled'
            ORDER BY e.date ASC, t.created_at ASC
        """, user_id)

        return [MyTicket(**dict(row)) for row in rows]


async def get_ticket_qr(user_id: str, ticket_id: str) -> TicketQRResponse:
    """QR image for the ticket owner. Only paid tickets get a QR."""
    async with get_db_connection(use_transaction=False) as conn:
        ticket = await conn.fetchrow("""
            SELECT id, user_id, qr_code, status
            FROM tickets
            WHERE id = $1
        """, ticket_id)

    if not ticket or str(ticket['user_id']) != user_id:
        raise NotFoundError("Ticket not found")

    if ticket['status'] not in QR_VISIBLE_STATUSES:
        raise TicketError(f"Cannot show QR for ticket with status: {ticket['status']}")

    qr_base64 = render_qr_png_base64(ticket['qr_code'])

    return TicketQRResponse(
        ticket_id=str(ticket['id']),
        qr_code=ticket['qr_code'],
        qr_code_base64=qr_base64,
        qr_code_data_url=generate_data_url(qr_base64),
        generated_at=datetime.now()
    )


def _lookup_from_row(ticket, result: CheckInResult, message: str) -> TicketLookup:
    return TicketLookup(
        result=result,
        message=message,
        can_check_in=result == CheckInResult.VALID,
        ticket_id=ticket['id'],
        qr_code=ticket['qr_code'],
        status=ticket['status'],
        checked_in_at=ticket['checked_in_at'],
        ticket_type_name=ticket['ticket_type_name'],
        event_title=ticket['event_title'],
        event_date=ticket['event_date'],
        holder_name=ticket['holder_name'],
        holder_email=ticket['holder_email']
    )


async def lookup_ticket(seller_id: str, qr_code: str) -> TicketLookup:
    """
    Resolve a scanned QR for door staff.
    Does not change anything; check_in_ticket marks the entry.
    """
    qr_code = qr_code.strip()
    if not is_qr_token(qr_code):
        return TicketLookup(
            result=CheckInResult.NOT_FOUND,
            message="Ticket not found"
        )

    async with get_db_connection(use_transaction=False) as conn:
        ticket = await conn.fetchrow(
            TICKET_LOOKUP_QUERY + " WHERE t.qr_code = $1",
            qr_code
        )

    if not ticket:
        return TicketLookup(
            result=CheckInResult.NOT_FOUND,
            message="Ticket not found"
        )

    if str(ticket['seller_id']) != seller_id:
        return TicketLookup(
            result=CheckInResult.WRONG_SELLER,
            message="This ticket belongs to another organizer's event"
        )

    if ticket['status'] == TicketStatus.USED.value:
        checked_in = ticket['checked_in_at']
        when = checked_in.strftime('%Y-%m-%d %H:%M') if checked_in else "earlier"
        return _lookup_from_row(ticket, CheckInResult.ALREADY_USED, f"Ticket already used ({when})")

    if ticket['status'] != TicketStatus.VALID.value:
        return _lookup_from_row(
            ticket, CheckInResult.NOT_VALID, f"Ticket is not valid (status: {ticket['status']})"
        )

    return _lookup_from_row(ticket, CheckInResult.VALID, "Valid ticket - entry allowed")


async def check_in_ticket(seller_id: str, ticket_id: str) -> CheckInResponse:
    """Mark a valid ticket as used. Only one scan can win."""
    async with get_db_connection() as conn:
        row = await conn.fetchrow("""
            UPDATE tickets t
            SET status = 'used', checked_in_at = NOW()
            FROM ticket_types tt, events e
            WHERE t.id = $1
              AND t.status = 'valid'
              AND t.ticket_type_id = tt.id
              AND tt.event_id = e.id
              AND e.seller_id = $2
            RETURNING t.id, t.status, t.checked_in_at, t.user_id
        """, ticket_id, seller_id)

        if not row:
            current = await conn.fetchrow(
                TICKET_LOOKUP_QUERY + " WHERE t.id = $1",
                ticket_id
            )
            if not current or str(current['seller_id']) != seller_id:
                raise NotFoundError("Ticket not found")
            if current['status'] == TicketStatus.USED.value:
                raise TicketError("Ticket already used", {"checked_in_at": str(current['checked_in_at'])})
            raise TicketError(f"Ticket is not valid (status: {current['status']})")

        holder = await conn.fetchrow(
            "SELECT full_name FROM profiles WHERE user_id = $1",
            row['user_id']
        )

    logger.info(f"Check-in: ticket {ticket_id} by seller {seller_id}")

    return CheckInResponse(
        ticket_id=row['id'],
        status=TicketStatus(row['status']),
        checked_in_at=row['checked_in_at'],
        holder_name=holder['full_name'] if holder else None
    )
