import logging
import asyncpg
from typing import Optional, List
from tixhub.database import get_db_connection
from tixhub.models.event import (
    EventCreate, EventSummary, EventDetail, Venue, TicketTypePublic,
    FavoriteToggle, Review, ReviewList, PUBLIC_EVENT_STATUSES
)
from tixhub.core.exceptions import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

EVENT_SUMMARY_SELECT = """
    SELECT
        e.id, e.title, e.short_description, e.category, e.date, e.start_time,
        e.cover_image, e.status, e.is_featured, e.is_hot,
        COALESCE(e.total_tickets, 0) as total_tickets,
        COALESCE(e.sold_tickets, 0) as sold_tickets,
        GREATEST(COALESCE(e.total_tickets, 0) - COALESCE(e.sold_tickets, 0), 0) as tickets_available,
        v.name as venue_name,
        v.city as venue_city,
        (SELECT MIN(tt.price) FROM ticket_types tt WHERE tt.event_id = e.id) as min_price
    FROM events e
    LEFT JOIN venues v ON e.venue_id = v.id
"""


async def list_events(
    category: Optional[str] = None,
    city: Optional[str] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    limit: int = 50,
    offset: int = 0
) -> List[EventSummary]:
    """Public listing: only active and sold-out events"""
    async with get_db_connection(use_transaction=False) as conn:
        query = EVENT_SUMMARY_SELECT + " WHERE e.status = ANY($1::text[])"
        params = [PUBLIC_EVENT_STATUSES]
        param_idx = 2

        if category:
            query += f" AND e.category = ${param_idx}"
            params.append(category)
            param_idx += 1

        if city:
            query += f" AND v.city ILIKE ${param_idx}"
            params.append(city)
            param_idx += 1

        if search:
            query += f" AND (e.title ILIKE ${param_idx} OR e.short_description ILIKE ${param_idx})"
            params.append(f"%{search}%")
            param_idx += 1

        if featured is not None:
            query += f" AND e.is_featured = ${param_idx}"
            params.append(featured)
            param_idx += 1

        query += f" ORDER BY e.date ASC LIMIT ${param_idx} OFFSET ${param_idx + 1}"
        params.extend([limit, offset])

        rows = await conn.fetch(query, *params)
        return [EventSummary(**dict(row)) for row in rows]


async def _load_event_detail(conn, event_id: str) -> Optional[EventDetail]:
    row = await conn.fetchrow("SELECT * FROM events WHERE id = $1", event_id)
    if not row:
        return None

    event_dict = dict(row)

    venue = None
    if event_dict.get('venue_id'):
        venue_row = await conn.fetchrow(
            "SELECT id, name, address, city, capacity FROM venues WHERE id = $1",
            event_dict['venue_id']
        )
        if venue_row:
            venue = Venue(**dict(venue_row))

    ticket_rows = await conn.fetch("""
        SELECT * FROM ticket_types
        WHERE event_id = $1
        ORDER BY price ASC
    """, event_id)

    ticket_types = []
    for tt in ticket_rows:
        tt_dict = dict(tt)
        tt_dict['sold'] = tt_dict.get('sold') or 0
        tt_dict['available'] = max(0, tt_dict['quantity'] - tt_dict['sold'])
        ticket_types.append(TicketTypePublic(**tt_dict))

    event_dict['total_tickets'] = event_dict.get('total_tickets') or 0
    event_dict['sold_tickets'] = event_dict.get('sold_tickets') or 0
    event_dict['venue'] = venue
    event_dict['ticket_types'] = ticket_types
    return EventDetail(**event_dict)


async def get_event(event_id: str) -> EventDetail:
    async with get_db_connection(use_transaction=False) as conn:
        event = await _load_event_detail(conn, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event


async def create_event(seller_id: str, data: EventCreate) -> EventDetail:
    """
    Create an event with its ticket types.
    total_tickets is the sum of the ticket type quantities.
    """
    total_tickets = sum(tt.quantity for tt in data.ticket_types)

    async with get_db_connection() as conn:
        if data.venue_id:
            venue = await conn.fetchrow("SELECT id FROM venues WHERE id = $1", data.venue_id)
            if not venue:
                raise ValidationError("Venue not found")

        event = await conn.fetchrow("""
            INSERT INTO events (
                seller_id, venue_id, title, description, short_description,
                category, date, start_time, end_time, cover_image, tags,
                total_tickets, sold_tickets, status, is_featured, is_hot,
                age_restriction, dress_code
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, 0, 'active', $13, $14, $15, $16)
            RETURNING id
        """, seller_id, data.venue_id, data.title, data.description, data.short_description,
            data.category.value, data.date, data.start_time, data.end_time, data.cover_image,
            data.tags, total_tickets, data.is_featured, data.is_hot,
            data.age_restriction, data.dress_code)

        event_id = event['id']

        for tt in data.ticket_types:
            await conn.execute("""
                INSERT INTO ticket_types (
                    event_id, name, description, price, original_price,
                    quantity, sold, max_per_order, benefits, is_early_bird
                )
                VALUES ($1, $2, $3, $4, $5, $6, 0, $7, $8, $9)
            """, event_id, tt.name, tt.description, tt.price, tt.original_price,
                tt.quantity, tt.max_per_order, tt.benefits, tt.is_early_bird)

        logger.info(f"Created event {event_id} '{data.title}' with {len(data.ticket_types)} ticket types")

        return await _load_event_detail(conn, event_id)


async def get_seller_events(seller_id: str) -> List[EventSummary]:
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch(
            EVENT_SUMMARY_SELECT + " WHERE e.seller_id = $1 ORDER BY e.date DESC",
            seller_id
        )
        return [EventSummary(**dict(row)) for row in rows]


# ============================================================================
# Favorites
# ============================================================================

async def toggle_favorite(user_id: str, event_id: str) -> FavoriteToggle:
    """Add or remove the event from favorites, returns the new state"""
    async with get_db_connection() as conn:
        deleted = await conn.fetchrow("""
            DELETE FROM favorites
            WHERE user_id = $1 AND event_id = $2
            RETURNING event_id
        """, user_id, event_id)

        if deleted:
            return FavoriteToggle(event_id=str(event_id), is_favorite=False)

        exists = await conn.fetchrow("SELECT id FROM events WHERE id = $1", event_id)
        if not exists:
            raise NotFoundError("Event not found")

        await conn.execute("""
            INSERT INTO favorites (user_id, event_id)
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
        """, user_id, event_id)

        return FavoriteToggle(event_id=str(event_id), is_favorite=True)


async def list_favorite_ids(user_id: str) -> List[str]:
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch(
            "SELECT event_id FROM favorites WHERE user_id = $1 ORDER BY created_at DESC",
            user_id
        )
        return [str(row['event_id']) for row in rows]


# ============================================================================
# Reviews
# ============================================================================

async def list_reviews(event_id: str) -> ReviewList:
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch("""
            SELECT r.id, r.event_id, r.user_id, r.rating, r.comment, r.created_at,
                   p.full_name as author_name
            FROM event_reviews r
            LEFT JOIN profiles p ON p.user_id = r.user_id
            WHERE r.event_id = $1
            ORDER BY r.created_at DESC
        """, event_id)

        reviews = [Review(**dict(row)) for row in rows]
        average = None
        if reviews:
            average = round(sum(r.rating for r in reviews) / len(reviews), 1)

        return ReviewList(reviews=reviews, average_rating=average, total=len(reviews))


async def create_review(user_id: str, event_id: str, rating: int, comment: Optional[str] = None) -> Review:
    """One review per user per event"""
    async with get_db_connection() as conn:
        event = await conn.fetchrow("SELECT id FROM events WHERE id = $1", event_id)
        if not event:
            raise NotFoundError("Event not found")

        existing = await conn.fetchrow(
            "SELECT id FROM event_reviews WHERE event_id = $1 AND user_id = $2",
            event_id, user_id
        )
        if existing:
            raise ValidationError("You have already reviewed this event")

        try:
            row = await conn.fetchrow("""
                INSERT INTO event_reviews (event_id, user_id, rating, comment)
                VALUES ($1, $2, $3, $4)
                RETURNING id, event_id, user_id, rating, comment, created_at
            """, event_id, user_id, rating, comment)
        except asyncpg.UniqueViolationError:
            raise ValidationError("You have already reviewed this event")

        logger.info(f"Review {row['id']} created for event {event_id}")
        return Review(**dict(row))
