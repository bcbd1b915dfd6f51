import logging
from typing import List, Dict, Any
from tixhub.database import get_db_connection
from tixhub.models.cart import CartItem, CartResponse
from tixhub.services.pricing_service import line_total, cart_subtotal
from tixhub.core.exceptions import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

CART_ITEMS_QUERY = """
    SELECT ci.id, ci.ticket_type_id, ci.quantity,
           tt.name as ticket_type_name, tt.price, tt.max_per_order,
           (tt.quantity - COALESCE(tt.sold, 0)) as available,
           e.id as event_id, e.title as event_title, e.date as event_date,
           e.cover_image
    FROM cart_items ci
    JOIN ticket_types tt ON ci.ticket_type_id = tt.id
    JOIN events e ON tt.event_id = e.id
    WHERE ci.user_id = $1
    ORDER BY ci.created_at ASC
"""


async def load_cart_items(conn, user_id: str) -> List[Dict[str, Any]]:
    """Cart lines joined with ticket type and event, in insertion order"""
    rows = await conn.fetch(CART_ITEMS_QUERY, user_id)
    return [dict(row) for row in rows]


def _build_response(items: List[Dict[str, Any]]) -> CartResponse:
    cart_items = [
        CartItem(**item, line_total=line_total(item))
        for item in items
    ]
    return CartResponse(
        items=cart_items,
        total_items=sum(item['quantity'] for item in items),
        subtotal=cart_subtotal(items)
    )


async def get_cart(user_id: str) -> CartResponse:
    async with get_db_connection(use_transaction=False) as conn:
        items = await load_cart_items(conn, user_id)
        return _build_response(items)


async def _get_ticket_type(conn, ticket_type_id: str) -> Dict[str, Any]:
    ticket_type = await conn.fetchrow("""
        SELECT tt.id, tt.name, tt.max_per_order,
               (tt.quantity - COALESCE(tt.sold, 0)) as available,
               e.status as event_status
        FROM ticket_types tt
        JOIN events e ON tt.event_id = e.id
        WHERE tt.id = $1
    """, ticket_type_id)

    if not ticket_type:
        raise NotFoundError("Ticket type not found")
    return dict(ticket_type)


def _check_quantity(ticket_type: Dict[str, Any], quantity: int):
    """Enforce per-order cap and remaining stock"""
    max_per_order = ticket_type['max_per_order'] or 10
    if quantity > max_per_order:
        raise ValidationError(
            f"Maximum {max_per_order} tickets per order for {ticket_type['name']}",
            {"max_per_order": max_per_order}
        )

    available = max(0, ticket_type['available'] or 0)
    if quantity > available:
        raise ValidationError(
            f"Only {available} tickets left for {ticket_type['name']}",
            {"available": available}
        )


async def add_item(user_id: str, ticket_type_id: str, quantity: int = 1) -> CartResponse:
    """
    Add tickets to the cart.
    An existing line for the same ticket type is merged (quantities add).
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    async with get_db_connection() as conn:
        ticket_type = await _get_ticket_type(conn, ticket_type_id)

        if ticket_type['event_status'] != 'active':
            raise ValidationError("Tickets for this event are not on sale")

        existing = await conn.fetchrow("""
            SELECT id, quantity FROM cart_items
            WHERE user_id = $1 AND ticket_type_id = $2
        """, user_id, ticket_type_id)

        new_quantity = quantity + (existing['quantity'] if existing else 0)
        _check_quantity(ticket_type, new_quantity)

        if existing:
            await conn.execute("""
                UPDATE cart_items SET quantity = $1, updated_at = NOW()
                WHERE id = $2
            """, new_quantity, existing['id'])
        else:
            await conn.execute("""
                INSERT INTO cart_items (user_id, ticket_type_id, quantity)
                VALUES ($1, $2, $3)
            """, user_id, ticket_type_id, new_quantity)

        logger.info(f"Cart {user_id}: {ticket_type['name']} x{new_quantity}")

        items = await load_cart_items(conn, user_id)
        return _build_response(items)


async def update_item(user_id: str, item_id: str, quantity: int) -> CartResponse:
    """Set a line's quantity. Zero or less removes the line."""
    async with get_db_connection() as conn:
        item = await conn.fetchrow("""
            SELECT id, ticket_type_id FROM cart_items
            WHERE id = $1 AND user_id = $2
        """, item_id, user_id)

        if not item:
            raise NotFoundError("Cart item not found")

        if quantity <= 0:
            await conn.execute("DELETE FROM cart_items WHERE id = $1", item_id)
        else:
            ticket_type = await _get_ticket_type(conn, str(item['ticket_type_id']))
            _check_quantity(ticket_type, quantity)
            await conn.execute("""
                UPDATE cart_items SET quantity = $1, updated_at = NOW()
                WHERE id = $2
            """, quantity, item_id)

        items = await load_cart_items(conn, user_id)
        return _build_response(items)


async def remove_item(user_id: str, item_id: str) -> CartResponse:
    async with get_db_connection() as conn:
        result = await conn.execute("""
            DELETE FROM cart_items WHERE id = $1 AND user_id = $2
        """, item_id, user_id)

        if result == "DELETE 0":
            raise NotFoundError("Cart item not found")

        items = await load_cart_items(conn, user_id)
        return _build_response(items)


async def clear_cart(user_id: str, conn=None) -> None:
    """Empty the cart. Reuses the caller's connection when given."""
    if conn is not None:
        await conn.execute("DELETE FROM cart_items WHERE user_id = $1", user_id)
        return

    async with get_db_connection() as conn:
        await conn.execute("DELETE FROM cart_items WHERE user_id = $1", user_id)
