import asyncio
import logging
from datetime import datetime, timedelta, timezone
from tixhub.config import settings
from tixhub.database import get_db_connection
from tixhub.services.checkout_service import release_order_tickets

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 5 * 60


async def expire_stale_orders() -> int:
    """
    Expire orders whose payment never arrived.

    - Marks pending orders older than the timeout as expired
    - Cancels their tickets
    - Gives the seats back to ticket_types.sold and events.sold_tickets
    """
    logger.info("Starting cleanup of stale pending orders...")

    async with get_db_connection() as conn:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=settings.pending_order_timeout_minutes)

        expired_orders = await conn.fetch("""
            UPDATE orders
            SET status = 'expired', updated_at = NOW()
            WHERE status = 'pending' AND created_at < $1
            RETURNING id, event_id, payment_reference
        """, cutoff)

        if not expired_orders:
            logger.info("No stale orders found")
            return 0

        for order in expired_orders:
            released = await release_order_tickets(conn, order['id'], order['event_id'])

            logger.info(
                f"Expired order {order['id']} ({order['payment_reference']}): "
                f"released {released} tickets"
            )

        logger.info(f"Cleanup complete: {len(expired_orders)} orders expired")
        return len(expired_orders)


async def run_cleanup_loop():
    """
    Main cleanup loop that runs continuously.
    """
    logger.info("Starting cleanup background tasks...")

    while True:
        try:
            await expire_stale_orders()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in cleanup loop: {e}")

        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
