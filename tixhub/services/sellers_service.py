import logging
import asyncpg
from typing import Optional, Dict
from datetime import date, timedelta
from decimal import Decimal
from tixhub.database import get_db_connection
from tixhub.models.seller import (
    Seller, SellerApply, DashboardStats, SellerAnalytics, DailySales, CategoryRevenue, EventRevenue
)
from tixhub.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


async def get_seller_by_user(user_id: str) -> Optional[Seller]:
    async with get_db_connection(use_transaction=False) as conn:
        row = await conn.fetchrow(
            "SELECT * FROM sellers WHERE user_id = $1",
            user_id
        )
        return Seller(**dict(row)) if row else None


async def apply_as_seller(user_id: str, data: SellerApply, email: Optional[str] = None) -> Seller:
    """Create the seller profile. A user can only have one."""
    async with get_db_connection() as conn:
        existing = await conn.fetchrow(
            "SELECT id FROM sellers WHERE user_id = $1",
            user_id
        )
        if existing:
            raise ValidationError("You already have a seller profile")

        try:
            row = await conn.fetchrow("""
                INSERT INTO sellers (user_id, business_name, business_email, description, verified, tier)
                VALUES ($1, $2, $3, $4, false, 'bronze')
                RETURNING *
            """, user_id, data.business_name, data.business_email or email, data.description)
        except asyncpg.UniqueViolationError:
            raise ValidationError("You already have a seller profile")

        logger.info(f"New seller {row['id']} '{data.business_name}' for user {user_id}")
        return Seller(**dict(row))


async def get_dashboard_stats(seller_id: str) -> DashboardStats:
    """Sales totals for the seller, completed orders only"""
    async with get_db_connection(use_transaction=False) as conn:
        row = await conn.fetchrow("""
            SELECT
                (SELECT COUNT(*) FROM events e WHERE e.seller_id = $1) as events_count,
                COUNT(o.id) as total_sales,
                COALESCE(SUM(o.total_amount), 0) as total_revenue,
                (
                    SELECT COUNT(*) FROM tickets t
                    JOIN orders o2 ON t.order_id = o2.id
                    JOIN events e2 ON o2.event_id = e2.id
                    WHERE e2.seller_id = $1 AND o2.status = 'completed'
                ) as total_tickets
            FROM orders o
            JOIN events e ON o.event_id = e.id
            WHERE e.seller_id = $1 AND o.status = 'completed'
        """, seller_id)

        if not row:
            return DashboardStats()

        return DashboardStats(
            events_count=row['events_count'] or 0,
            total_sales=row['total_sales'] or 0,
            total_revenue=Decimal(str(row['total_revenue'] or 0)),
            total_tickets=row['total_tickets'] or 0
        )


ANALYTICS_DAYS = 7
TOP_EVENTS_LIMIT = 5


async def get_seller_analytics(seller_id: str) -> SellerAnalytics:
    """
    Revenue breakdowns for the analytics page:
    - daily revenue for the last 7 days, days without sales included
    - revenue per event category
    - top 5 events by revenue

    Revenue only counts completed orders. Tickets sold come from
    events.sold_tickets, so tickets held by pending orders are counted too.
    """
    today = date.today()
    first_day = today - timedelta(days=ANALYTICS_DAYS - 1)

    async with get_db_connection(use_transaction=False) as conn:
        events = await conn.fetch("""
            SELECT
                e.id, e.title, e.category, e.status,
                COALESCE(e.sold_tickets, 0) as sold_tickets,
                COALESCE(SUM(o.total_amount), 0) as event_revenue
            FROM events e
            LEFT JOIN orders o ON o.event_id = e.id AND o.status = 'completed'
            WHERE e.seller_id = $1
            GROUP BY e.id
            ORDER BY event_revenue DESC, e.title ASC
        """, seller_id)

        days = await conn.fetch("""
            SELECT
                DATE(o.created_at) as sale_day,
                COUNT(o.id) as orders_count,
                COALESCE(SUM(o.total_amount), 0) as day_revenue
            FROM orders o
            JOIN events e ON o.event_id = e.id
            WHERE e.seller_id = $1
              AND o.status = 'completed'
              AND o.created_at >= $2::date
            GROUP BY DATE(o.created_at)
        """, seller_id, first_day)

    by_day = {row['sale_day']: row for row in days}
    daily_sales = []
    for offset in range(ANALYTICS_DAYS):
        day = first_day + timedelta(days=offset)
        row = by_day.get(day)
        daily_sales.append(DailySales(
            day=day,
            revenue=Decimal(str(row['day_revenue'])) if row else Decimal("0"),
            orders=row['orders_count'] if row else 0
        ))

    categories: Dict[str, Decimal] = {}
    for event in events:
        category = event['category'] or "other"
        categories[category] = categories.get(category, Decimal("0")) + Decimal(str(event['event_revenue']))

    return SellerAnalytics(
        total_revenue=sum(categories.values(), Decimal("0")),
        total_tickets_sold=sum(event['sold_tickets'] for event in events),
        total_events=len(events),
        active_events=sum(1 for event in events if event['status'] == 'active'),
        daily_sales=daily_sales,
        revenue_by_category=[
            CategoryRevenue(category=category, revenue=revenue)
            for category, revenue in categories.items()
        ],
        top_events=[
            EventRevenue(
                event_id=event['id'],
                title=event['title'],
                revenue=Decimal(str(event['event_revenue'])),
                tickets_sold=event['sold_tickets']
            )
            for event in events[:TOP_EVENTS_LIMIT]
        ]
    )
