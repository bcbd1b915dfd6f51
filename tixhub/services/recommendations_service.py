import logging
from typing import Optional, List, Dict, Any, Iterable
from uuid import UUID
from tixhub.database import get_db_connection
from tixhub.models.event import PUBLIC_EVENT_STATUSES
from tixhub.models.recommendation import (
    UserPreferences, UserPreferencesUpdate, RecommendationResponse
)

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 6
CANDIDATE_LIMIT = 20

# Score weights
CATEGORY_MATCH_SCORE = 30
HOT_SCORE = 20
FEATURED_SCORE = 15
CITY_MATCH_SCORE = 25
POPULAR_SCORE = 10
POPULAR_SOLD_THRESHOLD = 50
EXCLUDED_PENALTY = -100

POPULAR_REASON = "Popular events"
DEFAULT_REASON = "Recommended for you"

EVENT_WITH_VENUE_SELECT = """
    SELECT e.*, v.name as venue_name, v.city as venue_city
    FROM events e
    LEFT JOIN venues v ON e.venue_id = v.id
"""


def score_event(
    event: Dict[str, Any],
    preferences: Optional[UserPreferences],
    exclude_ids: Iterable[str] = ()
) -> int:
    """
    Relevance of an event for a user.

    +30 favorite category, +20 hot, +15 featured, +25 venue in a favorite
    city, +10 more than 50 tickets sold, -100 already favorited or bought.
    """
    score = 0
    categories = preferences.favorite_categories if preferences else []
    cities = preferences.favorite_cities if preferences else []

    if event.get('category') in categories:
        score += CATEGORY_MATCH_SCORE
    if event.get('is_hot'):
        score += HOT_SCORE
    if event.get('is_featured'):
        score += FEATURED_SCORE
    if event.get('venue_city') and event['venue_city'] in cities:
        score += CITY_MATCH_SCORE
    if (event.get('sold_tickets') or 0) > POPULAR_SOLD_THRESHOLD:
        score += POPULAR_SCORE
    if str(event.get('id')) in set(str(i) for i in exclude_ids):
        score += EXCLUDED_PENALTY

    return score


def rank_events(
    events: List[Dict[str, Any]],
    preferences: Optional[UserPreferences],
    exclude_ids: Iterable[str] = (),
    limit: int = RECOMMENDATION_LIMIT
) -> List[Dict[str, Any]]:
    """Highest score first; ties keep their input order (sorted is stable)"""
    exclude = set(str(i) for i in exclude_ids)
    scored = [(score_event(event, preferences, exclude), event) for event in events]
    ranked = sorted(scored, key=lambda pair: pair[0], reverse=True)
    return [event for _, event in ranked[:limit]]


def recommendation_reason(preferences: Optional[UserPreferences]) -> str:
    if preferences and preferences.favorite_categories:
        return f"Based on your interest in {', '.join(preferences.favorite_categories[:2])}"
    return DEFAULT_REASON


def _serialize(row) -> Dict[str, Any]:
    return {k: str(v) if isinstance(v, UUID) else v for k, v in dict(row).items()}


async def get_popular_events(conn, limit: int = RECOMMENDATION_LIMIT) -> List[Dict[str, Any]]:
    rows = await conn.fetch(
        EVENT_WITH_VENUE_SELECT + """
        WHERE e.status = ANY($1::text[])
        ORDER BY e.sold_tickets DESC NULLS LAST
        LIMIT $2
        """,
        PUBLIC_EVENT_STATUSES, limit
    )
    return [_serialize(row) for row in rows]


async def get_preferences(conn, user_id: str) -> Optional[UserPreferences]:
    row = await conn.fetchrow("""
        SELECT favorite_categories, favorite_cities
        FROM user_preferences WHERE user_id = $1
    """, user_id)
    if not row:
        return None
    return UserPreferences(
        favorite_categories=row['favorite_categories'] or [],
        favorite_cities=row['favorite_cities'] or []
    )


async def _personalized(conn, user_id: str) -> RecommendationResponse:
    preferences = await get_preferences(conn, user_id)

    excluded = await conn.fetch("""
        SELECT event_id FROM favorites WHERE user_id = $1
        UNION
        SELECT event_id FROM orders WHERE user_id = $1 AND status = 'completed'
    """, user_id)
    exclude_ids = {str(row['event_id']) for row in excluded}

    query = EVENT_WITH_VENUE_SELECT + """
        WHERE e.status = ANY($1::text[])
          AND e.date >= CURRENT_DATE
    """
    params = [PUBLIC_EVENT_STATUSES]

    if preferences and preferences.favorite_categories:
        query += " AND e.category = ANY($2::text[])"
        params.append(preferences.favorite_categories)

    query += f" ORDER BY e.date ASC LIMIT {CANDIDATE_LIMIT}"

    rows = await conn.fetch(query, *params)
    candidates = [_serialize(row) for row in rows]

    recommendations = rank_events(candidates, preferences, exclude_ids)
    logger.info(f"Generated {len(recommendations)} recommendations for user {user_id}")

    return RecommendationResponse(
        recommendations=recommendations,
        reason=recommendation_reason(preferences)
    )


async def get_recommendations(user_id: Optional[str] = None) -> RecommendationResponse:
    """
    Personalized ranking for signed-in users, popular events otherwise.
    A failure while personalizing falls back to popular events.
    """
    async with get_db_connection(use_transaction=False) as conn:
        if user_id:
            try:
                return await _personalized(conn, user_id)
            except Exception as e:
                logger.error(f"Recommendation error for user {user_id}: {e}")

        popular = await get_popular_events(conn)
        return RecommendationResponse(recommendations=popular, reason=POPULAR_REASON)


async def update_preferences(user_id: str, data: UserPreferencesUpdate) -> UserPreferences:
    async with get_db_connection() as conn:
        row = await conn.fetchrow("""
            INSERT INTO user_preferences (user_id, favorite_categories, favorite_cities)
            VALUES ($1, $2, $3)
            ON CONFLICT (user_id) DO UPDATE
            SET favorite_categories = EXCLUDED.favorite_categories,
                favorite_cities = EXCLUDED.favorite_cities,
                updated_at = NOW()
            RETURNING favorite_categories, favorite_cities
        """, user_id, data.favorite_categories, data.favorite_cities)

        logger.info(f"Updated preferences for user {user_id}")
        return UserPreferences(
            favorite_categories=row['favorite_categories'] or [],
            favorite_cities=row['favorite_cities'] or []
        )
