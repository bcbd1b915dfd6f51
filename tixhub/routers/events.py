from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from tixhub.core.dependencies import get_authenticated_user, AuthenticatedUser
from tixhub.models.event import (
    EventSummary, EventDetail, EventCategory, FavoriteToggle,
    Review, ReviewCreate, ReviewList
)
from tixhub.services import events_service

router = APIRouter()


@router.get("", response_model=List[EventSummary])
async def list_events(
    category: Optional[EventCategory] = Query(None),
    city: Optional[str] = Query(None, max_length=100),
    search: Optional[str] = Query(None, max_length=100),
    featured: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0)
):
    """
    Public event listing (active and sold-out events).
    """
    return await events_service.list_events(
        category=category.value if category else None,
        city=city,
        search=search,
        featured=featured,
        limit=limit,
        offset=offset
    )


@router.get("/favorites/ids", response_model=List[str])
async def list_favorite_ids(user: AuthenticatedUser = Depends(get_authenticated_user)):
    """Event ids the user marked as favorite"""
    return await events_service.list_favorite_ids(user.user_id)


@router.get("/{event_id}", response_model=EventDetail)
async def get_event(event_id: str):
    """
    Event detail with venue and ticket types.
    """
    return await events_service.get_event(event_id)


@router.post("/{event_id}/favorite", response_model=FavoriteToggle)
async def toggle_favorite(
    event_id: str,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    return await events_service.toggle_favorite(user.user_id, event_id)


@router.get("/{event_id}/reviews", response_model=ReviewList)
async def list_reviews(event_id: str):
    return await events_service.list_reviews(event_id)


@router.post("/{event_id}/reviews", response_model=Review, status_code=201)
async def create_review(
    event_id: str,
    data: ReviewCreate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """One review per user per event"""
    return await events_service.create_review(user.user_id, event_id, data.rating, data.comment)
