from fastapi import APIRouter, Depends
from typing import Optional
from tixhub.core.dependencies import get_authenticated_user, get_current_user_id, AuthenticatedUser
from tixhub.models.recommendation import (
    RecommendationResponse, UserPreferences, UserPreferencesUpdate
)
from tixhub.services import recommendations_service

router = APIRouter()


@router.get("", response_model=RecommendationResponse)
async def get_recommendations(user_id: Optional[str] = Depends(get_current_user_id)):
    """
    Personalized picks for signed-in users, popular events for everyone else.
    """
    return await recommendations_service.get_recommendations(user_id)


@router.put("/preferences", response_model=UserPreferences)
async def update_preferences(
    data: UserPreferencesUpdate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    return await recommendations_service.update_preferences(user.user_id, data)
