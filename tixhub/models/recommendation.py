from pydantic import BaseModel, Field
from typing import List, Any, Dict


class UserPreferences(BaseModel):
    favorite_categories: List[str] = Field(default_factory=list)
    favorite_cities: List[str] = Field(default_factory=list)


class UserPreferencesUpdate(BaseModel):
    favorite_categories: List[str] = Field(default_factory=list, max_length=20)
    favorite_cities: List[str] = Field(default_factory=list, max_length=20)


class RecommendationResponse(BaseModel):
    recommendations: List[Dict[str, Any]] = []
    reason: str
