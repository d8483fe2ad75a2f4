"""Favorites domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class FavoriteStatusResponse(BaseModel):
    therapist_id: int
    is_favorite: bool


class FavoriteTherapistResponse(BaseModel):
    therapist_id: int
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    rating_avg: float
    rating_count: int
    is_available: bool
    created_at: Optional[datetime] = None


class FavoriteCountResponse(BaseModel):
    count: int
