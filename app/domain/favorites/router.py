"""Favorites router - FastAPI endpoints for saved therapists"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import FavoriteCountResponse, FavoriteStatusResponse, FavoriteTherapistResponse
from .service import FavoritesService

router = APIRouter(prefix="/favorites", tags=["Favorites"])


def get_favorites_service(db: Session = Depends(get_db)) -> FavoritesService:
    """Dependency injection for FavoritesService"""
    return FavoritesService(db)


@router.get("", response_model=list[FavoriteTherapistResponse])
async def list_favorites(
    current_user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    favorites = service.list_favorites(current_user.id)
    return [
        FavoriteTherapistResponse(
            therapist_id=f.therapist_id,
            full_name=f.therapist.user.full_name if f.therapist.user else None,
            avatar_url=f.therapist.user.avatar_url if f.therapist.user else None,
            rating_avg=f.therapist.rating_avg,
            rating_count=f.therapist.rating_count,
            is_available=f.therapist.is_available,
            created_at=f.created_at,
        )
        for f in favorites
    ]


@router.get("/count", response_model=FavoriteCountResponse)
async def count_favorites(
    current_user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    return FavoriteCountResponse(count=service.count_favorites(current_user.id))


@router.get("/{therapist_id}", response_model=FavoriteStatusResponse)
async def is_favorite(
    therapist_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    return FavoriteStatusResponse(
        therapist_id=therapist_id, is_favorite=service.is_favorite(current_user.id, therapist_id)
    )


@router.put("/{therapist_id}", response_model=FavoriteStatusResponse)
async def add_favorite(
    therapist_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    return FavoriteStatusResponse(
        therapist_id=therapist_id, is_favorite=service.add_favorite(current_user.id, therapist_id)
    )


@router.delete("/{therapist_id}", response_model=FavoriteStatusResponse)
async def remove_favorite(
    therapist_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    return FavoriteStatusResponse(
        therapist_id=therapist_id, is_favorite=service.remove_favorite(current_user.id, therapist_id)
    )


@router.post("/{therapist_id}/toggle", response_model=FavoriteStatusResponse)
async def toggle_favorite(
    therapist_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    return FavoriteStatusResponse(
        therapist_id=therapist_id, is_favorite=service.toggle_favorite(current_user.id, therapist_id)
    )
