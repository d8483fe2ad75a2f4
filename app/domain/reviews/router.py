"""Review router - FastAPI endpoints for reviews"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Review, User
from ...rate_limiter import create_rate_limiter
from .schemas import PendingReviewResponse, ReviewCreate, ReviewResponse
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])

rate_limit_reviews = create_rate_limiter(limit=5, window_seconds=60, key_prefix="reviews")


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


def to_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        booking_id=review.booking_id,
        therapist_id=review.therapist_id,
        rating=review.rating,
        comment=review.comment,
        is_public=review.is_public,
        client_name=review.client.full_name if review.client else None,
        created_at=review.created_at,
    )


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
    _: None = Depends(rate_limit_reviews),
):
    """Review a completed booking"""
    review = service.create_review(
        current_user.id,
        booking_id=data.booking_id,
        therapist_id=data.therapist_id,
        rating=data.rating,
        comment=data.comment,
        is_public=data.is_public,
    )
    return to_response(review)


@router.get("/pending", response_model=list[PendingReviewResponse])
async def get_pending_reviews(
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Completed bookings still waiting for the client's review"""
    return [
        PendingReviewResponse(
            booking_id=b.id,
            therapist_id=b.therapist_id,
            therapist_name=b.therapist.user.full_name if b.therapist and b.therapist.user else None,
            service_name=(
                b.therapist_service.service.name
                if b.therapist_service and b.therapist_service.service
                else None
            ),
            scheduled_at=b.scheduled_at,
            completed_at=b.completed_at,
        )
        for b in service.get_pending_reviews(current_user.id)
    ]


@router.get("/booking/{booking_id}", response_model=Optional[ReviewResponse])
async def get_booking_review(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review = service.get_booking_review(booking_id, viewer_id=current_user.id)
    return to_response(review) if review else None


@router.get("/therapist/{therapist_id}", response_model=list[ReviewResponse])
async def get_therapist_reviews(
    therapist_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ReviewService = Depends(get_review_service),
):
    """Public reviews of a therapist, newest first"""
    return [to_response(r) for r in service.get_therapist_reviews(therapist_id, limit, offset)]
