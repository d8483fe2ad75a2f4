"""Review service - Review creation and therapist rating recompute"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import COMPLETED, Booking, Review
from ...shared.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    upstream,
)
from ...shared.validators import clean_optional_text, validate_rating
from .repository import ReviewRepository

logger = logging.getLogger(__name__)

PENDING_REVIEWS_LIMIT = 20


def average_rating(ratings: list[int]) -> float:
    """Mean rating rounded half-up to one decimal place"""
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def create_review(
        self,
        client_id: int,
        booking_id: int,
        therapist_id: int,
        rating,
        comment: Optional[str] = None,
        is_public: bool = True,
    ) -> Review:
        """
        Leave a review for a completed booking.

        Checks run in a fixed order so the caller always gets the most
        fundamental failure first: missing booking, wrong client, booking not
        completed, review already present, then invalid input.

        The review and the therapist's recomputed rating are committed
        together: if either write fails, neither is kept.
        """
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        if booking.client_id != client_id:
            raise ForbiddenError("You can only review your own bookings")

        if booking.status != COMPLETED:
            raise InvalidStateError("Only completed bookings can be reviewed")

        if self.repo.get_review_for_booking(self.db, booking_id):
            raise ConflictError("This booking has already been reviewed")

        try:
            rating = validate_rating(rating)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

        if therapist_id != booking.therapist_id:
            raise InvalidInputError("therapist_id does not match the booking")

        try:
            review = self.repo.add_review(
                self.db,
                booking_id=booking_id,
                client_id=client_id,
                therapist_id=booking.therapist_id,
                rating=rating,
                comment=clean_optional_text(comment),
                is_public=is_public,
            )
            self._recompute_rating(booking.therapist_id)
            self.db.commit()
            self.db.refresh(review)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "save the review") from e

        logger.info(f"⭐ Review {review.id} ({rating}/5) created for booking {booking_id}")
        return review

    def _recompute_rating(self, therapist_id: int) -> None:
        """Stage the therapist's new average; untouched when no public reviews exist"""
        ratings = self.repo.get_public_ratings(self.db, therapist_id)
        if not ratings:
            return

        rating_avg = average_rating(ratings)
        self.repo.update_therapist_rating(self.db, therapist_id, rating_avg, len(ratings))
        logger.info(f"✅ Therapist {therapist_id} rating: {rating_avg} ({len(ratings)} reviews)")

    def get_therapist_reviews(self, therapist_id: int, limit: int = 20, offset: int = 0) -> list[Review]:
        return self.repo.get_public_reviews(self.db, therapist_id, limit, offset)

    def get_booking_review(self, booking_id: int, viewer_id: Optional[int] = None) -> Optional[Review]:
        """The review of a booking; private reviews are visible to their author only"""
        review = self.repo.get_review_for_booking(self.db, booking_id)
        if review and not review.is_public and review.client_id != viewer_id:
            return None
        return review

    def get_pending_reviews(self, client_id: int) -> list[Booking]:
        """Completed bookings the client has not reviewed yet"""
        return self.repo.get_completed_bookings_without_review(self.db, client_id, PENDING_REVIEWS_LIMIT)
