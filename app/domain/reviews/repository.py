"""Review repository - Database operations for reviews and therapist ratings"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ...models import COMPLETED, Booking, Review, Therapist, TherapistService


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_review_for_booking(db: Session, booking_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def add_review(db: Session, **data) -> Review:
        """Stage a review; the caller commits it together with the rating update"""
        review = Review(**data)
        db.add(review)
        db.flush()
        return review

    @staticmethod
    def get_public_ratings(db: Session, therapist_id: int) -> list[int]:
        rows = (
            db.query(Review.rating)
            .filter(Review.therapist_id == therapist_id, Review.is_public.is_(True))
            .all()
        )
        return [row.rating for row in rows]

    @staticmethod
    def update_therapist_rating(db: Session, therapist_id: int, rating_avg: float, rating_count: int) -> None:
        db.query(Therapist).filter(Therapist.id == therapist_id).update(
            {"rating_avg": rating_avg, "rating_count": rating_count}, synchronize_session="fetch"
        )

    @staticmethod
    def get_public_reviews(db: Session, therapist_id: int, limit: int, offset: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.client))
            .filter(Review.therapist_id == therapist_id, Review.is_public.is_(True))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_completed_bookings_without_review(db: Session, client_id: int, limit: int) -> list[Booking]:
        reviewed = select(Review.booking_id).where(Review.client_id == client_id)
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.therapist).joinedload(Therapist.user),
                joinedload(Booking.therapist_service).joinedload(TherapistService.service),
            )
            .filter(
                Booking.client_id == client_id,
                Booking.status == COMPLETED,
                Booking.id.not_in(reviewed),
            )
            .order_by(Booking.completed_at.desc())
            .limit(limit)
            .all()
        )
