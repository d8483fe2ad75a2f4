"""Booking repository - Database operations for bookings and slot inputs"""

from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    ACTIVE_BOOKING_STATUSES,
    AvailabilityRule,
    BlockedPeriod,
    Booking,
    Therapist,
    TherapistService,
)


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_therapist(db: Session, therapist_id: int) -> Optional[Therapist]:
        return db.query(Therapist).filter(Therapist.id == therapist_id).first()

    @staticmethod
    def get_therapist_for_user(db: Session, user_id: int) -> Optional[Therapist]:
        return db.query(Therapist).filter(Therapist.user_id == user_id).first()

    @staticmethod
    def get_active_therapist_service(
        db: Session, therapist_service_id: int, therapist_id: int
    ) -> Optional[TherapistService]:
        """Get a service only if this therapist offers it and it is active"""
        return (
            db.query(TherapistService)
            .filter(
                TherapistService.id == therapist_service_id,
                TherapistService.therapist_id == therapist_id,
                TherapistService.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.therapist_service).joinedload(TherapistService.service))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def add_booking(db: Session, booking: Booking) -> Booking:
        """Insert a booking. Overlap rejection is left to the store's constraint."""
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def save(db: Session, booking: Booking) -> Booking:
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def list_for_client(db: Session, client_id: int, statuses: Optional[list[str]] = None) -> list[Booking]:
        query = db.query(Booking).filter(Booking.client_id == client_id)
        if statuses:
            query = query.filter(Booking.status.in_(statuses))
        return query.order_by(Booking.scheduled_at.desc()).all()

    @staticmethod
    def list_for_therapist(
        db: Session, therapist_id: int, statuses: Optional[list[str]] = None
    ) -> list[Booking]:
        query = db.query(Booking).filter(Booking.therapist_id == therapist_id)
        if statuses:
            query = query.filter(Booking.status.in_(statuses))
        return query.order_by(Booking.scheduled_at.desc()).all()

    # Slot inputs
    @staticmethod
    def get_active_rules_for_day(db: Session, therapist_id: int, day_of_week: int) -> list[AvailabilityRule]:
        return (
            db.query(AvailabilityRule)
            .filter(
                AvailabilityRule.therapist_id == therapist_id,
                AvailabilityRule.day_of_week == day_of_week,
                AvailabilityRule.is_active.is_(True),
            )
            .order_by(AvailabilityRule.start_time)
            .all()
        )

    @staticmethod
    def is_day_blocked(db: Session, therapist_id: int, day: date) -> bool:
        return (
            db.query(BlockedPeriod.id)
            .filter(
                BlockedPeriod.therapist_id == therapist_id,
                BlockedPeriod.start_date <= day,
                BlockedPeriod.end_date >= day,
            )
            .first()
            is not None
        )

    @staticmethod
    def get_active_bookings_on_day(db: Session, therapist_id: int, day: date) -> list[Booking]:
        """Pending/confirmed bookings overlapping the calendar day"""
        day_start = datetime.combine(day, datetime.min.time())
        day_end = day_start + timedelta(days=1)
        return (
            db.query(Booking)
            .filter(
                Booking.therapist_id == therapist_id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.scheduled_at < day_end,
                Booking.scheduled_end_at > day_start,
            )
            .order_by(Booking.scheduled_at)
            .all()
        )
