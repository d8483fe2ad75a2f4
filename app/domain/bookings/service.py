"""Booking service - Booking lifecycle, slot computation and escrow side effects"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_STATUSES,
    CANCELLED_BY_CLIENT,
    CANCELLED_BY_THERAPIST,
    COMPLETED,
    CONFIRMED,
    NO_SHOW,
    PENDING,
    SOURCE_MARKETPLACE,
    SOURCE_THERAPIST_MANUAL,
    Booking,
    Therapist,
    User,
)
from ...shared.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    UpstreamError,
    is_exclusion_violation,
    upstream,
)
from ...shared.validators import as_naive_utc, clean_optional_text
from ..payments import ColectivaPaymentsService, PaymentProviderError, colectiva_service
from .pricing import calculate_refund_amount, commission_policy_for
from .repository import BookingRepository
from .slots import SlotSequence, TimeRange, build_slots, day_of_week_index

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED_BY_CLIENT, CANCELLED_BY_THERAPIST},
    CONFIRMED: {COMPLETED, CANCELLED_BY_CLIENT, CANCELLED_BY_THERAPIST, NO_SHOW},
}

CLIENT_TARGETS = {CANCELLED_BY_CLIENT, COMPLETED}
THERAPIST_TARGETS = {CONFIRMED, CANCELLED_BY_THERAPIST, COMPLETED, NO_SHOW}

CANCELLED_STATUSES = {CANCELLED_BY_CLIENT, CANCELLED_BY_THERAPIST}


@dataclass(frozen=True)
class Actor:
    """Who is acting on a booking: its client, or the therapist who delivers it"""

    user_id: int
    therapist_id: Optional[int] = None

    @classmethod
    def for_client(cls, user: User) -> "Actor":
        return cls(user_id=user.id)

    @classmethod
    def for_therapist(cls, therapist: Therapist) -> "Actor":
        return cls(user_id=therapist.user_id, therapist_id=therapist.id)

    @property
    def is_therapist(self) -> bool:
        return self.therapist_id is not None

    @property
    def role(self) -> str:
        return "therapist" if self.is_therapist else "client"

    def owns(self, booking: Booking) -> bool:
        if self.is_therapist:
            return booking.therapist_id == self.therapist_id
        return booking.client_id == self.user_id


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, payments: Optional[ColectivaPaymentsService] = None):
        self.db = db
        self.repo = BookingRepository()
        self.payments = payments or colectiva_service

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_booking(
        self,
        client: User,
        therapist_id: int,
        therapist_service_id: int,
        scheduled_at: datetime,
        client_address: Optional[str],
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Client-initiated marketplace booking, priced by subscription tier"""
        return self._create(
            client_id=client.id,
            therapist_id=therapist_id,
            therapist_service_id=therapist_service_id,
            scheduled_at=scheduled_at,
            client_address=client_address,
            notes=notes,
            source=SOURCE_MARKETPLACE,
            now=now,
        )

    def create_manual_booking(
        self,
        therapist: Therapist,
        client_id: int,
        therapist_service_id: int,
        scheduled_at: datetime,
        client_address: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Therapist-entered booking: flat platform fee, confirmed on creation"""
        return self._create(
            client_id=client_id,
            therapist_id=therapist.id,
            therapist_service_id=therapist_service_id,
            scheduled_at=scheduled_at,
            client_address=client_address,
            notes=notes,
            source=SOURCE_THERAPIST_MANUAL,
            now=now,
        )

    def _create(
        self,
        client_id: int,
        therapist_id: int,
        therapist_service_id: int,
        scheduled_at: datetime,
        client_address: Optional[str],
        notes: Optional[str],
        source: str,
        now: Optional[datetime],
    ) -> Booking:
        now = now or datetime.utcnow()
        scheduled_at = as_naive_utc(scheduled_at)

        if scheduled_at <= now:
            raise InvalidInputError("Booking time must be in the future")

        therapist = self.repo.get_therapist(self.db, therapist_id)
        if not therapist:
            raise NotFoundError("Therapist not found")

        service = self.repo.get_active_therapist_service(self.db, therapist_service_id, therapist_id)
        if not service:
            raise NotFoundError("Service not found")

        split = commission_policy_for(source).split(service.price_cents, therapist.subscription_tier)
        manual = source == SOURCE_THERAPIST_MANUAL

        booking = Booking(
            client_id=client_id,
            therapist_id=therapist_id,
            therapist_service_id=service.id,
            scheduled_at=scheduled_at,
            scheduled_end_at=scheduled_at + timedelta(minutes=service.duration_minutes),
            status=CONFIRMED if manual else PENDING,
            confirmed_at=now if manual else None,
            source=source,
            price_cents=split.price_cents,
            commission_cents=split.commission_cents,
            therapist_payout_cents=split.therapist_payout_cents,
            payment_status="unpaid",
            client_address=clean_optional_text(client_address),
            notes=clean_optional_text(notes),
        )

        try:
            booking = self.repo.add_booking(self.db, booking)
        except IntegrityError as e:
            self.db.rollback()
            if is_exclusion_violation(e):
                logger.info(
                    f"⚠️ Slot conflict for therapist {therapist_id} at {scheduled_at.isoformat()}"
                )
                raise ConflictError("This time slot is no longer available") from e
            raise upstream(e, "create the booking") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "create the booking") from e

        logger.info(
            f"✅ Booking {booking.id} created ({source}) for therapist {therapist_id}: "
            f"{booking.price_cents} = {booking.commission_cents} + {booking.therapist_payout_cents}"
        )
        return booking

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def actor_for(self, user: User, booking_id: int) -> Actor:
        """The user acts as therapist on bookings they deliver, as client otherwise"""
        therapist = self.repo.get_therapist_for_user(self.db, user.id)
        if therapist:
            booking = self.repo.get_booking(self.db, booking_id)
            if booking and booking.therapist_id == therapist.id:
                return Actor.for_therapist(therapist)
        return Actor.for_client(user)

    def get_booking(self, booking_id: int, actor: Actor) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if not actor.owns(booking):
            raise ForbiddenError("Not authorized to access this booking")
        return booking

    def list_client_bookings(self, client: User, statuses: Optional[list[str]] = None) -> list[Booking]:
        return self.repo.list_for_client(self.db, client.id, statuses)

    def list_therapist_bookings(
        self, therapist: Therapist, statuses: Optional[list[str]] = None
    ) -> list[Booking]:
        return self.repo.list_for_therapist(self.db, therapist.id, statuses)

    def get_available_slots(
        self,
        therapist_id: int,
        day: date,
        duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> SlotSequence:
        """Free slots of ``duration_minutes`` on ``day`` that start after ``now``"""
        if duration_minutes <= 0:
            raise InvalidInputError("Duration must be a positive number of minutes")

        if not self.repo.get_therapist(self.db, therapist_id):
            raise NotFoundError("Therapist not found")

        now = now or datetime.utcnow()
        rules = self.repo.get_active_rules_for_day(self.db, therapist_id, day_of_week_index(day))
        blocked = self.repo.is_day_blocked(self.db, therapist_id, day)
        booked = [
            TimeRange(b.scheduled_at, b.scheduled_end_at)
            for b in self.repo.get_active_bookings_on_day(self.db, therapist_id, day)
        ]

        return build_slots(
            day,
            [(rule.start_time, rule.end_time) for rule in rules],
            booked,
            duration_minutes,
            blocked=blocked,
            not_before=as_naive_utc(now),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def transition_status(
        self,
        booking_id: int,
        new_status: str,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Move a booking to ``new_status`` if the lifecycle and the actor allow it"""
        if new_status not in BOOKING_STATUSES:
            raise InvalidInputError(f"Unknown booking status: {new_status}")

        now = now or datetime.utcnow()
        booking = self.get_booking(booking_id, actor)

        permitted = THERAPIST_TARGETS if actor.is_therapist else CLIENT_TARGETS
        if new_status not in permitted:
            raise ForbiddenError(f"A {actor.role} cannot set a booking to {new_status}")

        if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
            raise InvalidStateError(f"Cannot change booking from {booking.status} to {new_status}")

        previous = booking.status
        booking.status = new_status
        if new_status == CONFIRMED:
            booking.confirmed_at = now
        elif new_status == COMPLETED:
            booking.completed_at = now
            booking.completed_by = actor.role
        elif new_status in CANCELLED_STATUSES:
            booking.cancelled_at = now

        try:
            booking = self.repo.save(self.db, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "update the booking") from e

        logger.info(f"✅ Booking {booking.id}: {previous} -> {new_status} by {actor.role}")

        if booking.escrow_id:
            if new_status == COMPLETED:
                self._release_escrow(booking)
            elif new_status in CANCELLED_STATUSES:
                self._refund_escrow(booking, now)

        return booking

    def _release_escrow(self, booking: Booking) -> None:
        try:
            self.payments.release_escrow(booking.escrow_id, booking.commission_cents or 0)
        except PaymentProviderError as e:
            # The provider retries via webhook; completion stands
            logger.error(f"❌ Error releasing escrow for booking {booking.id}: {e}")
            return

        booking.payment_status = "released"
        self._save_payment_state(booking)

    def _refund_escrow(self, booking: Booking, now: datetime) -> None:
        if booking.status == CANCELLED_BY_THERAPIST:
            refund = booking.price_cents
        else:
            refund = calculate_refund_amount(booking.price_cents, booking.scheduled_at, now)

        booking.refund_amount_cents = refund
        if refund > 0:
            try:
                self.payments.refund_escrow(booking.escrow_id, refund)
                booking.payment_status = "refunded"
            except PaymentProviderError as e:
                logger.error(f"❌ Error processing refund for booking {booking.id}: {e}")

        self._save_payment_state(booking)

    def _save_payment_state(self, booking: Booking) -> None:
        try:
            self.repo.save(self.db, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "record the payment state") from e

    def update_notes(self, booking_id: int, actor: Actor, notes: Optional[str]) -> Booking:
        """Clients edit their notes while the booking is open; therapists at any time"""
        booking = self.get_booking(booking_id, actor)

        if actor.is_therapist:
            booking.therapist_notes = clean_optional_text(notes)
        else:
            if booking.status not in ACTIVE_BOOKING_STATUSES:
                raise InvalidStateError("Notes can only be changed on pending or confirmed bookings")
            booking.notes = clean_optional_text(notes)

        try:
            return self.repo.save(self.db, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "update the booking notes") from e

    def initiate_payment(self, booking_id: int, client: User) -> dict:
        """Create the escrow for a pending booking and return where to pay"""
        booking = self.get_booking(booking_id, Actor.for_client(client))

        if booking.status != PENDING:
            raise InvalidStateError("Only pending bookings can be paid")
        if booking.escrow_id or booking.payment_status != "unpaid":
            raise ConflictError("Payment was already initiated for this booking")

        service_name = (
            booking.therapist_service.service.name
            if booking.therapist_service and booking.therapist_service.service
            else "Session"
        )

        try:
            escrow = self.payments.create_escrow(
                booking_id=booking.id,
                amount_cents=booking.price_cents,
                client_id=booking.client_id,
                therapist_id=booking.therapist_id,
                payee_wallet_id=booking.therapist.colectiva_wallet_id if booking.therapist else None,
                description=f"{service_name} booking #{booking.id}",
            )
        except PaymentProviderError as e:
            raise UpstreamError(str(e)) from e

        booking.escrow_id = escrow["escrow_id"]
        booking.payment_status = "held"
        self._save_payment_state(booking)

        return {"booking_id": booking.id, "escrow_id": booking.escrow_id, "payment_url": escrow["payment_url"]}

