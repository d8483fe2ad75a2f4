"""Earnings repository - Read-only booking queries, returned as typed records"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import COMPLETED, CONFIRMED, PENDING, Booking, Service, TherapistService, User


@dataclass(frozen=True)
class EarningsRow:
    """One booking as seen by the earnings summary"""

    status: str
    payout_cents: int
    completed_at: Optional[datetime]


@dataclass(frozen=True)
class BookingEarningRecord:
    booking_id: int
    scheduled_at: datetime
    status: str
    price_cents: int
    commission_cents: int
    payout_cents: int
    client_name: Optional[str]
    service_name: Optional[str]


def payout_or_price(payout_cents: Optional[int], price_cents: int) -> int:
    """Legacy rows have no payout recorded; the therapist was owed the full price"""
    return price_cents if payout_cents is None else payout_cents


class EarningsRepository:
    """Repository for earnings read queries"""

    @staticmethod
    def get_summary_rows(db: Session, therapist_id: int) -> list[EarningsRow]:
        rows = (
            db.query(
                Booking.status,
                Booking.price_cents,
                Booking.therapist_payout_cents,
                Booking.completed_at,
            )
            .filter(
                Booking.therapist_id == therapist_id,
                Booking.status.in_((PENDING, CONFIRMED, COMPLETED)),
            )
            .all()
        )
        return [
            EarningsRow(
                status=row.status,
                payout_cents=payout_or_price(row.therapist_payout_cents, row.price_cents),
                completed_at=row.completed_at,
            )
            for row in rows
        ]

    @staticmethod
    def get_booking_earnings(
        db: Session, therapist_id: int, limit: int, offset: int
    ) -> list[BookingEarningRecord]:
        rows = (
            db.query(
                Booking.id,
                Booking.scheduled_at,
                Booking.status,
                Booking.price_cents,
                Booking.commission_cents,
                Booking.therapist_payout_cents,
                User.full_name.label("client_name"),
                Service.name.label("service_name"),
            )
            .outerjoin(User, User.id == Booking.client_id)
            .outerjoin(TherapistService, TherapistService.id == Booking.therapist_service_id)
            .outerjoin(Service, Service.id == TherapistService.service_id)
            .filter(
                Booking.therapist_id == therapist_id,
                Booking.status.in_((CONFIRMED, COMPLETED)),
            )
            .order_by(Booking.scheduled_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [
            BookingEarningRecord(
                booking_id=row.id,
                scheduled_at=row.scheduled_at,
                status=row.status,
                price_cents=row.price_cents,
                commission_cents=row.commission_cents or 0,
                payout_cents=payout_or_price(row.therapist_payout_cents, row.price_cents),
                client_name=row.client_name,
                service_name=row.service_name,
            )
            for row in rows
        ]
