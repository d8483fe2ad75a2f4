"""Earnings service - Therapist earnings aggregation"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import COMPLETED, CONFIRMED
from ...shared.errors import InvalidInputError, upstream
from .repository import BookingEarningRecord, EarningsRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EarningsSummary:
    total_earnings_cents: int
    this_month_earnings_cents: int
    last_month_earnings_cents: int
    pending_payout_cents: int
    total_bookings: int
    completed_bookings: int


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class EarningsService:
    """Read-only aggregation over a therapist's bookings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EarningsRepository()

    def get_earnings_summary(self, therapist_id: int, as_of: Optional[datetime] = None) -> EarningsSummary:
        """
        Summarize a therapist's earnings as of ``as_of``.

        Completed payouts are bucketed by ``completed_at`` into the calendar
        month of ``as_of`` and the month before it, each a half-open range
        starting on the first of the month.
        """
        as_of = as_of or datetime.utcnow()
        this_month = month_start(as_of)
        next_month = this_month + relativedelta(months=1)
        last_month = this_month - relativedelta(months=1)

        try:
            rows = self.repo.get_summary_rows(self.db, therapist_id)
        except SQLAlchemyError as e:
            raise upstream(e, "load earnings") from e

        completed = [r for r in rows if r.status == COMPLETED]
        confirmed = [r for r in rows if r.status == CONFIRMED]

        def earned_between(start: datetime, end: datetime) -> int:
            return sum(
                r.payout_cents for r in completed if r.completed_at and start <= r.completed_at < end
            )

        return EarningsSummary(
            total_earnings_cents=sum(r.payout_cents for r in completed),
            this_month_earnings_cents=earned_between(this_month, next_month),
            last_month_earnings_cents=earned_between(last_month, this_month),
            pending_payout_cents=sum(r.payout_cents for r in confirmed),
            total_bookings=len(rows),
            completed_bookings=len(completed),
        )

    def get_booking_earnings(
        self, therapist_id: int, limit: int = 20, offset: int = 0
    ) -> list[BookingEarningRecord]:
        if limit <= 0 or offset < 0:
            raise InvalidInputError("limit must be positive and offset must not be negative")
        try:
            return self.repo.get_booking_earnings(self.db, therapist_id, limit, offset)
        except SQLAlchemyError as e:
            raise upstream(e, "load booking earnings") from e
