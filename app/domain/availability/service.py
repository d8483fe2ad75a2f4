"""Availability service - Weekly schedule, availability switch and blocked periods"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import AvailabilityRule, BlockedPeriod, Therapist
from ...shared.errors import InvalidInputError, NotFoundError, upstream
from ...shared.validators import clean_optional_text, parse_clock_time, validate_day_of_week
from .repository import AvailabilityRepository

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service layer for therapist availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def get_availability(self, therapist_id: int) -> list[AvailabilityRule]:
        return self.repo.get_rules(self.db, therapist_id)

    def save_availability(self, therapist: Therapist, rules: list[dict]) -> list[AvailabilityRule]:
        """
        Replace the therapist's weekly schedule with ``rules``.

        Each rule is a dict with ``day_of_week``, ``start_time`` and ``end_time``
        (and optionally ``is_active``). The whole set is validated before the
        old schedule is touched.
        """
        new_rules = []
        for rule in rules:
            try:
                day = validate_day_of_week(rule.get("day_of_week"))
                start = parse_clock_time(rule.get("start_time"))
                end = parse_clock_time(rule.get("end_time"))
            except ValueError as e:
                raise InvalidInputError(str(e)) from e

            if start >= end:
                raise InvalidInputError("start_time must be before end_time")

            new_rules.append(
                AvailabilityRule(
                    therapist_id=therapist.id,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                    is_active=rule.get("is_active", True),
                )
            )

        try:
            self.repo.replace_rules(self.db, therapist.id, new_rules)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "save the availability") from e

        logger.info(f"✅ Saved {len(new_rules)} availability rules for therapist {therapist.id}")
        return self.get_availability(therapist.id)

    def toggle_available(self, therapist: Therapist) -> Therapist:
        therapist.is_available = not therapist.is_available
        try:
            therapist = self.repo.save_therapist(self.db, therapist)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "update availability") from e
        logger.info(f"🔄 Therapist {therapist.id} is_available={therapist.is_available}")
        return therapist

    # Blocked periods

    def list_blocked_periods(self, therapist_id: int) -> list[BlockedPeriod]:
        return self.repo.get_blocked_periods(self.db, therapist_id)

    def create_blocked_period(
        self, therapist: Therapist, start_date: date, end_date: date, reason: Optional[str] = None
    ) -> BlockedPeriod:
        if start_date > end_date:
            raise InvalidInputError("start_date must be on or before end_date")

        try:
            return self.repo.create_blocked_period(
                self.db,
                therapist.id,
                start_date=start_date,
                end_date=end_date,
                reason=clean_optional_text(reason),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "create the blocked period") from e

    def delete_blocked_period(self, therapist: Therapist, period_id: int) -> None:
        period = self.repo.get_blocked_period(self.db, period_id, therapist.id)
        if not period:
            raise NotFoundError("Blocked period not found")
        try:
            self.repo.delete_blocked_period(self.db, period)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "delete the blocked period") from e
