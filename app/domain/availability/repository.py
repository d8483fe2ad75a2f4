"""Availability repository - Database operations for weekly rules and blocked periods"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AvailabilityRule, BlockedPeriod, Therapist


class AvailabilityRepository:
    """Repository for availability database operations"""

    @staticmethod
    def get_rules(db: Session, therapist_id: int) -> list[AvailabilityRule]:
        return (
            db.query(AvailabilityRule)
            .filter(AvailabilityRule.therapist_id == therapist_id)
            .order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
            .all()
        )

    @staticmethod
    def replace_rules(db: Session, therapist_id: int, rules: list[AvailabilityRule]) -> None:
        """Delete every rule of the therapist and insert the new set in one commit"""
        db.query(AvailabilityRule).filter(AvailabilityRule.therapist_id == therapist_id).delete(
            synchronize_session=False
        )
        db.add_all(rules)
        db.commit()

    @staticmethod
    def save_therapist(db: Session, therapist: Therapist) -> Therapist:
        db.commit()
        db.refresh(therapist)
        return therapist

    @staticmethod
    def get_blocked_periods(db: Session, therapist_id: int) -> list[BlockedPeriod]:
        return (
            db.query(BlockedPeriod)
            .filter(BlockedPeriod.therapist_id == therapist_id)
            .order_by(BlockedPeriod.start_date.desc())
            .all()
        )

    @staticmethod
    def get_blocked_period(db: Session, period_id: int, therapist_id: int) -> Optional[BlockedPeriod]:
        return (
            db.query(BlockedPeriod)
            .filter(BlockedPeriod.id == period_id, BlockedPeriod.therapist_id == therapist_id)
            .first()
        )

    @staticmethod
    def create_blocked_period(db: Session, therapist_id: int, **data) -> BlockedPeriod:
        period = BlockedPeriod(therapist_id=therapist_id, **data)
        db.add(period)
        db.commit()
        db.refresh(period)
        return period

    @staticmethod
    def delete_blocked_period(db: Session, period: BlockedPeriod) -> None:
        db.delete(period)
        db.commit()
