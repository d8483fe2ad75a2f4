"""Billing repository - Database operations for billing"""

from sqlalchemy.orm import Session

from ...models import Therapist


class BillingRepository:
    """Repository for billing database operations"""

    @staticmethod
    def update_subscription_tier(db: Session, therapist: Therapist, tier: str) -> Therapist:
        therapist.subscription_tier = tier
        db.commit()
        db.refresh(therapist)
        return therapist
