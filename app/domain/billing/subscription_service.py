"""Subscription service - Therapist subscription tiers and their commission rates"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Therapist
from ...shared.errors import InvalidInputError, upstream
from ..bookings.pricing import COMMISSION_RATES, DEFAULT_TIER
from .repository import BillingRepository

logger = logging.getLogger(__name__)

# Monthly price per tier, in MXN cents
TIER_PRICES = {
    "free": 0,
    "pro": 29900,
    "business": 69900,
    "enterprise": 129900,
}

TIER_NAMES = {
    "free": "Free",
    "pro": "Pro",
    "business": "Business",
    "enterprise": "Enterprise",
}


def describe_tier(tier: str) -> dict:
    return {
        "tier": tier,
        "name": TIER_NAMES[tier],
        "monthly_price_cents": TIER_PRICES[tier],
        "commission_percent": float(COMMISSION_RATES[tier] * 100),
    }


class SubscriptionService:
    """Service for therapist subscription tiers"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()

    def list_tiers(self) -> list[dict]:
        return [describe_tier(tier) for tier in TIER_PRICES]

    def get_current_tier(self, therapist: Therapist) -> dict:
        tier = therapist.subscription_tier if therapist.subscription_tier in TIER_PRICES else DEFAULT_TIER
        return describe_tier(tier)

    def change_tier(self, therapist: Therapist, tier: str) -> dict:
        """Move the therapist to ``tier``; applies to bookings created from now on"""
        if tier not in TIER_PRICES:
            raise InvalidInputError(f"Unknown subscription tier: {tier}")

        previous = therapist.subscription_tier
        try:
            self.repo.update_subscription_tier(self.db, therapist, tier)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "change the subscription tier") from e

        logger.info(f"✅ Therapist {therapist.id} subscription: {previous} -> {tier}")
        return describe_tier(tier)
