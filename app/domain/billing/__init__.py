"""
Billing Domain

Therapist subscription tiers; the tier sets the commission on marketplace bookings.
"""

from .router import router
from .subscription_service import SubscriptionService

__all__ = ["router", "SubscriptionService"]
