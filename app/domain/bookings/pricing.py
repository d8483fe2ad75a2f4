"""
Commission and refund arithmetic for bookings.

Two commission policies coexist and are selected by where a booking comes from:

- ``TierCommissionPolicy``: marketplace bookings made by clients, priced by the
  therapist's subscription tier.
- ``FlatCommissionPolicy``: bookings a therapist enters manually, charged the
  flat platform fee.

All amounts are integer cents. Rates are Decimals and rounding is half-up,
so 0.5 cent always rounds away from zero.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from ...models import SOURCE_MARKETPLACE, SOURCE_THERAPIST_MANUAL

# Commission rates by subscription tier
COMMISSION_RATES = {
    "free": Decimal("0.10"),
    "pro": Decimal("0.05"),
    "business": Decimal("0.03"),
    "enterprise": Decimal("0"),
}
DEFAULT_TIER = "free"

# Platform fee for therapist-entered bookings
MANUAL_BOOKING_RATE = Decimal("0.15")

# Client cancellation refunds: (minimum hours before start, refund percent)
REFUND_POLICIES = (
    (48, 100),
    (24, 50),
    (0, 0),
)


def round_cents(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PriceSplit:
    price_cents: int
    commission_cents: int
    therapist_payout_cents: int


class CommissionPolicy:
    name = "base"

    def rate_for(self, subscription_tier: str) -> Decimal:
        raise NotImplementedError

    def split(self, price_cents: int, subscription_tier: str = DEFAULT_TIER) -> PriceSplit:
        if price_cents < 0:
            raise ValueError("price_cents must not be negative")
        commission = round_cents(Decimal(price_cents) * self.rate_for(subscription_tier))
        return PriceSplit(
            price_cents=price_cents,
            commission_cents=commission,
            therapist_payout_cents=price_cents - commission,
        )


class TierCommissionPolicy(CommissionPolicy):
    name = "subscription_tier"

    def rate_for(self, subscription_tier: str) -> Decimal:
        return COMMISSION_RATES.get(subscription_tier, COMMISSION_RATES[DEFAULT_TIER])


class FlatCommissionPolicy(CommissionPolicy):
    name = "flat"

    def __init__(self, rate: Decimal = MANUAL_BOOKING_RATE):
        self.rate = rate

    def rate_for(self, subscription_tier: str) -> Decimal:
        return self.rate


COMMISSION_POLICIES = {
    SOURCE_MARKETPLACE: TierCommissionPolicy(),
    SOURCE_THERAPIST_MANUAL: FlatCommissionPolicy(),
}


def commission_policy_for(source: str) -> CommissionPolicy:
    return COMMISSION_POLICIES[source]


def calculate_refund_amount(price_cents: int, scheduled_at: datetime, now: datetime) -> int:
    """Refund owed to a client who cancels, based on notice given"""
    hours_until = (scheduled_at - now).total_seconds() / 3600

    for min_hours, percent in REFUND_POLICIES:
        if hours_until >= min_hours:
            return round_cents(Decimal(price_cents) * percent / 100)
    return 0
