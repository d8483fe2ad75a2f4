"""Earnings domain schemas - Pydantic response models"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class EarningsSummaryResponse(BaseModel):
    total_earnings_cents: int
    this_month_earnings_cents: int
    last_month_earnings_cents: int
    pending_payout_cents: int
    total_bookings: int
    completed_bookings: int

    class Config:
        from_attributes = True


class BookingEarningResponse(BaseModel):
    booking_id: int
    scheduled_at: datetime
    status: str
    price_cents: int
    commission_cents: int
    payout_cents: int
    client_name: Optional[str] = None
    service_name: Optional[str] = None

    class Config:
        from_attributes = True
