"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class BookingCreate(BaseModel):
    """Schema for a client booking a therapist through the marketplace"""

    therapist_id: int
    therapist_service_id: int
    scheduled_at: datetime
    client_address: Optional[str] = None
    notes: Optional[str] = None


class ManualBookingCreate(BaseModel):
    """Schema for a therapist entering a booking for one of their clients"""

    client_id: int
    therapist_service_id: int
    scheduled_at: datetime
    client_address: Optional[str] = None
    notes: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: str


class BookingNotesUpdate(BaseModel):
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    client_id: int
    therapist_id: int
    therapist_service_id: int
    scheduled_at: datetime
    scheduled_end_at: datetime
    status: str
    source: str
    price_cents: int
    commission_cents: Optional[int] = None
    therapist_payout_cents: Optional[int] = None
    refund_amount_cents: Optional[int] = None
    payment_status: str
    escrow_id: Optional[str] = None
    client_address: Optional[str] = None
    notes: Optional[str] = None
    therapist_notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SlotResponse(BaseModel):
    start: datetime
    end: datetime


class AvailableSlotsResponse(BaseModel):
    therapist_id: int
    date: date
    duration_minutes: int
    slots: list[SlotResponse]


class PaymentInitResponse(BaseModel):
    booking_id: int
    escrow_id: str
    payment_url: str
