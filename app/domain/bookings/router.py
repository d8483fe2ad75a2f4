"""Booking router - FastAPI endpoints for booking operations"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_therapist, get_current_user
from ...database import get_db
from ...models import Therapist, User
from ...rate_limiter import create_rate_limiter
from .schemas import (
    AvailableSlotsResponse,
    BookingCreate,
    BookingNotesUpdate,
    BookingResponse,
    BookingStatusUpdate,
    ManualBookingCreate,
    PaymentInitResponse,
    SlotResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

rate_limit_bookings = create_rate_limiter(limit=10, window_seconds=60, key_prefix="bookings")


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    therapist_id: int = Query(...),
    day: date = Query(..., alias="date", description="Day to look up (YYYY-MM-DD)"),
    duration_minutes: int = Query(60),
    service: BookingService = Depends(get_booking_service),
):
    """Public: free slots for a therapist on a given day"""
    slots = service.get_available_slots(therapist_id, day, duration_minutes)
    return AvailableSlotsResponse(
        therapist_id=therapist_id,
        date=day,
        duration_minutes=duration_minutes,
        slots=[SlotResponse(start=s.start, end=s.end) for s in slots],
    )


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(rate_limit_bookings),
):
    """Book a therapist through the marketplace"""
    booking = service.create_booking(
        current_user,
        therapist_id=data.therapist_id,
        therapist_service_id=data.therapist_service_id,
        scheduled_at=data.scheduled_at,
        client_address=data.client_address,
        notes=data.notes,
    )
    return BookingResponse.model_validate(booking)


@router.post("/manual", response_model=BookingResponse, status_code=201)
async def create_manual_booking(
    data: ManualBookingCreate,
    therapist: Therapist = Depends(get_current_therapist),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(rate_limit_bookings),
):
    """Therapist enters a booking for one of their own clients"""
    booking = service.create_manual_booking(
        therapist,
        client_id=data.client_id,
        therapist_service_id=data.therapist_service_id,
        scheduled_at=data.scheduled_at,
        client_address=data.client_address,
        notes=data.notes,
    )
    return BookingResponse.model_validate(booking)


@router.get("", response_model=list[BookingResponse])
async def list_my_bookings(
    status: Optional[list[str]] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings the current user made as a client, newest first"""
    return [BookingResponse.model_validate(b) for b in service.list_client_bookings(current_user, status)]


@router.get("/therapist", response_model=list[BookingResponse])
async def list_therapist_bookings(
    status: Optional[list[str]] = Query(None),
    therapist: Therapist = Depends(get_current_therapist),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings the current therapist delivers, newest first"""
    return [
        BookingResponse.model_validate(b) for b in service.list_therapist_bookings(therapist, status)
    ]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id, service.actor_for(current_user, booking_id))
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm, complete, cancel or mark a booking as no-show"""
    actor = service.actor_for(current_user, booking_id)
    booking = service.transition_status(booking_id, data.status, actor)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/notes", response_model=BookingResponse)
async def update_booking_notes(
    booking_id: int,
    data: BookingNotesUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    actor = service.actor_for(current_user, booking_id)
    booking = service.update_notes(booking_id, actor, data.notes)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/pay", response_model=PaymentInitResponse)
async def initiate_payment(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Create the escrow for a pending booking and return the payment URL"""
    return PaymentInitResponse(**service.initiate_payment(booking_id, current_user))

