"""Earnings router - FastAPI endpoints for therapist earnings"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_therapist
from ...database import get_db
from ...models import Therapist
from .schemas import BookingEarningResponse, EarningsSummaryResponse
from .service import EarningsService

router = APIRouter(prefix="/earnings", tags=["Earnings"])


def get_earnings_service(db: Session = Depends(get_db)) -> EarningsService:
    """Dependency injection for EarningsService"""
    return EarningsService(db)


@router.get("/summary", response_model=EarningsSummaryResponse)
async def get_earnings_summary(
    therapist: Therapist = Depends(get_current_therapist),
    service: EarningsService = Depends(get_earnings_service),
):
    return EarningsSummaryResponse.model_validate(service.get_earnings_summary(therapist.id))


@router.get("/bookings", response_model=list[BookingEarningResponse])
async def get_booking_earnings(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    therapist: Therapist = Depends(get_current_therapist),
    service: EarningsService = Depends(get_earnings_service),
):
    """Per-booking breakdown of price, commission and payout"""
    records = service.get_booking_earnings(therapist.id, limit=limit, offset=offset)
    return [BookingEarningResponse.model_validate(r) for r in records]
