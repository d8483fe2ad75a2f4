"""Availability router - FastAPI endpoints for therapist schedules"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_therapist
from ...database import get_db
from ...models import Therapist
from .schemas import (
    AvailabilityRuleResponse,
    AvailabilitySave,
    AvailableToggleResponse,
    BlockedPeriodCreate,
    BlockedPeriodResponse,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.get("/me", response_model=list[AvailabilityRuleResponse])
async def get_my_availability(
    therapist: Therapist = Depends(get_current_therapist),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.get_availability(therapist.id)


@router.put("/me", response_model=list[AvailabilityRuleResponse])
async def save_my_availability(
    data: AvailabilitySave,
    therapist: Therapist = Depends(get_current_therapist),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Replace the weekly schedule"""
    return service.save_availability(therapist, [rule.model_dump() for rule in data.rules])


@router.post("/me/toggle", response_model=AvailableToggleResponse)
async def toggle_available(
    therapist: Therapist = Depends(get_current_therapist),
    service: AvailabilityService = Depends(get_availability_service),
):
    therapist = service.toggle_available(therapist)
    return AvailableToggleResponse(therapist_id=therapist.id, is_available=therapist.is_available)


@router.get("/me/blocked", response_model=list[BlockedPeriodResponse])
async def list_blocked_periods(
    therapist: Therapist = Depends(get_current_therapist),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.list_blocked_periods(therapist.id)


@router.post("/me/blocked", response_model=BlockedPeriodResponse, status_code=201)
async def create_blocked_period(
    data: BlockedPeriodCreate,
    therapist: Therapist = Depends(get_current_therapist),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Block whole days (vacation, training) from booking"""
    return service.create_blocked_period(therapist, data.start_date, data.end_date, data.reason)


@router.delete("/me/blocked/{period_id}", status_code=204)
async def delete_blocked_period(
    period_id: int,
    therapist: Therapist = Depends(get_current_therapist),
    service: AvailabilityService = Depends(get_availability_service),
):
    service.delete_blocked_period(therapist, period_id)


@router.get("/{therapist_id}", response_model=list[AvailabilityRuleResponse])
async def get_therapist_availability(
    therapist_id: int,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Public: a therapist's weekly schedule"""
    return service.get_availability(therapist_id)
