"""Billing router - FastAPI endpoints for subscription tiers"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_therapist
from ...database import get_db
from ...models import Therapist
from .schemas import ChangeTierRequest, TierResponse
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


@router.get("/tiers", response_model=list[TierResponse])
async def list_tiers(service: SubscriptionService = Depends(get_subscription_service)):
    """Public: available tiers with price and commission"""
    return service.list_tiers()


@router.get("/current-tier", response_model=TierResponse)
async def get_current_tier(
    therapist: Therapist = Depends(get_current_therapist),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return service.get_current_tier(therapist)


@router.post("/change-tier", response_model=TierResponse)
async def change_tier(
    body: ChangeTierRequest,
    therapist: Therapist = Depends(get_current_therapist),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Change subscription tier (payment collection happens with the provider)"""
    return service.change_tier(therapist, body.tier)
