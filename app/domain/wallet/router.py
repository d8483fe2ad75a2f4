"""Wallet router - FastAPI endpoints for the client wallet"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import WalletPaymentResponse, WalletResponse, WalletTransactionResponse
from .service import WalletService

router = APIRouter(prefix="/wallet", tags=["Wallet"])


def get_wallet_service(db: Session = Depends(get_db)) -> WalletService:
    """Dependency injection for WalletService"""
    return WalletService(db)


@router.get("", response_model=WalletResponse)
async def get_wallet(
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
):
    return WalletResponse.model_validate(service.get_or_create_wallet(current_user))


@router.get("/transactions", response_model=list[WalletTransactionResponse])
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
):
    return [
        WalletTransactionResponse.model_validate(t)
        for t in service.list_transactions(current_user, limit, offset)
    ]


@router.post("/pay/{booking_id}", response_model=WalletPaymentResponse)
async def pay_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
):
    """Pay a pending booking from the wallet balance"""
    booking = service.pay_booking_with_wallet(current_user, booking_id)
    wallet = service.get_or_create_wallet(current_user)
    return WalletPaymentResponse(
        booking_id=booking.id,
        status=booking.status,
        payment_status=booking.payment_status,
        balance_cents=wallet.balance_cents,
    )
