"""Wallet domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class WalletResponse(BaseModel):
    id: int
    balance_cents: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WalletTransactionResponse(BaseModel):
    id: int
    type: str
    amount_cents: int
    description: Optional[str] = None
    status: str
    booking_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WalletPaymentResponse(BaseModel):
    booking_id: int
    status: str
    payment_status: str
    balance_cents: int
