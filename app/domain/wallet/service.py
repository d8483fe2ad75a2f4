"""Wallet service - Client wallet balance and paying bookings from it"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import CONFIRMED, PENDING, Booking, ClientWallet, User, WalletTransaction
from ...shared.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    upstream,
)
from .repository import WalletRepository

logger = logging.getLogger(__name__)


class WalletService:
    """Service layer for client wallets"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WalletRepository()

    def get_or_create_wallet(self, user: User) -> ClientWallet:
        wallet = self.repo.get_wallet(self.db, user.id)
        if wallet:
            return wallet
        try:
            wallet = self.repo.create_wallet(self.db, user.id)
        except IntegrityError:
            # Created concurrently by another request
            self.db.rollback()
            wallet = self.repo.get_wallet(self.db, user.id)
            if not wallet:
                raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "create the wallet") from e
        logger.info(f"🆕 Wallet created for user {user.id}")
        return wallet

    def list_transactions(self, user: User, limit: int = 50, offset: int = 0) -> list[WalletTransaction]:
        wallet = self.get_or_create_wallet(user)
        return self.repo.get_transactions(self.db, wallet.id, limit, offset)

    def pay_booking_with_wallet(
        self, user: User, booking_id: int, now: Optional[datetime] = None
    ) -> Booking:
        """
        Pay a pending booking from the wallet balance.

        Debits the wallet, writes the ledger entry and confirms the booking
        in a single commit.

        Raises:
            NotFoundError: booking does not exist
            ForbiddenError: booking belongs to another client
            InvalidStateError: booking is not pending, or the balance is too low
            ConflictError: an escrow or another payment already covers the booking
        """
        now = now or datetime.utcnow()

        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.client_id != user.id:
            raise ForbiddenError("Not authorized to pay this booking")
        if booking.status != PENDING:
            raise InvalidStateError("Only pending bookings can be paid")
        if booking.escrow_id or booking.payment_status != "unpaid":
            raise ConflictError("Payment was already initiated for this booking")

        wallet = self.get_or_create_wallet(user)
        if wallet.balance_cents < booking.price_cents:
            raise InvalidStateError("Insufficient wallet balance")

        wallet.balance_cents -= booking.price_cents
        self.db.add(
            WalletTransaction(
                wallet_id=wallet.id,
                type="payment",
                amount_cents=-booking.price_cents,
                description=f"Payment for booking #{booking.id}",
                status="completed",
                booking_id=booking.id,
            )
        )
        booking.payment_status = "paid"
        booking.status = CONFIRMED
        booking.confirmed_at = now

        try:
            self.db.commit()
            self.db.refresh(booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "pay the booking with the wallet") from e

        logger.info(f"✅ Booking {booking.id} paid from wallet {wallet.id}: {booking.price_cents} cents")
        return booking
