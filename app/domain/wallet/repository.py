"""Wallet repository - Database operations for client wallets and their ledger"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, ClientWallet, WalletTransaction


class WalletRepository:
    """Repository for wallet database operations"""

    @staticmethod
    def get_wallet(db: Session, user_id: int) -> Optional[ClientWallet]:
        return db.query(ClientWallet).filter(ClientWallet.user_id == user_id).first()

    @staticmethod
    def create_wallet(db: Session, user_id: int) -> ClientWallet:
        wallet = ClientWallet(user_id=user_id, balance_cents=0)
        db.add(wallet)
        db.commit()
        db.refresh(wallet)
        return wallet

    @staticmethod
    def get_transactions(db: Session, wallet_id: int, limit: int, offset: int) -> list[WalletTransaction]:
        return (
            db.query(WalletTransaction)
            .filter(WalletTransaction.wallet_id == wallet_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()
