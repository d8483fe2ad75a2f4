from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Booking statuses
PENDING = "pending"
CONFIRMED = "confirmed"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED_BY_CLIENT = "cancelled_by_client"
CANCELLED_BY_THERAPIST = "cancelled_by_therapist"
NO_SHOW = "no_show"

BOOKING_STATUSES = (
    PENDING,
    CONFIRMED,
    IN_PROGRESS,
    COMPLETED,
    CANCELLED_BY_CLIENT,
    CANCELLED_BY_THERAPIST,
    NO_SHOW,
)

# Statuses that hold a therapist's time
ACTIVE_BOOKING_STATUSES = (PENDING, CONFIRMED)

# Booking origins
SOURCE_MARKETPLACE = "marketplace"
SOURCE_THERAPIST_MANUAL = "therapist_manual"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), default="client", nullable=False)  # client, therapist, admin
    created_at = Column(DateTime, server_default=func.now())

    therapist = relationship("Therapist", back_populates="user", uselist=False)


class Therapist(Base):
    __tablename__ = "therapists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    bio = Column(Text, nullable=True)
    # pending, approved, rejected, suspended - never hard-deleted
    vetting_status = Column(String(20), default="pending", nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    # free, pro, business, enterprise - drives the marketplace commission rate
    subscription_tier = Column(String(20), default="free", nullable=False)
    rating_avg = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    practice_id = Column(Integer, nullable=True, index=True)  # Multi-therapist practice, if any
    colectiva_wallet_id = Column(String(255), nullable=True)  # Escrow payee at Colectiva
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="therapist")
    services = relationship("TherapistService", back_populates="therapist")
    availability = relationship("AvailabilityRule", back_populates="therapist")
    blocked_periods = relationship("BlockedPeriod", back_populates="therapist")


class Service(Base):
    """Catalog entry (massage, reflexology, ...) offered by many therapists"""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)


class TherapistService(Base):
    __tablename__ = "therapist_services"

    id = Column(Integer, primary_key=True, index=True)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price_cents = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    therapist = relationship("Therapist", back_populates="services")
    service = relationship("Service")


class AvailabilityRule(Base):
    """Recurring weekly window. Replaced wholesale on every save."""

    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    therapist = relationship("Therapist", back_populates="availability")


class BlockedPeriod(Base):
    __tablename__ = "blocked_periods"

    id = Column(Integer, primary_key=True, index=True)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)  # inclusive
    end_date = Column(Date, nullable=False)  # inclusive
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    therapist = relationship("Therapist", back_populates="blocked_periods")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False)
    therapist_service_id = Column(Integer, ForeignKey("therapist_services.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    scheduled_end_at = Column(DateTime, nullable=False)
    status = Column(String(30), default=PENDING, nullable=False)
    source = Column(String(30), default=SOURCE_MARKETPLACE, nullable=False)

    # Money, always integer cents: price_cents = commission_cents + therapist_payout_cents
    price_cents = Column(Integer, nullable=False)
    commission_cents = Column(Integer, nullable=True)
    therapist_payout_cents = Column(Integer, nullable=True)
    refund_amount_cents = Column(Integer, nullable=True)

    # Escrow / payment
    escrow_id = Column(String(255), nullable=True)
    payment_status = Column(String(20), default="unpaid", nullable=False)  # unpaid, held, paid, released, refunded

    client_address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)  # Written by the client
    therapist_notes = Column(Text, nullable=True)

    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(String(20), nullable=True)  # client, therapist
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User")
    therapist = relationship("Therapist")
    therapist_service = relationship("TherapistService")

    # The no-overlap exclusion constraint lives in migrations/add_booking_overlap_constraint.py
    __table_args__ = (
        Index("ix_bookings_therapist_scheduled", "therapist_id", "scheduled_at"),
        Index("ix_bookings_status", "status"),
    )


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    # One review per booking is enforced by the review service, not here
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("User")
    booking = relationship("Booking")


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    therapist = relationship("Therapist")

    __table_args__ = (UniqueConstraint("user_id", "therapist_id", name="uq_favorites_user_therapist"),)


class ClientWallet(Base):
    __tablename__ = "client_wallets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    balance_cents = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    transactions = relationship("WalletTransaction", back_populates="wallet")


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True)
    wallet_id = Column(Integer, ForeignKey("client_wallets.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # deposit, payment, referral_credit, promo_credit, refund
    amount_cents = Column(Integer, nullable=False)  # Negative for debits
    description = Column(String(500), nullable=True)
    status = Column(String(20), default="completed", nullable=False)  # pending, completed, failed
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    colectiva_transaction_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    wallet = relationship("ClientWallet", back_populates="transactions")
