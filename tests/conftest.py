import os

# Must be set before the app package is imported: the engine and config are module level
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["COLECTIVA_API_URL"] = ""
os.environ["COLECTIVA_API_KEY"] = ""
os.environ.setdefault("FIREBASE_PROJECT_ID", "plenura-test")

from datetime import datetime, time, timedelta

import pytest
from sqlalchemy import text

from app.database import Base, SessionLocal, engine
from app.models import (
    PENDING,
    SOURCE_MARKETPLACE,
    AvailabilityRule,
    Booking,
    Service,
    Therapist,
    TherapistService,
    User,
)

# Mirrors the Postgres bookings_no_overlap exclusion constraint
OVERLAP_TRIGGER = """
CREATE TRIGGER bookings_no_overlap
BEFORE INSERT ON bookings
WHEN NEW.status IN ('pending', 'confirmed')
BEGIN
    SELECT RAISE(ABORT, 'conflicting key value violates exclusion constraint "bookings_no_overlap"')
    WHERE EXISTS (
        SELECT 1 FROM bookings
        WHERE therapist_id = NEW.therapist_id
          AND status IN ('pending', 'confirmed')
          AND scheduled_at < NEW.scheduled_end_at
          AND scheduled_end_at > NEW.scheduled_at
    );
END
"""

# Monday
NOW = datetime(2026, 10, 19, 8, 0)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        conn.execute(text(OVERLAP_TRIGGER))
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email, full_name=None, role="client"):
    user = User(firebase_uid=f"uid-{email}", email=email, full_name=full_name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_therapist(db, email, full_name=None, tier="free"):
    user = make_user(db, email, full_name=full_name, role="therapist")
    therapist = Therapist(user_id=user.id, subscription_tier=tier, vetting_status="approved")
    db.add(therapist)
    db.commit()
    db.refresh(therapist)
    return therapist


def make_therapist_service(db, therapist, name="Swedish massage", price_cents=50000, duration_minutes=60, is_active=True):
    service = Service(name=name)
    db.add(service)
    db.commit()
    offering = TherapistService(
        therapist_id=therapist.id,
        service_id=service.id,
        price_cents=price_cents,
        duration_minutes=duration_minutes,
        is_active=is_active,
    )
    db.add(offering)
    db.commit()
    db.refresh(offering)
    return offering


def make_booking(
    db,
    client,
    therapist,
    offering,
    scheduled_at,
    status=PENDING,
    price_cents=None,
    commission_cents=0,
    payout_cents=None,
    completed_at=None,
):
    """Insert a booking directly, bypassing pricing and lifecycle rules"""
    price = offering.price_cents if price_cents is None else price_cents
    booking = Booking(
        client_id=client.id,
        therapist_id=therapist.id,
        therapist_service_id=offering.id,
        scheduled_at=scheduled_at,
        scheduled_end_at=scheduled_at + timedelta(minutes=offering.duration_minutes),
        status=status,
        source=SOURCE_MARKETPLACE,
        price_cents=price,
        commission_cents=commission_cents,
        therapist_payout_cents=(price - (commission_cents or 0)) if payout_cents is None else payout_cents,
        completed_at=completed_at,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def add_rule(db, therapist, day_of_week, start, end, is_active=True):
    rule = AvailabilityRule(
        therapist_id=therapist.id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )
    db.add(rule)
    db.commit()
    return rule


@pytest.fixture
def client_user(db):
    return make_user(db, "ana@example.com", full_name="Ana López")


@pytest.fixture
def other_client(db):
    return make_user(db, "beto@example.com", full_name="Beto Ruiz")


@pytest.fixture
def therapist(db):
    return make_therapist(db, "carla@example.com", full_name="Carla Méndez", tier="pro")


@pytest.fixture
def other_therapist(db):
    return make_therapist(db, "diego@example.com", full_name="Diego Sol")


@pytest.fixture
def offering(db, therapist):
    return make_therapist_service(db, therapist)


@pytest.fixture
def monday_hours(db, therapist):
    """Monday 09:00-12:00"""
    return add_rule(db, therapist, 1, time(9, 0), time(12, 0))
