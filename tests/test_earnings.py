from datetime import datetime, timedelta

import pytest

from app.domain.earnings import EarningsService
from app.models import CANCELLED_BY_CLIENT, COMPLETED, CONFIRMED, PENDING
from app.shared.errors import InvalidInputError
from conftest import make_booking, make_therapist_service

AS_OF = datetime(2026, 10, 19, 12, 0)


@pytest.fixture
def earnings(db):
    return EarningsService(db)


def day(n):
    """Distinct, non-overlapping session times"""
    return datetime(2026, 8, 1, 10, 0) + timedelta(days=n)


@pytest.fixture
def history(db, client_user, therapist, offering):
    make_booking(db, client_user, therapist, offering, day(60), status=COMPLETED,
                 commission_cents=2500, completed_at=datetime(2026, 10, 5, 11, 0))
    make_booking(db, client_user, therapist, offering, day(50), status=COMPLETED,
                 price_cents=10000, commission_cents=0, completed_at=datetime(2026, 9, 30, 23, 59))
    make_booking(db, client_user, therapist, offering, day(40), status=COMPLETED,
                 price_cents=2000, commission_cents=0, completed_at=datetime(2026, 9, 1, 0, 0))
    make_booking(db, client_user, therapist, offering, day(30), status=COMPLETED,
                 price_cents=3000, commission_cents=0, completed_at=datetime(2026, 8, 31, 23, 59, 59))
    make_booking(db, client_user, therapist, offering, day(80), status=CONFIRMED,
                 price_cents=5000, commission_cents=0)
    make_booking(db, client_user, therapist, offering, day(81), status=PENDING)
    make_booking(db, client_user, therapist, offering, day(82), status=CANCELLED_BY_CLIENT)


def test_summary(earnings, therapist, history):
    summary = earnings.get_earnings_summary(therapist.id, as_of=AS_OF)

    assert summary.total_earnings_cents == 47500 + 10000 + 2000 + 3000
    assert summary.this_month_earnings_cents == 47500
    # September only: the 1st at midnight counts, August 31st does not
    assert summary.last_month_earnings_cents == 12000
    assert summary.pending_payout_cents == 5000
    assert summary.total_bookings == 6
    assert summary.completed_bookings == 4


def test_summary_in_january_looks_at_december(earnings, db, client_user, therapist, offering):
    make_booking(db, client_user, therapist, offering, day(0), status=COMPLETED,
                 price_cents=8000, commission_cents=0, completed_at=datetime(2025, 12, 31, 18, 0))

    summary = earnings.get_earnings_summary(therapist.id, as_of=datetime(2026, 1, 10))
    assert summary.last_month_earnings_cents == 8000
    assert summary.this_month_earnings_cents == 0


def test_summary_is_empty_for_new_therapist(earnings, other_therapist):
    summary = earnings.get_earnings_summary(other_therapist.id, as_of=AS_OF)
    assert summary.total_earnings_cents == 0
    assert summary.total_bookings == 0


def test_summary_is_repeatable(earnings, therapist, history):
    assert earnings.get_earnings_summary(therapist.id, as_of=AS_OF) == earnings.get_earnings_summary(
        therapist.id, as_of=AS_OF
    )


def test_booking_earnings_only_confirmed_and_completed(earnings, therapist, history):
    records = earnings.get_booking_earnings(therapist.id)

    assert len(records) == 5
    assert {r.status for r in records} == {CONFIRMED, COMPLETED}
    assert [r.scheduled_at for r in records] == sorted((r.scheduled_at for r in records), reverse=True)
    assert records[0].client_name == "Ana López"
    assert records[0].service_name == "Swedish massage"


def test_booking_earnings_pagination(earnings, therapist, history):
    first_page = earnings.get_booking_earnings(therapist.id, limit=2, offset=0)
    second_page = earnings.get_booking_earnings(therapist.id, limit=2, offset=2)

    assert len(first_page) == 2
    assert len(second_page) == 2
    assert not {r.booking_id for r in first_page} & {r.booking_id for r in second_page}


def test_legacy_rows_default_payout_to_price(db, earnings, client_user, therapist, offering):
    booking = make_booking(db, client_user, therapist, offering, day(1), status=COMPLETED,
                           completed_at=datetime(2026, 10, 2))
    booking.commission_cents = None
    booking.therapist_payout_cents = None
    db.commit()

    [record] = earnings.get_booking_earnings(therapist.id)
    assert record.commission_cents == 0
    assert record.payout_cents == record.price_cents == 50000
    assert earnings.get_earnings_summary(therapist.id, as_of=AS_OF).total_earnings_cents == 50000


def test_invalid_page(earnings, therapist):
    with pytest.raises(InvalidInputError):
        earnings.get_booking_earnings(therapist.id, limit=0)


def test_service_name_comes_from_catalog(db, earnings, client_user, therapist):
    offering = make_therapist_service(db, therapist, name="Facial", price_cents=30000, duration_minutes=45)
    make_booking(db, client_user, therapist, offering, day(3), status=CONFIRMED)
    [record] = earnings.get_booking_earnings(therapist.id)
    assert record.service_name == "Facial"
    assert record.price_cents == 30000
