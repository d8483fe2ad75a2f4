from datetime import datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

from app.auth import get_current_user
from app.database import get_db
from app.main import app
from app.models import COMPLETED
from conftest import add_rule, make_booking


@pytest.fixture
def api(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(user):
    app.dependency_overrides[get_current_user] = lambda: user


@pytest.fixture
def next_monday():
    today = datetime.utcnow().date()
    return today + timedelta(days=(7 - today.weekday()) % 7 + 7)


def at(day, hour):
    return datetime.combine(day, time(hour, 0))


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_tiers_are_public(api):
    tiers = {t["tier"]: t for t in api.get("/billing/tiers").json()}
    assert tiers["pro"]["commission_percent"] == 5.0
    assert tiers["enterprise"]["commission_percent"] == 0.0
    assert tiers["business"]["monthly_price_cents"] == 69900


def test_booking_flow(api, client_user, other_client, therapist, offering, monday_hours, next_monday):
    slots_url = f"/bookings/slots?therapist_id={therapist.id}&date={next_monday.isoformat()}&duration_minutes=60"
    slots = api.get(slots_url).json()["slots"]
    assert [s["start"] for s in slots] == [at(next_monday, h).isoformat() for h in (9, 10, 11)]

    login(client_user)
    payload = {
        "therapist_id": therapist.id,
        "therapist_service_id": offering.id,
        "scheduled_at": at(next_monday, 10).isoformat(),
        "client_address": "Calle Durango 12",
    }
    response = api.post("/bookings", json=payload)
    assert response.status_code == 201
    booking = response.json()
    assert booking["status"] == "pending"
    assert booking["commission_cents"] == 2500
    assert booking["therapist_payout_cents"] == 47500

    login(other_client)
    conflict = api.post("/bookings", json=payload)
    assert conflict.status_code == 409
    assert conflict.json()["code"] == "conflict"

    assert len(api.get(slots_url).json()["slots"]) == 2

    login(client_user)
    forbidden = api.patch(f"/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "forbidden"

    unknown = api.patch(f"/bookings/{booking['id']}/status", json={"status": "bogus"})
    assert unknown.status_code == 400
    assert unknown.json()["code"] == "invalid_input"

    login(therapist.user)
    confirmed = api.patch(f"/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    invalid = api.patch(f"/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert invalid.status_code == 422
    assert invalid.json()["code"] == "invalid_state"

    login(other_client)
    assert api.get(f"/bookings/{booking['id']}").status_code == 403


def test_slots_today_only_start_in_the_future(api, db, therapist):
    today = datetime.utcnow().date()
    add_rule(db, therapist, (today.weekday() + 1) % 7, time(0, 0), time(23, 59))

    requested_at = datetime.utcnow()
    slots = api.get(f"/bookings/slots?therapist_id={therapist.id}&date={today.isoformat()}&duration_minutes=30").json()

    starts = [datetime.fromisoformat(s["start"]) for s in slots["slots"]]
    assert all(start > requested_at for start in starts)
    assert datetime.combine(today, time(0, 0)) not in starts


def test_manual_booking_requires_therapist_profile(api, client_user, therapist, offering, next_monday):
    payload = {
        "client_id": client_user.id,
        "therapist_service_id": offering.id,
        "scheduled_at": at(next_monday, 15).isoformat(),
    }

    login(client_user)
    assert api.post("/bookings/manual", json=payload).status_code == 403

    login(therapist.user)
    response = api.post("/bookings/manual", json=payload)
    assert response.status_code == 201
    assert response.json()["status"] == "confirmed"
    assert response.json()["commission_cents"] == 7500


def test_earnings_for_therapists_only(api, db, client_user, therapist, offering):
    make_booking(db, client_user, therapist, offering, datetime(2026, 1, 5, 10), status=COMPLETED,
                 commission_cents=2500, completed_at=datetime(2026, 1, 5, 11))

    login(client_user)
    assert api.get("/earnings/summary").status_code == 403

    login(therapist.user)
    summary = api.get("/earnings/summary").json()
    assert summary["total_earnings_cents"] == 47500
    assert summary["completed_bookings"] == 1

    [record] = api.get("/earnings/bookings").json()
    assert record["client_name"] == "Ana López"


def test_review_flow(api, db, client_user, therapist, offering):
    booking = make_booking(db, client_user, therapist, offering, datetime(2026, 1, 5, 10), status=COMPLETED,
                           completed_at=datetime(2026, 1, 5, 11))
    login(client_user)

    assert [p["booking_id"] for p in api.get("/reviews/pending").json()] == [booking.id]

    body = {"booking_id": booking.id, "therapist_id": therapist.id, "rating": 5, "comment": "Excellent"}
    created = api.post("/reviews", json=body)
    assert created.status_code == 201
    assert created.json()["client_name"] == "Ana López"

    duplicate = api.post("/reviews", json=body)
    assert duplicate.status_code == 409

    public = api.get(f"/reviews/therapist/{therapist.id}").json()
    assert [r["rating"] for r in public] == [5]
    assert api.get("/reviews/pending").json() == []


def test_availability_endpoints(api, therapist):
    login(therapist.user)
    rules = [{"day_of_week": 2, "start_time": "10:00", "end_time": "14:00"}]
    assert api.put("/availability/me", json={"rules": rules}).status_code == 200

    public = api.get(f"/availability/{therapist.id}").json()
    assert [(r["day_of_week"], r["start_time"]) for r in public] == [(2, "10:00:00")]

    bad = api.put("/availability/me", json={"rules": [{"day_of_week": 9, "start_time": "10:00", "end_time": "11:00"}]})
    assert bad.status_code == 400

    blocked = api.post("/availability/me/blocked", json={"start_date": "2026-12-24", "end_date": "2026-12-26"})
    assert blocked.status_code == 201
    assert api.delete(f"/availability/me/blocked/{blocked.json()['id']}").status_code == 204
    assert api.delete(f"/availability/me/blocked/{blocked.json()['id']}").status_code == 404


def test_change_tier_changes_future_commission(api, client_user, therapist, offering, next_monday):
    login(therapist.user)
    assert api.post("/billing/change-tier", json={"tier": "platinum"}).status_code == 400
    changed = api.post("/billing/change-tier", json={"tier": " Business "})
    assert changed.status_code == 200
    assert api.get("/billing/current-tier").json()["tier"] == "business"

    login(client_user)
    booking = api.post(
        "/bookings",
        json={
            "therapist_id": therapist.id,
            "therapist_service_id": offering.id,
            "scheduled_at": at(next_monday, 9).isoformat(),
        },
    ).json()
    assert booking["commission_cents"] == 1500


def test_favorites_and_wallet(api, client_user, therapist, offering, next_monday):
    login(client_user)
    assert api.post(f"/favorites/{therapist.id}/toggle").json()["is_favorite"] is True
    assert api.get("/favorites/count").json() == {"count": 1}
    assert api.get("/favorites").json()[0]["full_name"] == "Carla Méndez"

    booking = api.post(
        "/bookings",
        json={
            "therapist_id": therapist.id,
            "therapist_service_id": offering.id,
            "scheduled_at": at(next_monday, 11).isoformat(),
        },
    ).json()

    assert api.get("/wallet").json()["balance_cents"] == 0
    broke = api.post(f"/wallet/pay/{booking['id']}")
    assert broke.status_code == 422
    assert broke.json()["code"] == "invalid_state"
