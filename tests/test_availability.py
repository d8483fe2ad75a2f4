from datetime import date, time

import pytest

from app.domain.availability import AvailabilityService
from app.shared.errors import InvalidInputError, NotFoundError


@pytest.fixture
def availability(db):
    return AvailabilityService(db)


WEEK = [
    {"day_of_week": 3, "start_time": "14:00", "end_time": "18:00"},
    {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
    {"day_of_week": 1, "start_time": "13:00", "end_time": "17:30"},
]


def test_save_and_read_back(availability, therapist):
    availability.save_availability(therapist, WEEK)

    rules = availability.get_availability(therapist.id)
    assert [(r.day_of_week, r.start_time, r.end_time) for r in rules] == [
        (1, time(9, 0), time(12, 0)),
        (1, time(13, 0), time(17, 30)),
        (3, time(14, 0), time(18, 0)),
    ]


def test_save_replaces_previous_schedule(availability, therapist):
    availability.save_availability(therapist, WEEK)
    availability.save_availability(therapist, [{"day_of_week": 5, "start_time": "10:00", "end_time": "11:00"}])

    rules = availability.get_availability(therapist.id)
    assert [(r.day_of_week, r.start_time) for r in rules] == [(5, time(10, 0))]


def test_empty_schedule_clears_everything(availability, therapist):
    availability.save_availability(therapist, WEEK)
    assert availability.save_availability(therapist, []) == []


def test_schedules_are_per_therapist(availability, therapist, other_therapist):
    availability.save_availability(therapist, WEEK)
    availability.save_availability(other_therapist, [])
    assert len(availability.get_availability(therapist.id)) == 3


@pytest.mark.parametrize(
    "rule",
    [
        {"day_of_week": 7, "start_time": "09:00", "end_time": "10:00"},
        {"day_of_week": -1, "start_time": "09:00", "end_time": "10:00"},
        {"day_of_week": 1, "start_time": "9am", "end_time": "10:00"},
        {"day_of_week": 1, "start_time": "25:00", "end_time": "26:00"},
        {"day_of_week": 1, "start_time": "10:00", "end_time": "10:00"},
        {"day_of_week": 1, "start_time": "11:00", "end_time": "10:00"},
    ],
)
def test_invalid_rule_rejected_and_schedule_kept(availability, therapist, rule):
    availability.save_availability(therapist, WEEK)
    with pytest.raises(InvalidInputError):
        availability.save_availability(therapist, [WEEK[0], rule])
    assert len(availability.get_availability(therapist.id)) == 3


def test_toggle_available(availability, therapist):
    assert therapist.is_available is True
    assert availability.toggle_available(therapist).is_available is False
    assert availability.toggle_available(therapist).is_available is True


class TestBlockedPeriods:
    def test_create_and_list_newest_first(self, availability, therapist):
        availability.create_blocked_period(therapist, date(2026, 11, 1), date(2026, 11, 3), "Retreat")
        availability.create_blocked_period(therapist, date(2026, 12, 24), date(2026, 12, 26))

        periods = availability.list_blocked_periods(therapist.id)
        assert [p.start_date for p in periods] == [date(2026, 12, 24), date(2026, 11, 1)]
        assert periods[1].reason == "Retreat"

    def test_single_day_period_allowed(self, availability, therapist):
        period = availability.create_blocked_period(therapist, date(2026, 11, 1), date(2026, 11, 1))
        assert period.id is not None

    def test_end_before_start_rejected(self, availability, therapist):
        with pytest.raises(InvalidInputError):
            availability.create_blocked_period(therapist, date(2026, 11, 3), date(2026, 11, 1))

    def test_delete_own_period(self, availability, therapist):
        period = availability.create_blocked_period(therapist, date(2026, 11, 1), date(2026, 11, 3))
        availability.delete_blocked_period(therapist, period.id)
        assert availability.list_blocked_periods(therapist.id) == []

    def test_cannot_delete_someone_elses_period(self, availability, therapist, other_therapist):
        period = availability.create_blocked_period(therapist, date(2026, 11, 1), date(2026, 11, 3))
        with pytest.raises(NotFoundError):
            availability.delete_blocked_period(other_therapist, period.id)
        assert len(availability.list_blocked_periods(therapist.id)) == 1
