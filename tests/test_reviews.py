from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.reviews import ReviewService
from app.models import COMPLETED, CONFIRMED, Review
from app.shared.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    UpstreamError,
)
from conftest import make_booking

SESSION = datetime(2026, 10, 12, 10, 0)


@pytest.fixture
def reviews(db):
    return ReviewService(db)


def completed_booking(db, client, therapist, offering, days_ago=7):
    start = SESSION - timedelta(days=days_ago)
    return make_booking(db, client, therapist, offering, start, status=COMPLETED,
                        completed_at=start + timedelta(hours=1))


def test_review_updates_therapist_rating(db, reviews, client_user, therapist, offering):
    booking = completed_booking(db, client_user, therapist, offering)

    review = reviews.create_review(client_user.id, booking.id, therapist.id, 4, comment="  Great hands  ")

    assert review.rating == 4
    assert review.comment == "Great hands"
    db.refresh(therapist)
    assert therapist.rating_avg == 4.0
    assert therapist.rating_count == 1


def test_average_rounds_half_up_to_one_decimal(db, reviews, client_user, therapist, offering):
    for days_ago, rating in zip((1, 2, 3, 4), (4, 5, 5, 5)):
        booking = completed_booking(db, client_user, therapist, offering, days_ago=days_ago)
        reviews.create_review(client_user.id, booking.id, therapist.id, rating)

    db.refresh(therapist)
    assert therapist.rating_avg == 4.8
    assert therapist.rating_count == 4


def test_private_reviews_do_not_count(db, reviews, client_user, therapist, offering):
    therapist.rating_avg = 4.5
    therapist.rating_count = 2
    db.commit()
    booking = completed_booking(db, client_user, therapist, offering)

    reviews.create_review(client_user.id, booking.id, therapist.id, 1, is_public=False)

    db.refresh(therapist)
    assert therapist.rating_avg == 4.5
    assert therapist.rating_count == 2


def test_failed_rating_update_discards_review(db, reviews, client_user, therapist, offering, monkeypatch):
    booking = completed_booking(db, client_user, therapist, offering)

    def fail(*args, **kwargs):
        raise OperationalError("UPDATE therapists", {}, Exception("database is locked"))

    monkeypatch.setattr(reviews.repo, "update_therapist_rating", fail)

    with pytest.raises(UpstreamError):
        reviews.create_review(client_user.id, booking.id, therapist.id, 5)
    assert db.query(Review).count() == 0
    db.refresh(therapist)
    assert therapist.rating_count == 0


def test_blank_comment_stored_as_null(db, reviews, client_user, therapist, offering):
    booking = completed_booking(db, client_user, therapist, offering)
    assert reviews.create_review(client_user.id, booking.id, therapist.id, 5, comment="   ").comment is None


class TestValidationOrder:
    def test_missing_booking(self, reviews, client_user, therapist):
        with pytest.raises(NotFoundError):
            reviews.create_review(client_user.id, 999, therapist.id, 5)

    def test_other_client_is_forbidden_even_with_bad_rating(self, db, reviews, client_user, other_client, therapist, offering):
        booking = completed_booking(db, client_user, therapist, offering)
        with pytest.raises(ForbiddenError):
            reviews.create_review(other_client.id, booking.id, therapist.id, 9)

    def test_booking_must_be_completed(self, db, reviews, client_user, therapist, offering):
        booking = make_booking(db, client_user, therapist, offering, SESSION, status=CONFIRMED)
        with pytest.raises(InvalidStateError):
            reviews.create_review(client_user.id, booking.id, therapist.id, 5)

    def test_second_review_conflicts(self, db, reviews, client_user, therapist, offering):
        booking = completed_booking(db, client_user, therapist, offering)
        reviews.create_review(client_user.id, booking.id, therapist.id, 5)
        with pytest.raises(ConflictError):
            reviews.create_review(client_user.id, booking.id, therapist.id, 0)

    @pytest.mark.parametrize("rating", [0, 6, True, 4.5, "5"])
    def test_rating_must_be_integer_one_to_five(self, db, reviews, client_user, therapist, offering, rating):
        booking = completed_booking(db, client_user, therapist, offering)
        with pytest.raises(InvalidInputError):
            reviews.create_review(client_user.id, booking.id, therapist.id, rating)

    def test_therapist_must_match_booking(self, db, reviews, client_user, therapist, other_therapist, offering):
        booking = completed_booking(db, client_user, therapist, offering)
        with pytest.raises(InvalidInputError):
            reviews.create_review(client_user.id, booking.id, other_therapist.id, 5)


def test_therapist_reviews_are_public_only(db, reviews, client_user, therapist, offering):
    public = completed_booking(db, client_user, therapist, offering, days_ago=2)
    private = completed_booking(db, client_user, therapist, offering, days_ago=3)
    reviews.create_review(client_user.id, public.id, therapist.id, 5, comment="Lovely")
    reviews.create_review(client_user.id, private.id, therapist.id, 2, is_public=False)

    listed = reviews.get_therapist_reviews(therapist.id)
    assert [r.booking_id for r in listed] == [public.id]


def test_private_booking_review_visible_to_author_only(db, reviews, client_user, other_client, therapist, offering):
    booking = completed_booking(db, client_user, therapist, offering)
    reviews.create_review(client_user.id, booking.id, therapist.id, 3, is_public=False)

    assert reviews.get_booking_review(booking.id, viewer_id=client_user.id) is not None
    assert reviews.get_booking_review(booking.id, viewer_id=other_client.id) is None


def test_pending_reviews(db, reviews, client_user, therapist, offering):
    reviewed = completed_booking(db, client_user, therapist, offering, days_ago=2)
    waiting = completed_booking(db, client_user, therapist, offering, days_ago=3)
    make_booking(db, client_user, therapist, offering, SESSION + timedelta(days=3), status=CONFIRMED)
    reviews.create_review(client_user.id, reviewed.id, therapist.id, 5)

    assert [b.id for b in reviews.get_pending_reviews(client_user.id)] == [waiting.id]
