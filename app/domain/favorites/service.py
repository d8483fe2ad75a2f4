"""Favorites service - Therapists a client saved for later"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Favorite
from ...shared.errors import NotFoundError, is_unique_violation, upstream
from .repository import FavoritesRepository

logger = logging.getLogger(__name__)


class FavoritesService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = FavoritesRepository()

    def is_favorite(self, user_id: int, therapist_id: int) -> bool:
        return self.repo.get(self.db, user_id, therapist_id) is not None

    def add_favorite(self, user_id: int, therapist_id: int) -> bool:
        """Save a therapist; saving one twice is not an error"""
        if not self.repo.therapist_exists(self.db, therapist_id):
            raise NotFoundError("Therapist not found")
        try:
            self.repo.add(self.db, user_id, therapist_id)
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                logger.debug(f"Therapist {therapist_id} already a favorite of user {user_id}")
                return True
            raise upstream(e, "add the favorite") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "add the favorite") from e
        return True

    def remove_favorite(self, user_id: int, therapist_id: int) -> bool:
        try:
            self.repo.remove(self.db, user_id, therapist_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise upstream(e, "remove the favorite") from e
        return False

    def toggle_favorite(self, user_id: int, therapist_id: int) -> bool:
        """Flip the saved state; returns the new state"""
        if self.is_favorite(user_id, therapist_id):
            return self.remove_favorite(user_id, therapist_id)
        return self.add_favorite(user_id, therapist_id)

    def list_favorites(self, user_id: int) -> list[Favorite]:
        return self.repo.list_for_user(self.db, user_id)

    def count_favorites(self, user_id: int) -> int:
        return self.repo.count_for_user(self.db, user_id)
