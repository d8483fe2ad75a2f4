"""Favorites repository - Database operations for saved therapists"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Favorite, Therapist


class FavoritesRepository:
    """Repository for favorite database operations"""

    @staticmethod
    def get(db: Session, user_id: int, therapist_id: int) -> Optional[Favorite]:
        return (
            db.query(Favorite)
            .filter(Favorite.user_id == user_id, Favorite.therapist_id == therapist_id)
            .first()
        )

    @staticmethod
    def add(db: Session, user_id: int, therapist_id: int) -> Favorite:
        favorite = Favorite(user_id=user_id, therapist_id=therapist_id)
        db.add(favorite)
        db.commit()
        db.refresh(favorite)
        return favorite

    @staticmethod
    def remove(db: Session, user_id: int, therapist_id: int) -> int:
        deleted = (
            db.query(Favorite)
            .filter(Favorite.user_id == user_id, Favorite.therapist_id == therapist_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> list[Favorite]:
        return (
            db.query(Favorite)
            .options(joinedload(Favorite.therapist).joinedload(Therapist.user))
            .filter(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .all()
        )

    @staticmethod
    def count_for_user(db: Session, user_id: int) -> int:
        return db.query(Favorite).filter(Favorite.user_id == user_id).count()

    @staticmethod
    def therapist_exists(db: Session, therapist_id: int) -> bool:
        return db.query(Therapist.id).filter(Therapist.id == therapist_id).first() is not None
