import uuid

from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.models.favorite import Favorite


class FavoriteRepository:

    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[Favorite]:
        stmt = (
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def get(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> Favorite | None:
        stmt = select(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.product_id == product_id,
        )
        return session.exec(stmt).first()

    def create(self, session: Session, favorite: Favorite) -> Favorite:
        session.add(favorite)
        session.commit()
        session.refresh(favorite)
        return favorite

    def delete(self, session: Session, favorite: Favorite) -> None:
        session.delete(favorite)
        session.commit()

    def count(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id)
        return int(session.exec(stmt).one() or 0)

    def clear(self, session: Session, user_id: uuid.UUID) -> None:
        session.exec(delete(Favorite).where(Favorite.user_id == user_id))
        session.commit()
