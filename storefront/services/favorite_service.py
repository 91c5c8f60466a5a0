import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.models.favorite import Favorite
from storefront.repositories.favorite_repo import FavoriteRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.favorite import FavoriteRead, FavoriteState
from storefront.services.product_service import ProductService


class FavoriteService:
    """
    Per-user set of bookmarked products.

    Adding an already bookmarked product is a no-op.
    """

    def __init__(
        self,
        repo: FavoriteRepository,
        product_repo: ProductRepository,
        product_service: ProductService,
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.product_service = product_service

    def _require_product(self, session: Session, product_id: uuid.UUID) -> None:
        if self.product_repo.get_by_id(session, product_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )

    def _build(self, session: Session, favorites: list[Favorite]) -> list[FavoriteRead]:
        products = self.product_repo.get_many(session, (f.product_id for f in favorites))
        summaries = self.product_service.build_summaries(session, list(products.values()))
        return [
            FavoriteRead(
                id=f.id,
                product_id=f.product_id,
                product=summaries[f.product_id],
                created_at=f.created_at,
            )
            for f in favorites
            if f.product_id in summaries
        ]

    def list_favorites(self, session: Session, user_id: uuid.UUID) -> list[FavoriteRead]:
        return self._build(session, self.repo.list_for_user(session, user_id))

    def add(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> tuple[FavoriteRead, bool]:
        """
        Returns:
            (the favorite, True if it was newly created)
        """
        self._require_product(session, product_id)

        existing = self.repo.get(session, user_id, product_id)
        if existing is not None:
            return self._build(session, [existing])[0], False

        try:
            favorite = self.repo.create(
                session, Favorite(user_id=user_id, product_id=product_id)
            )
        except IntegrityError:
            session.rollback()
            existing = self.repo.get(session, user_id, product_id)
            if existing is None:
                raise
            return self._build(session, [existing])[0], False

        return self._build(session, [favorite])[0], True

    def toggle(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> FavoriteState:
        existing = self.repo.get(session, user_id, product_id)
        if existing is not None:
            self.repo.delete(session, existing)
            return FavoriteState(product_id=product_id, is_favorite=False)

        self.add(session, user_id, product_id)
        return FavoriteState(product_id=product_id, is_favorite=True)

    def remove(self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID) -> None:
        existing = self.repo.get(session, user_id, product_id)
        if existing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product is not in favorites",
            )
        self.repo.delete(session, existing)

    def check(self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID) -> FavoriteState:
        return FavoriteState(
            product_id=product_id,
            is_favorite=self.repo.get(session, user_id, product_id) is not None,
        )

    def count(self, session: Session, user_id: uuid.UUID) -> int:
        return self.repo.count(session, user_id)

    def clear(self, session: Session, user_id: uuid.UUID) -> None:
        self.repo.clear(session, user_id)
