import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.models.category import Category
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.category import CategoryWrite
from storefront.services.product_service import slugify


class CategoryService:
    """
    Category CRUD. Slugs are derived from the name and kept unique.
    """

    def __init__(self, repo: CategoryRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def _unique_slug(
        self,
        session: Session,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> str:
        base = slugify(name, "category")
        slug = base
        i = 2
        while True:
            existing = self.repo.get_by_slug(session, slug)
            if existing is None or existing.id == exclude_id:
                return slug
            slug = f"{base}-{i}"
            i += 1

    def list_categories(self, session: Session, featured_only: bool = False) -> list[Category]:
        return self.repo.list(session, only_active=True, only_featured=featured_only)

    def get_by_slug(self, session: Session, slug: str) -> Category:
        category = self.repo.get_by_slug(session, slug)
        if category is None or not category.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )
        return category

    def get_category(self, session: Session, category_id: uuid.UUID) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if category is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )
        return category

    def create_category(self, session: Session, payload: CategoryWrite) -> Category:
        category = Category(
            **payload.model_dump(),
            slug=self._unique_slug(session, payload.name),
        )
        return self.repo.save(session, category)

    def update_category(
        self,
        session: Session,
        category_id: uuid.UUID,
        payload: CategoryWrite,
    ) -> Category:
        category = self.get_category(session, category_id)
        for field, value in payload.model_dump().items():
            setattr(category, field, value)
        category.slug = self._unique_slug(session, payload.name, exclude_id=category.id)
        return self.repo.save(session, category)

    def delete_category(self, session: Session, category_id: uuid.UUID) -> None:
        """
        Delete a category; its products stay in the catalog uncategorized.
        """
        category = self.get_category(session, category_id)
        self.product_repo.detach_category(session, category.id)
        self.repo.delete(session, category)
