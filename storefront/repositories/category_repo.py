import uuid

from sqlmodel import Session, select

from storefront.models.category import Category


class CategoryRepository:

    def get_by_id(self, session: Session, category_id: uuid.UUID) -> Category | None:
        return session.get(Category, category_id)

    def get_by_slug(self, session: Session, slug: str) -> Category | None:
        stmt = select(Category).where(Category.slug == slug)
        return session.exec(stmt).first()

    def list(
        self,
        session: Session,
        only_active: bool = True,
        only_featured: bool = False,
    ) -> list[Category]:
        stmt = select(Category)
        if only_active:
            stmt = stmt.where(Category.is_active == True)  # noqa: E712
        if only_featured:
            stmt = stmt.where(Category.is_featured == True)  # noqa: E712
        stmt = stmt.order_by(Category.sort_order, Category.name)
        return list(session.exec(stmt).all())

    def save(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def delete(self, session: Session, category: Category) -> None:
        session.delete(category)
        session.commit()
