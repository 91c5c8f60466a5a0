import uuid
from typing import Iterable

from sqlalchemy import case, func, or_, update
from sqlmodel import Session, select

from storefront.models.product import IN_STOCK, OUT_OF_STOCK, Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - Stock changes go through conditional UPDATE statements so that
      concurrent writers can never push stock below zero.
    """

    # ----- Lookups -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(
        self,
        session: Session,
        slug: str,
        only_active: bool = False,
    ) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        return session.exec(stmt).first()

    def get_by_sku(self, session: Session, sku: str) -> Product | None:
        stmt = select(Product).where(Product.sku == sku)
        return session.exec(stmt).first()

    def get_many(
        self,
        session: Session,
        product_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        """Fetch several products at once, keyed by id. Missing ids are absent."""
        ids = {pid for pid in product_ids if pid is not None}
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def lock_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        """
        SELECT ... FOR UPDATE, refreshing any copy already in the session.

        Row locks are a no-op on SQLite; the conditional decrement below still
        guards the stock invariant there.
        """
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    # ----- Listings -----

    def search(
        self,
        session: Session,
        *,
        category_id: uuid.UUID | None = None,
        featured: bool | None = None,
        in_stock: bool | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 12,
        only_active: bool = True,
    ) -> tuple[list[Product], int]:
        """
        Filtered, sorted, paginated product listing.

        Returns:
            (rows for the requested page, total matching rows)
        """
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        if featured:
            stmt = stmt.where(Product.is_featured == True)  # noqa: E712
        if in_stock:
            stmt = stmt.where(
                Product.stock_status == IN_STOCK,
                Product.stock_quantity > 0,
            )
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = int(session.exec(count_stmt).one() or 0)

        column = getattr(Product, sort_by)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        stmt = stmt.order_by(ordering, Product.id).offset(skip).limit(limit)

        return list(session.exec(stmt).all()), total

    def related(
        self,
        session: Session,
        product: Product,
        limit: int = 8,
    ) -> list[Product]:
        """Active products of the same category, excluding `product`."""
        if product.category_id is None:
            return []
        stmt = (
            select(Product)
            .where(
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active == True,  # noqa: E712
            )
            .order_by(func.random())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def price_range(
        self,
        session: Session,
        category_id: uuid.UUID,
    ) -> tuple[float | None, float | None]:
        stmt = select(func.min(Product.price), func.max(Product.price)).where(
            Product.category_id == category_id,
            Product.is_active == True,  # noqa: E712
        )
        low, high = session.exec(stmt).one()
        return low, high

    # ----- Writes -----

    def save(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()

    def detach_category(self, session: Session, category_id: uuid.UUID) -> None:
        """Unlink products from a category that is about to be deleted (no commit)."""
        stmt = (
            update(Product)
            .where(Product.category_id == category_id)
            .values(category_id=None)
        )
        session.exec(stmt)

    def increment_views(self, session: Session, product_id: uuid.UUID) -> None:
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(views=Product.views + 1)
        )
        session.exec(stmt)
        session.commit()

    # ----- Stock (no commit; callers own the transaction) -----

    def decrement_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Atomically take `quantity` units out of stock.

        The UPDATE only matches while enough stock remains, so two
        concurrent orders for the last unit cannot both succeed.

        Returns:
            True if the row was updated, False if stock was insufficient.
        """
        remaining = Product.stock_quantity - quantity
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(
                stock_quantity=remaining,
                stock_status=case((remaining > 0, IN_STOCK), else_=OUT_OF_STOCK),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        return result.rowcount == 1

    def increment_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> None:
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock_quantity=Product.stock_quantity + quantity,
                stock_status=IN_STOCK,
            )
            .execution_options(synchronize_session=False)
        )
        session.exec(stmt)
