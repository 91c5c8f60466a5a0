import uuid

from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.models.cart import CartItem
from storefront.models.product import Product


class CartRepository:
    """
    Data access layer for cart lines.

    `clear_user_cart(commit=False)` lets order placement empty the cart
    inside its own transaction.

    Reads join `products`: a line whose product is gone is not part of
    the cart.
    """

    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def find_line(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        attributes_key: str,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
            CartItem.attributes_key == attributes_key,
        )
        return session.exec(stmt).first()

    def get_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> CartItem | None:
        item = session.get(CartItem, item_id)
        if item is None or item.user_id != user_id:
            return None
        return item

    def save(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_user_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        commit: bool = True,
    ) -> None:
        stmt = delete(CartItem).where(CartItem.user_id == user_id)
        session.exec(stmt)
        if commit:
            session.commit()

    def count_quantity(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.coalesce(func.sum(CartItem.quantity), 0))
            .select_from(CartItem)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.user_id == user_id)
        )
        return int(session.exec(stmt).one() or 0)

    def sum_total(self, session: Session, user_id: uuid.UUID) -> float:
        stmt = (
            select(func.coalesce(func.sum(CartItem.total_price), 0.0))
            .select_from(CartItem)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.user_id == user_id)
        )
        return float(session.exec(stmt).one() or 0.0)
