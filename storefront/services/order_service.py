import logging
import secrets
import string
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product, effective_price
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from storefront.services.product_service import ProductService

logger = logging.getLogger(__name__)

# Tax and shipping are not charged (cash on delivery, flat pricing)
TAX_AMOUNT = 0.0
SHIPPING_AMOUNT = 0.0

_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Allowed order status transitions; delivered / cancelled are final
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def _random_code(length: int = 10) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{_random_code(6)}"


def generate_invoice_id() -> str:
    return f"INV-{_random_code()}"


def generate_transaction_id() -> str:
    return f"TXN-{_random_code()}"


def insufficient_stock(product_name: str, available: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Insufficient stock for {product_name}. Available: {available}",
    )


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Place an order from explicit items or from the cart
      - Validate stock under row locks and decrement it atomically
      - Snapshot product name and price into order items
      - Clear the cart in the same transaction
      - Admin status transitions (cancelling restocks)
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        product_service: ProductService,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.product_service = product_service

    # -------- User-facing operations --------

    def _requested_lines(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: OrderCreate,
    ) -> dict[uuid.UUID, int]:
        """
        (product_id -> quantity) to order, in request order.

        Repeated products are combined so the stock check sees the full
        quantity. Cart lines whose product is gone are not ordered.
        """
        if payload.items:
            pairs = [(line.product_id, line.quantity) for line in payload.items]
        else:
            pairs = [
                (ci.product_id, ci.quantity)
                for ci in self.cart_repo.list_for_user(session, user_id)
            ]

        if not pairs:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        lines: dict[uuid.UUID, int] = {}
        for product_id, quantity in pairs:
            lines[product_id] = lines.get(product_id, 0) + quantity
        return lines

    def place_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: OrderCreate,
    ) -> OrderWithItemsRead:
        """
        Convert requested items (or the cart) into an Order.

        Steps, all in one transaction:
          1. Lock each product row and check it exists, is active and has
             enough stock.
          2. Price each line at the product's effective price.
          3. Create the Order (pending / payment pending) and its items.
          4. Decrement stock with a conditional UPDATE per product.
          5. Clear the user's cart.
          6. Commit.

        Any failure rolls everything back: no order row, no stock change,
        cart untouched.
        """
        try:
            lines = self._requested_lines(session, user_id, payload)

            # 1-2) Lock, validate, price
            priced: list[tuple[Product, int, float]] = []
            subtotal = 0.0
            for product_id, quantity in lines.items():
                product = self.product_repo.lock_by_id(session, product_id)
                if product is None:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail="Product not found",
                    )
                if not product.is_active:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"{product.name} is no longer available",
                    )
                if quantity > product.stock_quantity:
                    logger.warning(
                        "Order rejected for user %s: %s requested %d, available %d",
                        user_id,
                        product.name,
                        quantity,
                        product.stock_quantity,
                    )
                    raise insufficient_stock(product.name, product.stock_quantity)

                price = effective_price(product)
                subtotal += price * quantity
                priced.append((product, quantity, price))

            subtotal = round(subtotal, 2)
            settings = get_settings()

            # 3) Order + items
            order = Order(
                user_id=user_id,
                order_number=generate_order_number(),
                invoice_id=generate_invoice_id(),
                transaction_id=generate_transaction_id(),
                status="pending",
                payment_status="pending",
                payment_method=payload.payment_method,
                subtotal=subtotal,
                tax=TAX_AMOUNT,
                shipping=SHIPPING_AMOUNT,
                total=round(subtotal + TAX_AMOUNT + SHIPPING_AMOUNT, 2),
                shipping_address=payload.shipping_address,
                shipping_city=payload.shipping_city,
                shipping_state=payload.shipping_state,
                shipping_zip=payload.shipping_zip,
                shipping_country=payload.shipping_country or settings.DEFAULT_SHIPPING_COUNTRY,
                phone=payload.phone,
                notes=payload.notes,
            )
            order = self.order_repo.create_order(session, order)

            items = [
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    product_name=product.name,
                    price=price,
                    quantity=quantity,
                    subtotal=round(price * quantity, 2),
                )
                for product, quantity, price in priced
            ]
            items = self.order_repo.create_items(session, items)

            # 4) Stock; the UPDATE re-checks availability in the database
            for product, quantity, _ in priced:
                if not self.product_repo.decrement_stock(session, product.id, quantity):
                    session.refresh(product)
                    raise insufficient_stock(product.name, product.stock_quantity)

            # 5) Cart
            self.cart_repo.clear_user_cart(session, user_id, commit=False)

            # 6) Commit
            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info(
            "Order %s placed by user %s (%d items, total %.2f)",
            order.order_number,
            user_id,
            len(items),
            order.total,
        )
        session.refresh(order)
        for item in items:
            session.refresh(item)
        return self._build_order_with_items_dto(session, order, items)

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        orders = self.order_repo.list_for_user(session, user_id, skip, limit)
        return self._build_many(session, orders)

    def get_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        """
        404 if order not found or does not belong to this user.
        """
        order = self.order_repo.get_for_user(session, user_id, order_id)
        if order is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(session, order, items)

    # -------- Admin operations --------

    def list_all_orders(
        self,
        session: Session,
        status_filter: str | None = None,
        payment_status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        orders = self.order_repo.list_all(
            session,
            status=status_filter,
            payment_status=payment_status,
            skip=skip,
            limit=limit,
        )
        return self._build_many(session, orders)

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderWithItemsRead:
        """
        Admin-only status update with simple state machine:

          pending    -> processing, cancelled
          processing -> shipped, cancelled
          shipped    -> delivered
          delivered  -> (final)
          cancelled  -> (final)

        Cancelling puts the ordered quantities back in stock. Payment
        status can be set freely.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        items = self.order_repo.list_items_for_order(session, order.id)

        try:
            new = payload.status
            if new is not None and new != order.status:
                if new not in ALLOWED_TRANSITIONS.get(order.status, set()):
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"Invalid status transition: {order.status} -> {new}",
                    )
                if new == "cancelled":
                    for item in items:
                        if item.product_id is not None:
                            self.product_repo.increment_stock(
                                session, item.product_id, item.quantity
                            )
                order.status = new

            if payload.payment_status is not None:
                order.payment_status = payload.payment_status

            order.updated_at = datetime.now(timezone.utc)
            self.order_repo.update_order(session, order)
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(order)
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(session, order, items)

    # -------- Helper DTO builders --------

    def _build_many(self, session: Session, orders: list[Order]) -> list[OrderWithItemsRead]:
        grouped = self.order_repo.list_items_for_orders(session, [o.id for o in orders])
        return [self._build_order_with_items_dto(session, o, grouped[o.id]) for o in orders]

    def _build_order_with_items_dto(
        self,
        session: Session,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead, fetching current product details
        explicitly. Prices come from the item snapshots only.
        """
        products = self.product_repo.get_many(session, (it.product_id for it in items))
        summaries = self.product_service.build_summaries(session, list(products.values()))

        item_dtos = [
            OrderItemRead(
                **it.model_dump(),
                product=summaries.get(it.product_id),
            )
            for it in items
        ]
        return OrderWithItemsRead(**order.model_dump(), items=item_dtos)
