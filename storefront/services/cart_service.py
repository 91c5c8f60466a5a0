import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.core.attributes import attributes_key, canonicalize
from storefront.core.storage_utils import (
    delete_public_url,
    generate_filename,
    upload_to_storage,
    validate_image,
)
from storefront.models.cart import CartItem
from storefront.models.product import Product, effective_price
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
)
from storefront.services.product_service import ProductService

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - merge additions into an existing line when product and canonical
        attribute selection match
      - snapshot the product's effective price on every add
      - keep total_price = unit_price * quantity
      - hide lines whose product no longer exists
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        product_service: ProductService,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.product_service = product_service

    # ---- internal helpers ----

    def _get_valid_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is inactive",
            )
        return product

    def _get_owned_line(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> CartItem:
        item = self.cart_repo.get_for_user(session, user_id, item_id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cart item not found",
            )
        return item

    def _to_read(self, session: Session, item: CartItem) -> CartItemRead:
        products = self.product_repo.get_many(session, [item.product_id])
        summaries = self.product_service.build_summaries(session, list(products.values()))
        return CartItemRead(
            **item.model_dump(exclude={"user_id", "attributes_key", "updated_at"}),
            product=summaries.get(item.product_id),
        )

    @staticmethod
    def _touch(item: CartItem) -> None:
        item.total_price = round(item.unit_price * item.quantity, 2)
        item.updated_at = datetime.now(timezone.utc)

    # ---- public operations ----

    def get_cart_summary(self, session: Session, user_id: uuid.UUID) -> CartSummary:
        """
        Return the user's cart, newest line first.

        Lines pointing at a product that no longer exists are left out of
        the listing and of the totals.
        """
        items = self.cart_repo.list_for_user(session, user_id)
        products = self.product_repo.get_many(session, (it.product_id for it in items))
        summaries = self.product_service.build_summaries(session, list(products.values()))

        reads: list[CartItemRead] = []
        total = 0.0
        for it in items:
            if it.product_id not in products:
                continue
            total += it.total_price
            reads.append(
                CartItemRead(
                    **it.model_dump(exclude={"user_id", "attributes_key", "updated_at"}),
                    product=summaries[it.product_id],
                )
            )

        return CartSummary(items=reads, count=len(reads), total=round(total, 2))

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> tuple[CartItemRead, bool]:
        """
        Add a product to the user's cart.

        If a line for the same product and the same canonical attribute
        selection exists, its quantity grows, its unit price is refreshed
        to the product's current price and the total is recomputed.

        Returns:
            (the line, True if a new line was created)
        """
        product = self._get_valid_product(session, payload.product_id)
        selection = canonicalize(payload.selected_attributes or {})
        key = attributes_key(selection)
        unit_price = effective_price(product)

        existing = self.cart_repo.find_line(session, user_id, product.id, key)
        if existing:
            existing.quantity += payload.quantity
            existing.unit_price = unit_price
            self._touch(existing)
            return self._to_read(session, self.cart_repo.save(session, existing)), False

        item = CartItem(
            user_id=user_id,
            product_id=product.id,
            quantity=payload.quantity,
            selected_attributes=selection,
            attributes_key=key,
            unit_price=unit_price,
            total_price=round(unit_price * payload.quantity, 2),
        )
        try:
            item = self.cart_repo.save(session, item)
        except IntegrityError:
            # A concurrent request created the same line first; merge into it.
            session.rollback()
            existing = self.cart_repo.find_line(session, user_id, product.id, key)
            if existing is None:
                raise
            existing.quantity += payload.quantity
            existing.unit_price = unit_price
            self._touch(existing)
            return self._to_read(session, self.cart_repo.save(session, existing)), False

        return self._to_read(session, item), True

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartItemRead:
        """
        Set the quantity of a line; the stored unit price is kept.
        """
        item = self._get_owned_line(session, user_id, item_id)
        item.quantity = payload.quantity
        self._touch(item)
        return self._to_read(session, self.cart_repo.save(session, item))

    def remove_item(self, session: Session, user_id: uuid.UUID, item_id: uuid.UUID) -> None:
        item = self._get_owned_line(session, user_id, item_id)
        self.cart_repo.delete(session, item)

    def clear_cart(self, session: Session, user_id: uuid.UUID) -> None:
        self.cart_repo.clear_user_cart(session, user_id)

    def count(self, session: Session, user_id: uuid.UUID) -> int:
        return self.cart_repo.count_quantity(session, user_id)

    def total(self, session: Session, user_id: uuid.UUID) -> float:
        return round(self.cart_repo.sum_total(session, user_id), 2)

    def attach_designs(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
        front: tuple[str | None, bytes] | None,
        back: tuple[str | None, bytes] | None,
    ) -> CartItemRead:
        """
        Attach front/back print designs to a cart line.

        Both files are validated before anything is uploaded. A new upload
        replaces the previous design for that side.

        Path pattern:
            designs/<user_id>/<item_id>/<side>-<uuid>.<ext>
        """
        if front is None and back is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No design files uploaded",
            )

        item = self._get_owned_line(session, user_id, item_id)

        sides: list[tuple[str, str | None, bytes, str]] = []
        for side, upload in (("front", front), ("back", back)):
            if upload is None:
                continue
            content_type, file_bytes = upload
            ext = validate_image(content_type, file_bytes)
            sides.append((side, content_type, file_bytes, ext))

        uploaded: dict[str, str] = {}
        try:
            for side, content_type, file_bytes, ext in sides:
                path = f"designs/{user_id}/{item.id}/{side}-{generate_filename(ext)}"
                uploaded[side] = upload_to_storage(path, file_bytes, content_type)
        except Exception:
            logger.warning("Design upload failed for cart item %s", item.id)
            for url in uploaded.values():
                delete_public_url(url)
            raise

        replaced: list[str] = []
        for side, url in uploaded.items():
            attr = f"{side}_design_url"
            if getattr(item, attr):
                replaced.append(getattr(item, attr))
            setattr(item, attr, url)

        item.updated_at = datetime.now(timezone.utc)
        item = self.cart_repo.save(session, item)
        for url in replaced:
            delete_public_url(url)
        return self._to_read(session, item)
