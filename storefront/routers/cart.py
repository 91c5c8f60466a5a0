# storefront/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlmodel import Session

from storefront.core.auth import require_user
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartCount,
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
    CartTotal,
)
from storefront.schemas.common import ApiResponse, ok
from storefront.services.cart_service import CartService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo, ProductService(product_repo, CategoryRepository()))


def _read_upload(upload: UploadFile | None) -> tuple[str | None, bytes] | None:
    if upload is None:
        return None
    return upload.content_type, upload.file.read()


@router.get("", response_model=ApiResponse[CartSummary])
def get_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Get current user's cart, newest line first.

    Auth:
      - Only role='user' (customer) can access.
      - Admins are forbidden.
    """
    return ok(service.get_cart_summary(session, current_user.id))


@router.post(
    "",
    response_model=ApiResponse[CartItemRead],
    status_code=status.HTTP_201_CREATED,
)
def add_to_cart(
    payload: CartItemCreate,
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Add product to the current user's cart.

    201 when a new line is created, 200 when merged into an existing line
    with the same attribute selection.
    """
    item, created = service.add_to_cart(session, current_user.id, payload)
    if not created:
        response.status_code = status.HTTP_200_OK
        return ok(item, "Cart updated")
    return ok(item, "Product added to cart")


@router.get("/count", response_model=ApiResponse[CartCount])
def cart_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Total number of units in the cart.
    """
    return ok(CartCount(count=service.count(session, current_user.id)))


@router.get("/total", response_model=ApiResponse[CartTotal])
def cart_total(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return ok(CartTotal(total=service.total(session, current_user.id)))


@router.post("/{item_id}/designs", response_model=ApiResponse[CartItemRead])
def upload_designs(
    item_id: uuid.UUID,
    front_design: UploadFile | None = File(default=None),
    back_design: UploadFile | None = File(default=None),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Attach front and/or back print designs to a cart line.

    - Accepts JPEG, PNG, WEBP up to 5MB each.
    """
    front = _read_upload(front_design)
    back = _read_upload(back_design)
    return ok(
        service.attach_designs(session, current_user.id, item_id, front, back),
        "Designs uploaded",
    )


@router.put("/update/{item_id}", response_model=ApiResponse[CartItemRead])
def update_cart_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Set the quantity of a cart line.
    """
    return ok(
        service.update_quantity(
            session=session,
            user_id=current_user.id,
            item_id=item_id,
            payload=payload,
        ),
        "Cart updated",
    )


@router.delete("/remove/{item_id}", response_model=ApiResponse[None])
def remove_cart_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    service.remove_item(session, current_user.id, item_id)
    return ok(message="Item removed from cart")


@router.delete("/clear", response_model=ApiResponse[None])
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Clear the entire cart.
    """
    service.clear_cart(session, current_user.id)
    return ok(message="Cart cleared")
