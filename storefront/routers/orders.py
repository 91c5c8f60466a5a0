# storefront/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlmodel import Session

from storefront.core.auth import require_user, require_admin
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.complaint_repo import ComplaintRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import ApiResponse, ok
from storefront.schemas.complaint import (
    ComplaintRead,
    ComplaintStatus,
    ComplaintStatusUpdate,
)
from storefront.schemas.order import (
    OrderCreate,
    OrderStatus,
    OrderStatusUpdate,
    OrderWithItemsRead,
    PaymentStatus,
)
from storefront.services.complaint_service import ComplaintService
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = OrderService(
    order_repo,
    cart_repo,
    product_repo,
    ProductService(product_repo, CategoryRepository()),
)
complaint_service = ComplaintService(ComplaintRepository(), order_repo)


# -------- User-facing endpoints --------


@router.post(
    "",
    response_model=ApiResponse[OrderWithItemsRead],
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Place an order from explicit items, or from the cart when `items`
    is omitted.

    Auth:
      - Only role='user' (customer) can order.
    """
    return ok(service.place_order(session, current_user.id, payload), "Order placed successfully")


@router.get("", response_model=ApiResponse[list[OrderWithItemsRead]])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the authenticated user's orders, newest first, with items.
    """
    return ok(service.list_user_orders(session, current_user.id, skip, limit))


@router.post(
    "/raise-ticket",
    response_model=ApiResponse[ComplaintRead],
    status_code=status.HTTP_201_CREATED,
)
def raise_ticket(
    order_id: uuid.UUID = Form(...),
    product_id: uuid.UUID = Form(...),
    issue_type: str = Form(..., min_length=1, max_length=100),
    description: str = Form(..., min_length=10),
    images: list[UploadFile] | None = File(default=None),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Raise a complaint about a product of one of the user's orders.

    - Up to 5 JPEG/PNG images, 5MB each.
    - 404 if the order is not the user's or does not contain the product.
    """
    files = [(f.content_type, f.file.read()) for f in images or []]
    complaint = complaint_service.raise_ticket(
        session,
        current_user,
        order_id=order_id,
        product_id=product_id,
        issue_type=issue_type,
        description=description,
        images=files,
    )
    return ok(complaint, "Complaint submitted successfully")


# -------- Admin endpoints --------
# Fixed paths are declared before "/{order_id}".


@router.get(
    "/admin/all",
    response_model=ApiResponse[list[OrderWithItemsRead]],
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    payment_status: PaymentStatus | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List all orders (admin only), optionally filtered by status.
    """
    return ok(
        service.list_all_orders(
            session,
            status_filter=status_filter,
            payment_status=payment_status,
            skip=skip,
            limit=limit,
        )
    )


@router.get(
    "/complaints",
    response_model=ApiResponse[list[ComplaintRead]],
    dependencies=[Depends(require_admin)],
)
def list_complaints(
    session: Session = Depends(get_session),
    status_filter: ComplaintStatus | None = Query(default=None, alias="status"),
    skip: int = 0,
    limit: int = 50,
):
    return ok(complaint_service.list_complaints(session, status_filter, skip, limit))


@router.patch(
    "/complaints/{complaint_id}",
    response_model=ApiResponse[ComplaintRead],
    dependencies=[Depends(require_admin)],
)
def update_complaint(
    complaint_id: uuid.UUID,
    payload: ComplaintStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Move a complaint to a new status and optionally reply (admin only).
    """
    return ok(
        complaint_service.update_status(session, complaint_id, payload),
        "Complaint updated",
    )


@router.get("/{order_id}", response_model=ApiResponse[OrderWithItemsRead])
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return ok(service.get_user_order(session, current_user.id, order_id))


@router.patch(
    "/{order_id}/status",
    response_model=ApiResponse[OrderWithItemsRead],
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Admin-only: update order status and/or payment status.

    Cancelling an order puts its quantities back in stock.
    """
    return ok(service.update_status(session, order_id, payload), "Order updated")
