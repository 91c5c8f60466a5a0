# storefront/routers/categories.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.category import CategoryRead, CategoryWrite
from storefront.schemas.common import ApiResponse, ok
from storefront.schemas.product import CategoryProducts, SortField, SortOrder
from storefront.services.category_service import CategoryService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/categories", tags=["Categories"])

category_repo = CategoryRepository()
product_repo = ProductRepository()
service = CategoryService(category_repo, product_repo)
product_service = ProductService(product_repo, category_repo)


# -------- Public endpoints --------


@router.get("", response_model=ApiResponse[list[CategoryRead]])
def list_categories(session: Session = Depends(get_session)):
    """
    Active categories ordered by sort_order.
    """
    return ok(service.list_categories(session))


@router.get("/featured", response_model=ApiResponse[list[CategoryRead]])
def list_featured_categories(session: Session = Depends(get_session)):
    return ok(service.list_categories(session, featured_only=True))


@router.get("/{slug}", response_model=ApiResponse[CategoryProducts])
def get_category(
    slug: str,
    session: Session = Depends(get_session),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    sort_by: SortField = "created_at",
    sort_order: SortOrder = "desc",
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=12, ge=1, le=100),
):
    """
    A category with one page of its active products.
    """
    category = service.get_by_slug(session, slug)
    return ok(
        product_service.list_by_category(
            session,
            category.slug,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            per_page=per_page,
        )
    )


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ApiResponse[CategoryRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryWrite,
    session: Session = Depends(get_session),
):
    return ok(service.create_category(session, payload), "Category created")


@router.put(
    "/{category_id}",
    response_model=ApiResponse[CategoryRead],
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryWrite,
    session: Session = Depends(get_session),
):
    return ok(service.update_category(session, category_id, payload), "Category updated")


@router.delete(
    "/{category_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a category (admin only). Its products become uncategorized.
    """
    service.delete_category(session, category_id)
    return ok(message="Category deleted")
