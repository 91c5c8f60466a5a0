# storefront/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import ApiResponse, Page, ok
from storefront.schemas.product import (
    CategoryProducts,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    RelatedProducts,
    SortField,
    SortOrder,
)
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo, CategoryRepository())


# -------- Public endpoints --------
# Fixed paths are declared before "/{slug}".


@router.get("", response_model=ApiResponse[Page[ProductRead]])
def list_products(
    session: Session = Depends(get_session),
    category_id: uuid.UUID | None = None,
    category_slug: str | None = None,
    featured: bool | None = None,
    in_stock: bool | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    search: str | None = Query(default=None, max_length=255),
    sort_by: SortField = "created_at",
    sort_order: SortOrder = "desc",
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=12, ge=1, le=100),
):
    """
    List active products.

    - Public endpoint.
    - `search` matches name, description and sku.
    """
    return ok(
        service.list_products(
            session,
            category_id=category_id,
            category_slug=category_slug,
            featured=featured,
            in_stock=in_stock,
            min_price=min_price,
            max_price=max_price,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            per_page=per_page,
        )
    )


@router.get("/featured", response_model=ApiResponse[list[ProductRead]])
def list_featured_products(
    session: Session = Depends(get_session),
    limit: int = Query(default=8, ge=1, le=50),
):
    page = service.list_products(session, featured=True, per_page=limit)
    return ok(page.items)


@router.get("/new-arrivals", response_model=ApiResponse[list[ProductRead]])
def list_new_arrivals(
    session: Session = Depends(get_session),
    limit: int = Query(default=8, ge=1, le=50),
):
    page = service.list_products(
        session, sort_by="created_at", sort_order="desc", per_page=limit
    )
    return ok(page.items)


@router.get("/category/{slug}", response_model=ApiResponse[CategoryProducts])
def list_products_by_category(
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
    One page of a category's products, with the category's price range.
    """
    return ok(
        service.list_by_category(
            session,
            slug,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            per_page=per_page,
        )
    )


@router.get("/{slug}", response_model=ApiResponse[ProductRead])
def get_product(
    slug: str,
    session: Session = Depends(get_session),
):
    """
    Get a single active product by slug.

    - Public endpoint.
    - Counts a view.
    """
    return ok(service.get_by_slug(session, slug))


@router.get("/{slug}/related", response_model=ApiResponse[RelatedProducts])
def get_related_products(
    slug: str,
    session: Session = Depends(get_session),
    limit: int = Query(default=8, ge=1, le=50),
):
    return ok(service.related(session, slug, limit=limit))


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ApiResponse[ProductRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only).
    """
    return ok(service.create_product(session, payload), "Product created")


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductRead],
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Update an existing product (admin only). Omitted fields are kept.
    """
    return ok(service.update_product(session, product_id, payload), "Product updated")


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a product and its featured image (admin only).
    """
    service.delete_product(session, product_id)
    return ok(message="Product deleted")


@router.post(
    "/{product_id}/featured-image",
    response_model=ApiResponse[ProductRead],
    dependencies=[Depends(require_admin)],
    summary="Upload or replace the featured image of a product",
)
def upload_featured_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    Upload a new featured image for the product.

    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Replaces any previous featured image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return ok(
        service.set_featured_image(
            session=session,
            product_id=product_id,
            content_type=file.content_type,
            file_bytes=file_bytes,
        ),
        "Image uploaded",
    )
