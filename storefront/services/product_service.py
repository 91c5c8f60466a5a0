import math
import re
import secrets
import time
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.errors import validation_error
from storefront.core.storage_utils import (
    delete_public_url,
    upload_to_storage,
    validate_image,
)
from storefront.models.category import Category
from storefront.models.product import (
    Product,
    discount_percentage,
    effective_price,
    stock_status_for,
)
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.category import CategoryRead, CategorySummary
from storefront.schemas.common import Page
from storefront.schemas.product import (
    CategoryProducts,
    PriceRange,
    ProductCreate,
    ProductRead,
    ProductSummary,
    ProductUpdate,
    RelatedProducts,
)

# Upper bound used when a category has no active products yet
DEFAULT_MAX_PRICE = 10000.0

# Columns a partial update may not clear; an explicit null leaves them as they are
REQUIRED_PRODUCT_FIELDS = {
    "name",
    "price",
    "sku",
    "slug",
    "stock_quantity",
    "attributes",
    "is_featured",
    "is_active",
}


def slugify(raw: str, fallback: str = "item") -> str:
    """
    Basic slugification:
      - lowercase
      - non-alphanumeric -> '-'
      - collapse multiple '-'
      - strip leading/trailing '-'
    """
    value = raw.strip().lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)
    value = re.sub(r"-+", "-", value)
    value = value.strip("-")
    return value or fallback


def to_product_summary(product: Product, category: Category | None = None) -> ProductSummary:
    return ProductSummary(
        id=product.id,
        name=product.name,
        slug=product.slug,
        price=product.price,
        current_price=effective_price(product),
        featured_image_url=product.featured_image_url,
        category=category.name if category else None,
    )


def to_product_read(product: Product, category: Category | None = None) -> ProductRead:
    data = product.model_dump()
    data.update(
        current_price=effective_price(product),
        discount_percentage=discount_percentage(product),
        category=(
            CategorySummary(id=category.id, name=category.name, slug=category.slug)
            if category
            else None
        ),
    )
    return ProductRead(**data)


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - slug and sku generation & uniqueness
      - sale price vs. price rule, stock_status derivation
      - filtered / paginated listings
      - featured image upload orchestration with Supabase Storage
    """

    def __init__(self, repo: ProductRepository, category_repo: CategoryRepository):
        self.repo = repo
        self.category_repo = category_repo

    # ----- Helpers -----

    def _ensure_unique_slug(
        self,
        session: Session,
        base_slug: str,
        exclude_id: uuid.UUID | None = None,
    ) -> str:
        """
        Ensure slug is unique by appending -2, -3, ... if needed.
        """
        slug = base_slug
        i = 2
        while True:
            existing = self.repo.get_by_slug(session, slug)
            if existing is None or existing.id == exclude_id:
                return slug
            slug = f"{base_slug}-{i}"
            i += 1

    def _ensure_unique_sku(
        self,
        session: Session,
        sku: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        existing = self.repo.get_by_sku(session, sku)
        if existing is not None and existing.id != exclude_id:
            raise validation_error({"sku": ["The sku has already been taken."]})

    @staticmethod
    def _generate_sku() -> str:
        return f"PRD-{int(time.time())}-{secrets.randbelow(9000) + 1000}"

    def _require_category(self, session: Session, category_id: uuid.UUID | None) -> None:
        if category_id is not None and self.category_repo.get_by_id(session, category_id) is None:
            raise validation_error({"category_id": ["The selected category is invalid."]})

    def _categories_for(
        self,
        session: Session,
        products: list[Product],
    ) -> dict[uuid.UUID, Category]:
        found: dict[uuid.UUID, Category] = {}
        for cid in {p.category_id for p in products if p.category_id is not None}:
            category = self.category_repo.get_by_id(session, cid)
            if category is not None:
                found[cid] = category
        return found

    def build_reads(self, session: Session, products: list[Product]) -> list[ProductRead]:
        categories = self._categories_for(session, products)
        return [to_product_read(p, categories.get(p.category_id)) for p in products]

    def build_summaries(
        self,
        session: Session,
        products: list[Product],
    ) -> dict[uuid.UUID, ProductSummary]:
        categories = self._categories_for(session, products)
        return {p.id: to_product_summary(p, categories.get(p.category_id)) for p in products}

    def _page(
        self,
        session: Session,
        rows: list[Product],
        total: int,
        page: int,
        per_page: int,
    ) -> Page[ProductRead]:
        return Page[ProductRead](
            items=self.build_reads(session, rows),
            total=total,
            page=page,
            per_page=per_page,
            pages=math.ceil(total / per_page) if per_page else 0,
        )

    # ----- Listings -----

    def list_products(
        self,
        session: Session,
        *,
        category_id: uuid.UUID | None = None,
        category_slug: str | None = None,
        featured: bool | None = None,
        in_stock: bool | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        per_page: int = 12,
    ) -> Page[ProductRead]:
        """
        Public catalog listing (active products only).

        An unknown `category_slug` is ignored rather than rejected.
        """
        if category_slug:
            category = self.category_repo.get_by_slug(session, category_slug)
            if category is not None:
                category_id = category.id

        rows, total = self.repo.search(
            session,
            category_id=category_id,
            featured=featured,
            in_stock=in_stock,
            min_price=min_price,
            max_price=max_price,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=(page - 1) * per_page,
            limit=per_page,
        )
        return self._page(session, rows, total, page, per_page)

    def list_by_category(
        self,
        session: Session,
        category_slug: str,
        *,
        min_price: float | None = None,
        max_price: float | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        per_page: int = 12,
    ) -> CategoryProducts:
        category = self.category_repo.get_by_slug(session, category_slug)
        if category is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )

        rows, total = self.repo.search(
            session,
            category_id=category.id,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=(page - 1) * per_page,
            limit=per_page,
        )
        low, high = self.repo.price_range(session, category.id)

        return CategoryProducts(
            category=CategoryRead.model_validate(category),
            products=self._page(session, rows, total, page, per_page),
            price_range=PriceRange(
                min=float(low or 0.0),
                max=float(high if high is not None else DEFAULT_MAX_PRICE),
            ),
        )

    def get_by_slug(self, session: Session, slug: str) -> ProductRead:
        """
        Public product page. Counts a view on every hit.
        """
        product = self.repo.get_by_slug(session, slug, only_active=True)
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        self.repo.increment_views(session, product.id)
        session.refresh(product)
        return self.build_reads(session, [product])[0]

    def related(self, session: Session, slug: str, limit: int = 8) -> RelatedProducts:
        product = self.repo.get_by_slug(session, slug)
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        rows = self.repo.related(session, product, limit=limit)
        category = (
            self.category_repo.get_by_id(session, product.category_id)
            if product.category_id
            else None
        )
        return RelatedProducts(
            category=(
                CategorySummary(id=category.id, name=category.name, slug=category.slug)
                if category
                else None
            ),
            items=self.build_reads(session, rows),
        )

    # ----- Admin -----

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def create_product(self, session: Session, payload: ProductCreate) -> ProductRead:
        """
        Create a new product.

        - slug from payload.slug or name, made unique.
        - sku from payload or generated, must be unique.
        """
        self._require_category(session, payload.category_id)

        slug = self._ensure_unique_slug(
            session, slugify(payload.slug or payload.name, "product")
        )
        sku = payload.sku or self._generate_sku()
        self._ensure_unique_sku(session, sku)

        product = Product(
            category_id=payload.category_id,
            name=payload.name,
            slug=slug,
            description=payload.description,
            short_description=payload.short_description,
            price=payload.price,
            sale_price=payload.sale_price,
            sku=sku,
            stock_quantity=payload.stock_quantity,
            stock_status=stock_status_for(payload.stock_quantity),
            weight=payload.weight,
            dimensions=payload.dimensions,
            attributes=payload.attributes,
            is_featured=payload.is_featured,
            is_active=payload.is_active,
        )
        product = self.repo.save(session, product)
        return self.build_reads(session, [product])[0]

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> ProductRead:
        """
        Partial update of a product.

        - A renamed product without an explicit slug keeps its slug.
        - sale_price is checked against the resulting price.
        """
        product = self.get_product(session, product_id)
        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field not in REQUIRED_PRODUCT_FIELDS
        }

        if changes.get("category_id") is not None:
            self._require_category(session, changes["category_id"])

        price = changes.get("price") or product.price
        sale_price = changes.get("sale_price", product.sale_price)
        if sale_price is not None and sale_price >= price:
            raise validation_error(
                {"sale_price": ["Sale price must be less than regular price."]}
            )

        if changes.get("slug"):
            new_slug = slugify(changes.pop("slug"), "product")
            product.slug = self._ensure_unique_slug(session, new_slug, exclude_id=product.id)
        else:
            changes.pop("slug", None)

        if changes.get("sku"):
            self._ensure_unique_sku(session, changes["sku"], exclude_id=product.id)
        else:
            changes.pop("sku", None)

        for field, value in changes.items():
            setattr(product, field, value)

        product.stock_status = stock_status_for(product.stock_quantity)
        product = self.repo.save(session, product)
        return self.build_reads(session, [product])[0]

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        """
        Delete a product and its stored featured image.

        Cart lines and favorites go with it; order history keeps its
        snapshots.
        """
        product = self.get_product(session, product_id)
        if product.featured_image_url:
            delete_public_url(product.featured_image_url)
        self.repo.delete(session, product)

    def set_featured_image(
        self,
        session: Session,
        product_id: uuid.UUID,
        content_type: str | None,
        file_bytes: bytes,
    ) -> ProductRead:
        """
        Upload or replace the featured image for a product.

        Path pattern:
            products/<product_id>/featured.<ext>
        """
        product = self.get_product(session, product_id)
        ext = validate_image(content_type, file_bytes)

        if product.featured_image_url:
            delete_public_url(product.featured_image_url)

        path = f"products/{product.id}/featured.{ext}"
        product.featured_image_url = upload_to_storage(path, file_bytes, content_type)
        product = self.repo.save(session, product)
        return self.build_reads(session, [product])[0]
