import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Column
from sqlmodel import SQLModel, Field

IN_STOCK = "in_stock"
OUT_OF_STOCK = "out_of_stock"


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    `stock_status` is derived from `stock_quantity` and must be kept in sync
    on every write (see `stock_status_for`).
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    description: str | None = None
    short_description: str | None = None

    price: float = Field(description="Regular unit price")
    sale_price: float | None = Field(
        default=None,
        description="Promotional price, lower than price when set",
    )

    sku: str = Field(max_length=100, unique=True, index=True)

    stock_quantity: int = Field(
        default=0,
        description="How many units currently in stock",
    )
    stock_status: str = Field(default=OUT_OF_STOCK, index=True)

    weight: float | None = None
    dimensions: str | None = None

    # Option map offered to buyers, e.g. {"size": ["S", "M"], "color": [...]}
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    featured_image_url: str | None = None

    is_featured: bool = Field(default=False, index=True)
    is_active: bool = Field(default=True, index=True)

    views: int = Field(default=0)
    rating: float = Field(default=0.0)
    reviews_count: int = Field(default=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


def stock_status_for(quantity: int) -> str:
    return IN_STOCK if quantity > 0 else OUT_OF_STOCK


def effective_price(product: Product) -> float:
    """Sale price when present and lower than the regular price."""
    if product.sale_price is not None and product.sale_price < product.price:
        return product.sale_price
    return product.price


def discount_percentage(product: Product) -> int:
    if product.sale_price is not None and product.price and product.sale_price < product.price:
        return round((product.price - product.sale_price) / product.price * 100)
    return 0
