import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from storefront.schemas.category import CategoryRead, CategorySummary
from storefront.schemas.common import Page

SortField = Literal["created_at", "price", "name", "views", "rating"]
SortOrder = Literal["asc", "desc"]


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - slug is optional: if omitted, generated from `name`.
    - sku is optional: if omitted, a PRD-... code is generated.
    - sale_price, when given, must be lower than price.
    """

    model_config = ConfigDict(extra="forbid")

    category_id: uuid.UUID | None = None
    name: str = Field(max_length=255)
    slug: str | None = None
    description: str = Field(min_length=1)
    short_description: str | None = Field(default=None, max_length=1000)
    price: float = Field(ge=0.01)
    sale_price: float | None = Field(default=None, ge=0)
    sku: str | None = Field(default=None, max_length=100)
    stock_quantity: int = Field(default=0, ge=0)
    weight: float | None = Field(default=None, ge=0)
    dimensions: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    is_featured: bool = False
    is_active: bool = True

    @field_validator("name", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("slug", "sku")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def sale_below_price(self):
        if self.sale_price is not None and self.sale_price >= self.price:
            raise ValueError("Sale price must be less than regular price.")
        return self


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    category_id: uuid.UUID | None = None
    name: str | None = Field(default=None, max_length=255)
    slug: str | None = None
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=1000)
    price: float | None = Field(default=None, ge=0.01)
    sale_price: float | None = Field(default=None, ge=0)
    sku: str | None = Field(default=None, max_length=100)
    stock_quantity: int | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, ge=0)
    dimensions: str | None = None
    attributes: dict[str, Any] | None = None
    featured_image_url: str | None = None
    is_featured: bool | None = None
    is_active: bool | None = None

    @field_validator("name", "slug", "sku")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients, with derived pricing fields.
    """

    id: uuid.UUID
    category_id: uuid.UUID | None
    category: CategorySummary | None = None
    name: str
    slug: str
    description: str | None
    short_description: str | None
    price: float
    sale_price: float | None
    current_price: float
    discount_percentage: int
    sku: str
    stock_quantity: int
    stock_status: str
    weight: float | None
    dimensions: str | None
    attributes: dict[str, Any]
    featured_image_url: str | None
    is_featured: bool
    is_active: bool
    views: int
    rating: float
    reviews_count: int
    created_at: datetime


class ProductSummary(SQLModel):
    """
    Compact product view nested in cart lines and order items.
    """

    id: uuid.UUID
    name: str
    slug: str
    price: float
    current_price: float
    featured_image_url: str | None
    category: str | None = None


class PriceRange(SQLModel):
    min: float
    max: float


class RelatedProducts(SQLModel):
    category: CategorySummary | None
    items: list[ProductRead]


class CategoryProducts(SQLModel):
    """
    One page of a category's products with its price range.
    """

    category: CategoryRead
    products: Page[ProductRead]
    price_range: PriceRange
