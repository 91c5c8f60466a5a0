import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.core.attributes import canonicalize
from storefront.schemas.product import ProductSummary


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.

    `selected_attributes` is canonicalized on input (keys sorted at every
    nesting level), so key order sent by the client never matters.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(ge=1)
    selected_attributes: dict[str, Any] | None = None

    @field_validator("selected_attributes")
    @classmethod
    def canonical_attributes(cls, v: dict[str, Any] | None) -> dict[str, Any]:
        return canonicalize(v or {})


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(ge=1)


class CartItemRead(SQLModel):
    """
    Read model for a single cart line.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product: ProductSummary | None = None
    quantity: int
    selected_attributes: dict[str, Any]
    unit_price: float
    total_price: float
    front_design_url: str | None = None
    back_design_url: str | None = None
    created_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartItemRead]
    count: int
    total: float


class CartCount(SQLModel):
    count: int


class CartTotal(SQLModel):
    total: float
