import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from storefront.schemas.product import ProductSummary

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class OrderLineIn(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(ge=1)


class OrderCreate(SQLModel):
    """
    Payload for placing an order.

    - items: explicit (product, quantity) pairs. When omitted, the
      current cart is ordered.
    - shipping_country defaults to the configured country.

    Backend derives:
      - user_id from token
      - status = 'pending', payment_status = 'pending' (cash on delivery)
      - prices and totals from current product prices
    """

    model_config = ConfigDict(extra="forbid")

    items: list[OrderLineIn] | None = Field(default=None, min_length=1)
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_zip: str
    shipping_country: str | None = None
    phone: str
    payment_method: str
    notes: str | None = None

    @field_validator(
        "shipping_address",
        "shipping_city",
        "shipping_state",
        "shipping_zip",
        "phone",
        "payment_method",
    )
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("shipping_country", "notes")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.

    `product` is None when the product has since been deleted; the
    snapshot fields remain.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID | None
    product_name: str
    price: float
    quantity: int
    subtotal: float
    product: ProductSummary | None = None


class OrderRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    order_number: str
    invoice_id: str
    transaction_id: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    subtotal: float
    tax: float
    shipping: float
    total: float
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_zip: str
    shipping_country: str
    phone: str
    notes: str | None
    created_at: datetime
    updated_at: datetime


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order and/or payment status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None

    @model_validator(mode="after")
    def at_least_one(self):
        if self.status is None and self.payment_status is None:
            raise ValueError("status or payment_status is required")
        return self
