import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order (cash-on-delivery).

    Tax and shipping are stored for completeness but are always zero.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    order_number: str = Field(unique=True, index=True, max_length=32)
    invoice_id: str = Field(unique=True, max_length=32)
    transaction_id: str = Field(unique=True, max_length=32)

    # pending | processing | shipped | delivered | cancelled
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    # pending | paid | failed | refunded
    payment_status: str = Field(default="pending", index=True)
    payment_method: str

    subtotal: float
    tax: float = 0.0
    shipping: float = 0.0
    total: float

    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_zip: str
    shipping_country: str
    phone: str
    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    `product_name` and `price` are snapshots taken at purchase time and
    never follow later product edits.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="products.id",
        ondelete="SET NULL",
        index=True,
    )

    product_name: str
    price: float = Field(description="Unit price at time of order")
    quantity: int = Field(description="Quantity ordered (>=1)")
    subtotal: float
