import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import SQLModel, Field


class CartItem(SQLModel, table=True):
    """
    Shopping cart line for a user.

    One user cannot have 2 rows for the same product with the same
    canonical attribute selection (`attributes_key`).
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "product_id",
            "attributes_key",
            name="uq_cart_items_user_product_attributes",
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        ondelete="CASCADE",
        index=True,
    )

    quantity: int = Field(description="Must be >= 1")

    # Canonical (recursively key-sorted) selection and its serialized form
    selected_attributes: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    attributes_key: str = Field(default="{}", index=True)

    unit_price: float = Field(description="Effective product price when last added")
    total_price: float = Field(description="unit_price * quantity")

    front_design_url: str | None = None
    back_design_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
