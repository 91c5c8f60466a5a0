import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Catalog category (visiting cards, t-shirts, mugs, ...).
    """

    __tablename__ = "categories"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=255)

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier derived from name",
    )

    path: str = Field(max_length=255, description="Storefront route for the category")
    description: str | None = None
    image_url: str | None = None
    icon: str | None = None

    sort_order: int = Field(default=0, index=True)
    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
