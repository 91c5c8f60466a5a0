import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Banner(SQLModel, table=True):
    """
    Storefront banner.

      - type: hero | promo
      - position: left | right | full
    """

    __tablename__ = "banners"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    title: str = Field(max_length=255)
    subtitle: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price_text: str | None = Field(default=None, max_length=255)
    button_text: str = Field(default="Shop Now", max_length=100)
    button_link: str | None = Field(default=None, max_length=500)
    image_url: str | None = None

    type: str = Field(default="hero", index=True)
    position: str = Field(default="left")
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OfferBar(SQLModel, table=True):
    """
    Thin announcement strip shown above the header.

    Visible window is [start_date, end_date]; a missing bound is open.
    """

    __tablename__ = "offer_bars"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    message: str
    background_color: str = Field(default="#000000", max_length=7)
    text_color: str = Field(default="#ffffff", max_length=7)
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)
    start_date: datetime | None = None
    end_date: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
