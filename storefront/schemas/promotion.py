import re
import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

BannerType = Literal["hero", "promo"]
BannerPosition = Literal["left", "right", "full"]

HEX_COLOR = r"#[0-9a-fA-F]{6}"


# ---- Banners ----


class BannerCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=255)
    subtitle: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price_text: str | None = Field(default=None, max_length=255)
    button_text: str = Field(default="Shop Now", max_length=100)
    button_link: str | None = Field(default=None, max_length=500)
    type: BannerType = "hero"
    position: BannerPosition = "left"
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("title", "button_text")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class BannerUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=255)
    subtitle: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price_text: str | None = Field(default=None, max_length=255)
    button_text: str | None = Field(default=None, max_length=100)
    button_link: str | None = Field(default=None, max_length=500)
    type: BannerType | None = None
    position: BannerPosition | None = None
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class BannerRead(SQLModel):
    id: uuid.UUID
    title: str
    subtitle: str | None
    description: str | None
    price_text: str | None
    button_text: str
    button_link: str | None
    image_url: str | None
    type: BannerType
    position: BannerPosition
    sort_order: int
    is_active: bool
    created_at: datetime


# ---- Offer bars ----


def _naive_utc(v: datetime | None) -> datetime | None:
    # Columns are timezone-naive UTC.
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone(timezone.utc).replace(tzinfo=None)


class OfferBarWrite(SQLModel):
    """
    Payload for creating or replacing an offer bar.

    end_date must not precede start_date.
    """

    model_config = ConfigDict(extra="forbid")

    message: str
    background_color: str = "#000000"
    text_color: str = "#ffffff"
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None

    @field_validator("message")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message cannot be empty")
        return v

    @field_validator("background_color", "text_color")
    @classmethod
    def hex_color(cls, v: str) -> str:
        if not re.fullmatch(HEX_COLOR, v):
            raise ValueError("must be a hex colour like #1a2b3c")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class OfferBarRead(SQLModel):
    id: uuid.UUID
    message: str
    background_color: str
    text_color: str
    sort_order: int
    is_active: bool
    start_date: datetime | None
    end_date: datetime | None
    created_at: datetime
