import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CategoryWrite(SQLModel):
    """
    Payload for creating or replacing a category.

    The slug is always derived from `name`.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    path: str = Field(max_length=255)
    description: str | None = None
    image_url: str | None = None
    icon: str | None = None
    sort_order: int = 0
    is_active: bool = True
    is_featured: bool = False

    @field_validator("name", "path")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    path: str
    description: str | None
    image_url: str | None
    icon: str | None
    sort_order: int
    is_active: bool
    is_featured: bool
    created_at: datetime


class CategorySummary(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
