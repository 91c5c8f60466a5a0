import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from storefront.schemas.product import ProductSummary


class FavoriteIn(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID


class FavoriteRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product: ProductSummary
    created_at: datetime


class FavoriteState(SQLModel):
    product_id: uuid.UUID
    is_favorite: bool


class FavoriteCount(SQLModel):
    count: int
