from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope for every successful response:

        {"success": true, "message": "...", "data": {...}}
    """

    success: bool = True
    message: str | None = None
    data: T | None = None


class Page(BaseModel, Generic[T]):
    """
    One page of a paginated listing.
    """

    items: list[T]
    total: int
    page: int
    per_page: int
    pages: int


def ok(data=None, message: str | None = None) -> dict:
    return {"success": True, "message": message, "data": data}
