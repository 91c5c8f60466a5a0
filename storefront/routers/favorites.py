# storefront/routers/favorites.py
import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from storefront.core.auth import require_user
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.category_repo import CategoryRepository
from storefront.repositories.favorite_repo import FavoriteRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import ApiResponse, ok
from storefront.schemas.favorite import (
    FavoriteCount,
    FavoriteIn,
    FavoriteRead,
    FavoriteState,
)
from storefront.services.favorite_service import FavoriteService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/favorites", tags=["Favorites"])

product_repo = ProductRepository()
service = FavoriteService(
    FavoriteRepository(),
    product_repo,
    ProductService(product_repo, CategoryRepository()),
)


@router.get("", response_model=ApiResponse[list[FavoriteRead]])
def list_favorites(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return ok(service.list_favorites(session, current_user.id))


@router.post(
    "/add",
    response_model=ApiResponse[FavoriteRead],
    status_code=status.HTTP_201_CREATED,
)
def add_favorite(
    payload: FavoriteIn,
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    """
    Bookmark a product. Adding it twice keeps a single favorite (200).
    """
    favorite, created = service.add(session, current_user.id, payload.product_id)
    if not created:
        response.status_code = status.HTTP_200_OK
        return ok(favorite, "Product already in favorites")
    return ok(favorite, "Product added to favorites")


@router.post("/toggle", response_model=ApiResponse[FavoriteState])
def toggle_favorite(
    payload: FavoriteIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    state = service.toggle(session, current_user.id, payload.product_id)
    message = "Product added to favorites" if state.is_favorite else "Product removed from favorites"
    return ok(state, message)


@router.delete("/remove/{product_id}", response_model=ApiResponse[None])
def remove_favorite(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    service.remove(session, current_user.id, product_id)
    return ok(message="Product removed from favorites")


@router.get("/check/{product_id}", response_model=ApiResponse[FavoriteState])
def check_favorite(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return ok(service.check(session, current_user.id, product_id))


@router.get("/count", response_model=ApiResponse[FavoriteCount])
def count_favorites(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    return ok(FavoriteCount(count=service.count(session, current_user.id)))


@router.delete("/clear", response_model=ApiResponse[None])
def clear_favorites(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    service.clear(session, current_user.id)
    return ok(message="Favorites cleared")
