# storefront/routers/users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import require_auth, require_admin
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import ApiResponse, ok
from storefront.schemas.user import UserRead, UserUpdate, UserRoleUpdate
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ApiResponse[UserRead])
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return ok(current_user)


@router.patch("/me", response_model=ApiResponse[UserRead])
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Currently, only `name` is editable.
    """
    return ok(service.update_me(session, current_user, payload), "Profile updated")


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=ApiResponse[list[UserRead]],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    List all users (admin only).

    Pagination via skip/limit.
    """
    return ok(service.list_users(session, skip, limit))


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return ok(service.get_user(session, user_id))


@router.patch(
    "/{user_id}/role",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def change_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a user's role (admin only).

    Allowed roles: user, admin.
    Guests are anonymous and don't have rows.
    """
    return ok(service.update_role(session, user_id, payload), "Role updated")
