# storefront/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.database import get_session
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import ApiResponse, ok
from storefront.schemas.user import AuthSession, LoginRequest, RegisterRequest
from storefront.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

service = AuthService(UserRepository())


@router.post(
    "/register",
    response_model=ApiResponse[AuthSession],
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
):
    """
    Create an account (Supabase Auth) and its profile row.
    """
    return ok(service.register(session, payload), "Registration successful")


@router.post("/login", response_model=ApiResponse[AuthSession])
def login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
):
    """
    Exchange e-mail and password for a Supabase access token.
    """
    return ok(service.login(session, payload), "Login successful")
