import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session
from supabase import AuthApiError

from storefront.core.auth import CUSTOMER, profile_name
from storefront.core.supabase_client import supabase_public
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import AuthSession, LoginRequest, RegisterRequest, UserRead

logger = logging.getLogger(__name__)


class AuthService:
    """
    E-mail / password auth delegated to Supabase Auth.

    Supabase owns the credentials; this service mirrors the identity into
    the users table and hands the issued tokens back to the client.
    """

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    @staticmethod
    def _to_session(auth_session, user: User) -> AuthSession:
        if auth_session is None:
            return AuthSession(user=UserRead.model_validate(user))
        return AuthSession(
            access_token=auth_session.access_token,
            refresh_token=auth_session.refresh_token,
            token_type=auth_session.token_type or "bearer",
            expires_in=auth_session.expires_in,
            user=UserRead.model_validate(user),
        )

    def register(self, session: Session, payload: RegisterRequest) -> AuthSession:
        """
        Create the Supabase identity and its profile row.

        Tokens are only present when Supabase issues a session right away
        (e-mail confirmation disabled).
        """
        try:
            res = supabase_public().auth.sign_up(
                {
                    "email": payload.email,
                    "password": payload.password,
                    "options": {"data": {"name": payload.name}},
                }
            )
        except AuthApiError as e:
            logger.warning("Sign-up rejected for %s: %s", payload.email, e.message)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=e.message or "Registration failed",
            )

        if res.user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Registration failed",
            )

        user = self.user_repo.upsert_profile(
            session,
            user_id=uuid.UUID(str(res.user.id)),
            email=payload.email,
            name=payload.name,
        )
        logger.info("Registered user %s", user.id)
        return self._to_session(res.session, user)

    def login(self, session: Session, payload: LoginRequest) -> AuthSession:
        try:
            res = supabase_public().auth.sign_in_with_password(
                {"email": payload.email, "password": payload.password}
            )
        except AuthApiError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        if res.user is None or res.session is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        user_id = uuid.UUID(str(res.user.id))
        user = self.user_repo.get_by_id(session, user_id)
        if user is None:
            user = self.user_repo.save(
                session,
                User(
                    id=user_id,
                    email=payload.email,
                    name=profile_name(payload.email, res.user.user_metadata),
                    role=CUSTOMER,
                ),
            )
        return self._to_session(res.session, user)
