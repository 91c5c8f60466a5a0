# storefront/core/auth.py
"""
Request identity for the storefront API.

Supabase Auth issues the access tokens; this module turns a bearer token
into a row of the users table. Two kinds of account exist:

  - customers (role "user") shop: cart, favorites, orders, complaints
  - admins manage the catalog, promotions, orders and users, and never
    shop on their own account
"""

import logging
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

settings = get_settings()

CUSTOMER = "user"
ADMIN = "admin"

# Guests get None instead of an immediate 401
bearer_scheme = HTTPBearer(auto_error=False)

user_repo = UserRepository()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of a Supabase access token.

    The audience claim is not checked.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def profile_name(email: str, metadata: dict[str, Any] | None = None) -> str:
    """
    Display name for a new profile.

    The name given at sign-up (Supabase user metadata) wins; otherwise
    the local part of the e-mail address.
    """
    name = ((metadata or {}).get("name") or "").strip()
    if name:
        return name[:100]
    return email.split("@", 1)[0] if "@" in email else email


def _claims_identity(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    sub = claims.get("sub")
    email = claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(sub), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    The caller's profile, or None for guests.

    Someone who signed up but has no row yet (e.g. confirmed their e-mail
    before ever logging in through this API) becomes a customer on their
    first authenticated request.
    """
    if credentials is None:
        return None

    claims = decode_access_token(credentials.credentials)
    user_id, email = _claims_identity(claims)

    user = user_repo.get_by_id(session, user_id)
    if user is None:
        user = user_repo.save(
            session,
            User(
                id=user_id,
                email=email,
                name=profile_name(email, claims.get("user_metadata")),
                role=CUSTOMER,
            ),
        )
        logger.info("Provisioned customer profile %s", user.id)
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def require_user(user: User = Depends(require_auth)) -> User:
    """Shopping routes. Admin accounts get 403."""
    if user.role != CUSTOMER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Customer access required",
        )
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """Back-office routes. Customers get 403."""
    if user.role != ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
