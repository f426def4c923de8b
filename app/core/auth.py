# app/core/auth.py
"""
Bearer-token authentication and role checks.

Tokens are issued elsewhere; this service only verifies them. The `sub`
claim is the user's UUID and doubles as the primary key of `users`, so a
first request with a valid token creates the profile on the fly.
"""
import uuid
from typing import Any, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session

from app.core.config import get_settings
from app.database import get_session
from app.models.user import User

settings = get_settings()

# auto_error=False: a missing header yields None instead of a 403 from
# FastAPI, and require_auth answers 401 itself.
bearer_scheme = HTTPBearer(auto_error=False)

NAME_MAX_LENGTH = 50


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of `token` and return its claims.

    The audience claim is not checked.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def _identity(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    sub, email = claims.get("sub"), claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(str(sub)), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    The caller's profile, or None for anonymous requests.

    Unknown subjects get a fresh profile with role "customer"; admins
    are promoted explicitly through PATCH /users/{id}/role.
    """
    if credentials is None:
        return None

    user_id, email = _identity(decode_access_token(credentials.credentials))

    user = session.get(User, user_id)
    if user is None:
        user = User(
            id=user_id,
            email=email,
            name=email.split("@", 1)[0][:NAME_MAX_LENGTH],
            role="customer",
        )
        session.add(user)
        session.commit()
        session.refresh(user)
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """401 unless the request carries a valid token."""
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def require_role(role: str) -> Callable[[User], User]:
    """
    Build a dependency that lets through only users with `role` (403 otherwise).
    """

    def dependency(user: User = Depends(require_auth)) -> User:
        if user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.capitalize()} access required",
            )
        return user

    dependency.__name__ = f"require_{role}"
    return dependency


# Admins manage the catalog and order statuses; only customers shop.
require_admin = require_role("admin")
require_customer = require_role("customer")
