"""
JWT Authentication Middleware.

Resolves the acting user (id + role) from a signed JWT so order changes can
be attributed in the audit trail, and guards admin-only operations.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Header, HTTPException, Depends, Request
from jose import JWTError, jwt

from orderdesk.models import UserRole

logger = logging.getLogger(__name__)

# JWT Configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 1 day


@dataclass(frozen=True)
class Actor:
    """The authenticated user behind a request."""
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _get_secret_key() -> str:
    """Lazy-load the secret key to support testing."""
    from orderdesk.config import get_settings
    return get_settings().SECRET_KEY


def create_access_token(user_id: str, role: UserRole | str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for a user.

    Args:
        user_id: The user's UUID.
        role: ADMIN or STAFF.
        expires_delta: Optional custom expiration time.

    Returns:
        A signed JWT string.
    """
    to_encode = {
        "sub": user_id,
        "role": UserRole(role).value,
        "exp": datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    return jwt.encode(to_encode, _get_secret_key(), algorithm=ALGORITHM)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Actor:
    """
    FastAPI dependency that extracts and validates the acting user from a JWT.
    Supports both 'Authorization: Bearer' header and 'auth_token' cookie.
    """
    credentials_exception = HTTPException(
        status_code=401,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = None

    # 1. Try Authorization Header
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:]

    # 2. Try HttpOnly Cookie (Fallback)
    if not token:
        token = request.cookies.get("auth_token")

    if not token:
        raise credentials_exception

    try:
        payload = jwt.decode(token, _get_secret_key(), algorithms=[ALGORITHM])
        user_id: Optional[str] = payload.get("sub")
        role = UserRole(payload.get("role", UserRole.STAFF.value))
    except (JWTError, ValueError):
        raise credentials_exception

    if user_id is None:
        raise credentials_exception

    return Actor(user_id=user_id, role=role)


async def require_admin(actor: Actor = Depends(get_current_user)) -> Actor:
    """Dependency that only lets administrators through."""
    if not actor.is_admin:
        logger.warning(f"User {actor.user_id} denied admin-only operation")
        raise HTTPException(status_code=403, detail="Access denied: Insufficient permissions")
    return actor
