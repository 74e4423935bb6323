"""
Viewer identity for the recipe catalog.

Tokens are issued elsewhere; this module only verifies them. It provides:
- get_current_user: Requires `Authorization: Bearer <token>` and loads the user (401 otherwise).
- get_optional_user: Same, but returns None when no token is sent (public routes).
- create_access_token: Signs a token for a subject (used by tooling and tests).

Settings (catalog.config): JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import get_settings
from .deps import get_db
from .models import User
from .schemas import MAX_ID

logger = logging.getLogger(__name__)

# Bearer token extraction; missing tokens are handled by the dependencies below
bearer_scheme = HTTPBearer(auto_error=False, scheme_name="JWT")


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token for a subject (user ID or email)."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {"sub": subject, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, db: Session) -> User:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        subject: Optional[str] = payload.get("sub")
        if subject is None:
            raise _credentials_exception()
    except JWTError:
        logger.info("Rejected bearer token")
        raise _credentials_exception()

    # We store subject as user id if available, else email. Try id first then email.
    user: Optional[User] = None
    if subject.isdigit() and int(subject) <= MAX_ID:
        user = db.get(User, int(subject))
    if user is None:
        user = db.execute(select(User).where(User.email == subject)).scalar_one_or_none()

    if user is None or not user.is_active:
        raise _credentials_exception()
    return user


# PUBLIC_INTERFACE
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Retrieve the currently authenticated user by validating a JWT Bearer token.

    Raises:
    - HTTPException 401 if the token is missing, invalid/expired, or the user does not exist.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _user_from_token(credentials.credentials, db)


# PUBLIC_INTERFACE
def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Return the authenticated user, or None for anonymous requests. A bad token is still a 401."""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)
