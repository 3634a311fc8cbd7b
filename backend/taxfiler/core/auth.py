"""
Authentication module for the tax filing API.
bcrypt password hashing and JWT bearer tokens.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from sqlalchemy.orm import Session

from taxfiler.core.config import settings
from taxfiler.core.database import get_db
from taxfiler.core.errors import (
    MissingToken,
    MalformedToken,
    ExpiredToken,
    InvalidToken,
    StaleToken,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Security scheme
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Identity attached to an authenticated request."""
    user_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(
    user_id: str,
    email: str,
    issued_at: Optional[datetime] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token for a user."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    if issued_at is None:
        issued_at = datetime.now(timezone.utc)

    payload = {
        "userId": user_id,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Unparsable tokens are malformed; a parsable token that fails the
    signature check is invalid.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        raise MalformedToken()
    if not isinstance(claims, dict) or not claims.get("userId"):
        raise MalformedToken()

    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise ExpiredToken()
    except JWTError:
        raise InvalidToken()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Dependency to get the current authenticated user.
    Re-loads the user so tokens for deleted accounts are rejected.
    """
    from taxfiler.modules.accounts.models import User

    if not request.headers.get("Authorization"):
        raise MissingToken()
    if credentials is None or not credentials.credentials:
        raise MalformedToken()

    payload = decode_token(credentials.credentials)

    user = db.get(User, payload["userId"])
    if user is None:
        raise StaleToken()

    return CurrentUser(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )
