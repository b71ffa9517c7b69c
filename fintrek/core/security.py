"""Password hashing and JWT token helpers."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import jwt, JWTError

from fintrek.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class TokenError(Exception):
    """Raised when a token cannot be verified or has the wrong type."""


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], salt).decode("utf-8")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def _create_token(user_id: str, email: str, token_type: str, expires_delta: timedelta) -> str:
    claims = {
        "sub": user_id,
        "email": email,
        "type": token_type,
        "exp": datetime.utcnow() + expires_delta,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived JWT access token."""
    return _create_token(
        user_id,
        email,
        ACCESS_TOKEN,
        expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
    )


def create_refresh_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived JWT refresh token."""
    return _create_token(
        user_id,
        email,
        REFRESH_TOKEN,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def generate_tokens(user_id: str, email: str) -> Dict[str, str]:
    """Create an access/refresh token pair."""
    return {
        "access_token": create_access_token(user_id, email),
        "refresh_token": create_refresh_token(user_id, email),
    }


def decode_token(token: str, expected_type: str) -> Dict[str, Any]:
    """Verify a token and check its type claim.

    Raises:
        TokenError: if the signature, expiry or type is invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise TokenError(str(e)) from e

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise TokenError(f"Expected a {expected_type} token")
    return payload
