"""Shared dependencies for the FinTrek API."""

from typing import Optional
import uuid

from aiocache import Cache
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from fintrek.core.config import settings
from fintrek.core.security import ACCESS_TOKEN, TokenError, decode_token

logger = structlog.get_logger()

# Global instances
_cache: Optional[Cache] = None

# Missing credentials are reported as 401 by get_current_user
security = HTTPBearer(auto_error=False)


async def get_cache() -> Cache:
    """Get the shared cache, falling back to memory when Redis is unavailable."""
    global _cache

    if _cache is None:
        if settings.REDIS_URL:
            try:
                _cache = Cache.from_url(settings.REDIS_URL)
                await _cache.exists("health_check")
                logger.info("Redis cache connection established")
            except Exception as e:
                logger.warning("Redis cache not available, using memory cache", error=str(e))
                _cache = Cache(Cache.MEMORY)
        else:
            _cache = Cache(Cache.MEMORY)

    return _cache


def _user_from_token(token: str) -> dict:
    try:
        payload = decode_token(token, ACCESS_TOKEN)
        user_id = uuid.UUID(payload["sub"])
    except (TokenError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )
    return {"user_id": user_id, "email": payload.get("email")}


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """Get current user from the bearer access token."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _user_from_token(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[dict]:
    """Get current user when a token is supplied, None for anonymous callers."""
    if credentials is None or not credentials.credentials:
        return None
    return _user_from_token(credentials.credentials)
