"""
FastAPI dependency injection functions.

Provides Redis connections, the current user and the authorization principal.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.config import settings
from collabhub.core.database import get_db
from collabhub.core.security import blacklist_redis_key, decode_access_token
from collabhub.models.user import User
from collabhub.services.authorization import Principal

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return a shared async Redis client."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Decode the Bearer access token. Raises 401 when missing or invalid."""
    if credentials is None:
        raise _unauthorized("MISSING_TOKEN", "Authorization header required")
    try:
        return decode_access_token(credentials.credentials)
    except JWTError:
        raise _unauthorized("INVALID_TOKEN", "Token is invalid or expired")


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User:
    """
    Return the authenticated User.

    Raises 401 if the JTI is blacklisted or the user does not exist or is
    inactive.
    """
    if await redis.exists(blacklist_redis_key(payload.get("jti", ""))):
        raise _unauthorized("TOKEN_REVOKED", "Token has been revoked")

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        raise _unauthorized("INVALID_TOKEN", "Token subject is not a user id")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise _unauthorized("USER_NOT_FOUND", "User not found or inactive")

    return user


async def get_principal(current_user: User = Depends(get_current_user)) -> Principal:
    """The actor the authorization engine reasons about (id + global tier)."""
    return Principal.from_user(current_user)
