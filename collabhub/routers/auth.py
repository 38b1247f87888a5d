"""
Identity endpoints.

Every other router resolves its caller from the access token issued here.
Refresh tokens live in Redis so logout and rotation can revoke them.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_current_user, get_redis, get_token_payload
from collabhub.models.user import User
from collabhub.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from collabhub.services.auth_service import AuthService

router = APIRouter()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    return AuthService(db=db, redis=redis)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account with the global role 'user'",
)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """409 USER_EXISTS when the email or username is taken."""
    return await service.register(data)


@router.post("/login", response_model=TokenResponse, summary="Exchange credentials for tokens")
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await service.login(data)


@router.post("/refresh", response_model=TokenResponse, summary="Rotate a refresh token")
async def refresh(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """The presented refresh token stops working once a new pair is issued."""
    return await service.refresh(data.refresh_token)


@router.post("/logout", status_code=status.HTTP_200_OK, summary="Revoke the caller's tokens")
async def logout(
    data: LogoutRequest,
    payload: dict = Depends(get_token_payload),
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> None:
    # The access token stays blacklisted until it would have expired anyway.
    await service.logout(access_token_jti=payload.get("jti", ""), refresh_token=data.refresh_token)


@router.get("/me", response_model=MeResponse, summary="Identity behind the bearer token")
async def get_me(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    return await service.get_me(current_user)
