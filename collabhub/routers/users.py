"""
User profile endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_current_user, get_principal
from collabhub.models.user import User
from collabhub.schemas.user import (
    ChangePasswordRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    UserListResponse,
)
from collabhub.services.authorization import Principal
from collabhub.services.user_service import UserService

router = APIRouter()


def get_user_service(
    db: AsyncSession = Depends(get_db),
) -> UserService:
    return UserService(db=db)


@router.get("", response_model=UserListResponse, summary="List all users (global admin)")
async def list_users(
    principal: Principal = Depends(get_principal),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    return await service.list_users(principal)


@router.get("/profile", response_model=ProfileResponse, summary="Get own profile")
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> ProfileResponse:
    """Profile including the populated list of teams the user belongs to."""
    return await service.get_profile(current_user)


@router.put("/profile", response_model=ProfileResponse, summary="Update own profile")
async def update_profile(
    data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> ProfileResponse:
    return await service.update_profile(current_user, data)


@router.put(
    "/change-password",
    status_code=status.HTTP_200_OK,
    summary="Change own password",
)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> dict[str, str]:
    await service.change_password(current_user, data)
    return {"message": "Password changed successfully"}
