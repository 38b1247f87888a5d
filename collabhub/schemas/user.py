"""
User profile schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from collabhub.schemas.auth import MeResponse
from collabhub.schemas.common import TeamSummary


class ProfileResponse(MeResponse):
    """Profile with the user's cached team list populated."""

    teams: list[TeamSummary]


class ProfileUpdateRequest(BaseModel):
    """Request body for PUT /users/profile."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=500)


class ChangePasswordRequest(BaseModel):
    """Request body for PUT /users/change-password."""

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_must_contain_number(cls, v: str) -> str:
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one number")
        return v


class UserListResponse(BaseModel):
    users: list[ProfileResponse]
    total: int
