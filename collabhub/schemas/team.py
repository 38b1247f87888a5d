"""
Team schemas.

Request/response models for team and team member management endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from collabhub.models.team import TeamRole, TeamVisibility
from collabhub.schemas.common import ProjectSummary, UserSummary


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------

class TeamSettings(BaseModel):
    visibility: TeamVisibility
    notify_email: bool
    notify_in_app: bool


class TeamSettingsUpdate(BaseModel):
    visibility: TeamVisibility | None = None
    notify_email: bool | None = None
    notify_in_app: bool | None = None


class TeamCreateRequest(BaseModel):
    """Request body for POST /teams."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    visibility: TeamVisibility = TeamVisibility.private


class TeamUpdateRequest(BaseModel):
    """Request body for PUT /teams/{team_id}."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    avatar_url: str | None = Field(default=None, max_length=500)
    settings: TeamSettingsUpdate | None = None
    expected_version: int | None = Field(
        default=None, description="Reject the write with 409 unless the team is at this version"
    )


class TeamMemberResponse(BaseModel):
    user_id: UUID
    user: UserSummary | None
    role: TeamRole
    joined_at: datetime


class TeamResponse(BaseModel):
    """Team with creator, members and projects populated."""

    id: UUID
    name: str
    description: str | None
    avatar_url: str | None
    is_active: bool
    settings: TeamSettings
    created_by: UUID
    creator: UserSummary | None
    members: list[TeamMemberResponse]
    projects: list[ProjectSummary]
    version: int
    created_at: datetime
    updated_at: datetime


class TeamListResponse(BaseModel):
    teams: list[TeamResponse]
    total: int


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class TeamMemberRequest(BaseModel):
    """Request body for POST /teams/{team_id}/members (add or change role)."""

    user_id: UUID
    role: TeamRole = TeamRole.member
    expected_version: int | None = Field(
        default=None, description="Reject the write with 409 unless the team is at this version"
    )
