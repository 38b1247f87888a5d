from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from collabhub.models.project import ProjectPriority, ProjectRole, ProjectStatus
from collabhub.schemas.common import TeamSummary, UserSummary


def _clean_tags(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    return [tag.strip() for tag in v if tag.strip()]


class ProjectCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    team_id: UUID
    start_date: datetime | None = None
    end_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    priority: ProjectPriority = ProjectPriority.medium

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: list[str] | None) -> list[str] | None:
        return _clean_tags(v)


class ProjectUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    start_date: datetime | None = None
    end_date: datetime | None = None
    tags: list[str] | None = None
    expected_version: int | None = None

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: list[str] | None) -> list[str] | None:
        return _clean_tags(v)


class ProjectMemberRequest(BaseModel):
    user_id: UUID
    role: ProjectRole = ProjectRole.contributor
    expected_version: int | None = Field(
        default=None,
        description="Reject the write with 409 unless the project is at this version",
    )


class ProjectMemberResponse(BaseModel):
    user_id: UUID
    user: UserSummary | None
    role: ProjectRole


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    priority: ProjectPriority
    progress: int
    start_date: datetime | None
    end_date: datetime | None
    tags: list[str]
    team_id: UUID
    team: TeamSummary | None
    owner_id: UUID
    owner: UserSummary | None
    members: list[ProjectMemberResponse]
    # Task creation does not append here.
    tasks: list[UUID]
    version: int
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int
