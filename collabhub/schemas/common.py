"""
Shared display schemas.

Summaries embedded in responses wherever an entity references a user,
team or project (the "populated" view of a reference).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from collabhub.models.project import ProjectStatus


class UserSummary(BaseModel):
    id: UUID
    username: str
    first_name: str | None
    last_name: str | None
    avatar_url: str | None

    model_config = {"from_attributes": True}


class TeamSummary(BaseModel):
    id: UUID
    name: str
    description: str | None

    model_config = {"from_attributes": True}


class ProjectSummary(BaseModel):
    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    progress: int

    model_config = {"from_attributes": True}


class Attachment(BaseModel):
    name: str
    url: str
    type: str | None = None
    uploaded_at: datetime


class AttachmentRequest(BaseModel):
    """Request body for POST /{tasks|comments}/{id}/attachments."""

    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=2000)
    type: str | None = Field(default=None, max_length=100)


class DeleteResponse(BaseModel):
    id: UUID
    message: str
