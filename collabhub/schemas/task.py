"""
Task schemas.

Request/response models for task endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from collabhub.models.task import TaskPriority, TaskStatus
from collabhub.schemas.common import Attachment, UserSummary


class TaskCreateRequest(BaseModel):
    """Request body for POST /tasks."""

    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    project_id: UUID
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    due_date: datetime | None = None
    assigned_to: list[UUID] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class TaskUpdateRequest(BaseModel):
    """
    Request body for PUT /tasks/{task_id}.

    Only fields present and non-null are applied. Omitting `status` leaves
    both the status and completed_at untouched.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: list[UUID] | None = None
    tags: list[str] | None = None


class TaskResponse(BaseModel):
    """Task with creator and assignees populated."""

    id: UUID
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None
    project_id: UUID
    created_by: UUID
    creator: UserSummary | None
    assigned_to: list[UserSummary]
    tags: list[str]
    attachments: list[Attachment]
    comments: list[UUID]
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int
