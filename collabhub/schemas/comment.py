"""
Comment schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from collabhub.schemas.common import Attachment, UserSummary


class CommentCreateRequest(BaseModel):
    """Request body for POST /comments."""

    content: str = Field(min_length=1, max_length=10000)
    task_id: UUID
    mentions: list[UUID] = Field(default_factory=list)
    parent_comment_id: UUID | None = None


class CommentUpdateRequest(BaseModel):
    """Request body for PUT /comments/{comment_id}."""

    content: str | None = Field(default=None, min_length=1, max_length=10000)
    mentions: list[UUID] | None = None


class CommentResponse(BaseModel):
    """Comment with author and mentions populated; replies as ids."""

    id: UUID
    content: str
    task_id: UUID
    author_id: UUID
    author: UserSummary | None
    parent_comment_id: UUID | None
    mentions: list[UserSummary]
    replies: list[UUID]
    attachments: list[Attachment]
    is_edited: bool
    edited_at: datetime | None
    created_at: datetime
    updated_at: datetime


class CommentThreadResponse(BaseModel):
    """A top-level comment and its direct replies, both populated."""

    comment: CommentResponse
    replies: list[CommentResponse]


class CommentListResponse(BaseModel):
    threads: list[CommentThreadResponse]
    total: int
