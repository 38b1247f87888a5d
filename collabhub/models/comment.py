"""
Comment ORM model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from collabhub.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Comment(Base, UUIDMixin, TimestampMixin):
    """
    A comment on a task, optionally replying to another comment.

    `task_id` and `parent_comment_id` are plain columns: a reply whose parent
    was removed stays behind pointing at nothing.
    """

    __tablename__ = "comments"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    task_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    author_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_comment_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    mentions: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Comment id={self.id} task_id={self.task_id} author_id={self.author_id}>"
