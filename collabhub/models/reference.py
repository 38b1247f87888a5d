"""
BackReference ORM model.

Denormalized id lists ("arrays") hanging off one entity and pointing at
another, e.g. a user's team list or a task's comment list. Each element is
one row, so appending and removing an element are single-row statements
that never race with unrelated appends to the same list.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import Enum
from sqlalchemy.orm import Mapped, mapped_column

from collabhub.models.base import Base, utcnow


class ReferenceField(str, enum.Enum):
    """Which list a row belongs to: <owner collection>_<field>."""

    user_teams = "user_teams"
    team_projects = "team_projects"
    project_tasks = "project_tasks"
    task_comments = "task_comments"
    comment_replies = "comment_replies"


class BackReference(Base):
    """One element of a back-reference list."""

    __tablename__ = "back_references"

    field: Mapped[ReferenceField] = mapped_column(
        Enum(ReferenceField, name="reference_field"), primary_key=True
    )
    owner_id: Mapped[UUID] = mapped_column(primary_key=True)
    target_id: Mapped[UUID] = mapped_column(primary_key=True, index=True)
    added_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<BackReference {self.field.value} {self.owner_id} -> {self.target_id}>"
