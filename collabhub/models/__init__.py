"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
"""

from collabhub.models.base import Base, TimestampMixin, UUIDMixin
from collabhub.models.comment import Comment
from collabhub.models.project import Project, ProjectMember, ProjectPriority, ProjectRole, ProjectStatus
from collabhub.models.reference import BackReference, ReferenceField
from collabhub.models.task import Task, TaskPriority, TaskStatus
from collabhub.models.team import Team, TeamMember, TeamRole, TeamVisibility
from collabhub.models.user import User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "User",
    "UserRole",
    "Team",
    "TeamMember",
    "TeamRole",
    "TeamVisibility",
    "Project",
    "ProjectMember",
    "ProjectRole",
    "ProjectStatus",
    "ProjectPriority",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Comment",
    "BackReference",
    "ReferenceField",
]
