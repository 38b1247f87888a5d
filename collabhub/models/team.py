"""
Team and TeamMember ORM models.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.models.base import Base, TimestampMixin, UUIDMixin, utcnow

if TYPE_CHECKING:
    from collabhub.models.user import User


class TeamRole(str, enum.Enum):
    """Team member role. Treated as an unordered set, not a ranking."""

    member = "member"
    lead = "lead"
    admin = "admin"


class TeamVisibility(str, enum.Enum):
    public = "public"
    private = "private"


class Team(Base, UUIDMixin, TimestampMixin):
    """
    A group of users that owns projects.

    `created_by` is the owner and passes every team-level check whether or
    not it still appears in `members`. `version` guards whole-team writes,
    membership changes included, with optimistic locking.
    """

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    visibility: Mapped[TeamVisibility] = mapped_column(
        Enum(TeamVisibility, name="team_visibility"),
        nullable=False,
        default=TeamVisibility.private,
    )
    notify_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_in_app: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    members: Mapped[list[TeamMember]] = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="TeamMember.joined_at",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Team id={self.id} name={self.name!r} version={self.version}>"


class TeamMember(Base, UUIDMixin):
    """One row per (team, user); role changes update the row in place."""

    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),)

    team_id: Mapped[UUID] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[TeamRole] = mapped_column(
        Enum(TeamRole, name="team_role"), nullable=False, default=TeamRole.member
    )
    joined_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    team: Mapped[Team] = relationship("Team", back_populates="members")
    user: Mapped[User] = relationship("User", back_populates="team_memberships")

    def __repr__(self) -> str:
        return f"<TeamMember team_id={self.team_id} user_id={self.user_id} role={self.role}>"
