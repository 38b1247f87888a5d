"""
Display population.

Turns stored ids into the summaries embedded in responses. Ids whose rows
no longer exist are dropped silently: back-reference lists may point at
documents removed by a cascade that did not clean up after itself.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.models.project import Project
from collabhub.models.team import Team
from collabhub.models.user import User
from collabhub.schemas.common import ProjectSummary, TeamSummary, UserSummary


def as_uuid(value: UUID | str) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


async def load_user_summaries(
    db: AsyncSession, ids: Iterable[UUID | str]
) -> dict[UUID, UserSummary]:
    wanted = {as_uuid(i) for i in ids}
    if not wanted:
        return {}
    result = await db.execute(select(User).where(User.id.in_(wanted)))
    return {user.id: UserSummary.model_validate(user) for user in result.scalars().all()}


async def load_team_summaries(
    db: AsyncSession, ids: Iterable[UUID]
) -> dict[UUID, TeamSummary]:
    wanted = set(ids)
    if not wanted:
        return {}
    result = await db.execute(select(Team).where(Team.id.in_(wanted)))
    return {team.id: TeamSummary.model_validate(team) for team in result.scalars().all()}


async def load_project_summaries(
    db: AsyncSession, ids: Iterable[UUID]
) -> dict[UUID, ProjectSummary]:
    wanted = set(ids)
    if not wanted:
        return {}
    result = await db.execute(select(Project).where(Project.id.in_(wanted)))
    return {p.id: ProjectSummary.model_validate(p) for p in result.scalars().all()}


def in_order(summaries: dict[UUID, object], ids: Iterable[UUID | str]) -> list:
    """Pick summaries in the order of `ids`, skipping the ones that were not found."""
    picked = []
    for raw in ids:
        summary = summaries.get(as_uuid(raw))
        if summary is not None:
            picked.append(summary)
    return picked
