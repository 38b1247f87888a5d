"""
Project business logic.

Handles project CRUD and project membership.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.exceptions import NotFoundError, ValidationFailedError
from collabhub.models.project import Project, ProjectMember, ProjectRole, ProjectStatus
from collabhub.models.reference import ReferenceField
from collabhub.models.user import User
from collabhub.schemas.common import DeleteResponse
from collabhub.schemas.project import (
    ProjectCreateRequest,
    ProjectListResponse,
    ProjectMemberRequest,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectUpdateRequest,
)
from collabhub.services.authorization import Action, Authorizer, Principal, check_project, check_team
from collabhub.services.coordinator import ConsistencyCoordinator
from collabhub.services.lifecycle import propagate_and_respond
from collabhub.services.membership import (
    MembershipChange,
    check_version,
    remove_member,
    touch,
    upsert_member,
    write_with_version_check,
)
from collabhub.services.populate import load_team_summaries, load_user_summaries
from collabhub.services.store import EntityStore

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "status",
    "priority",
    "progress",
    "start_date",
    "end_date",
    "tags",
)


class ProjectService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.store = EntityStore(db)
        self.authorizer = Authorizer(db)
        self.coordinator = ConsistencyCoordinator(self.store)

    async def list_projects(
        self, team_id: UUID, status: ProjectStatus | None = None
    ) -> ProjectListResponse:
        stmt = select(Project).where(Project.team_id == team_id)
        if status is not None:
            stmt = stmt.where(Project.status == status)
        result = await self.db.execute(stmt.order_by(Project.created_at.desc()))
        projects = list(result.scalars().all())
        return ProjectListResponse(
            projects=[await self._to_response(p) for p in projects],
            total=len(projects),
        )

    async def create_project(
        self, data: ProjectCreateRequest, principal: Principal
    ) -> ProjectResponse:
        """Create a project inside a team; the creator becomes owner and manager."""
        team = await self.authorizer.load_team(data.team_id)
        check_team(principal, team, Action.create_project).enforce()
        _check_dates(data.start_date, data.end_date)

        project = Project(
            name=data.name,
            description=data.description,
            team_id=team.id,
            owner_id=principal.id,
            priority=data.priority,
            tags=data.tags,
            end_date=data.end_date,
            members=[ProjectMember(user_id=principal.id, role=ProjectRole.manager)],
        )
        if data.start_date is not None:
            project.start_date = data.start_date
        self.db.add(project)
        await self.db.commit()
        project_id = project.id
        logger.info("Project created: project_id=%s team_id=%s", project_id, team.id)

        return await propagate_and_respond(
            self.coordinator.project_created(project_id, team.id),
            lambda: self.get_project(project_id),
        )

    async def get_project(self, project_id: UUID) -> ProjectResponse:
        """Project reads are not gated beyond authentication."""
        project = await self.authorizer.load_project(project_id)
        return await self._to_response(project)

    async def update_project(
        self, project_id: UUID, data: ProjectUpdateRequest, principal: Principal
    ) -> ProjectResponse:
        async def mutate() -> None:
            project = await self.authorizer.load_project(project_id)
            check_project(principal, project, Action.update_project).enforce()
            check_version(project, data.expected_version)
            _check_dates(
                data.start_date if data.start_date is not None else project.start_date,
                data.end_date if data.end_date is not None else project.end_date,
            )
            for field in _UPDATABLE_FIELDS:
                value = getattr(data, field)
                if value is not None:
                    setattr(project, field, value)

        await write_with_version_check(self.db, mutate, expected_version=data.expected_version)
        return await self.get_project(project_id)

    async def delete_project(self, project_id: UUID, principal: Principal) -> DeleteResponse:
        """
        Delete a project and its membership rows.

        Tasks and comments are left in place pointing at the deleted project,
        and the team's project list is not touched.
        """

        async def mutate() -> None:
            project = await self.authorizer.load_project(project_id)
            check_project(principal, project, Action.delete_project).enforce()
            await self.db.delete(project)
            await self.store.discard_owned_references([project_id], ReferenceField.project_tasks)

        await write_with_version_check(self.db, mutate)
        logger.info("Project deleted: project_id=%s", project_id)
        return DeleteResponse(id=project_id, message="Project deleted successfully")

    # -----------------------------------------------------------------------
    # Members
    # -----------------------------------------------------------------------

    async def upsert_member(
        self, project_id: UUID, data: ProjectMemberRequest, principal: Principal
    ) -> ProjectResponse:
        """Add a member or change a member's role. Nothing propagates."""

        async def mutate() -> MembershipChange:
            project = await self.authorizer.load_project(project_id)
            check_project(principal, project, Action.manage_project_members).enforce()
            check_version(project, data.expected_version)
            if await self.store.get(User, data.user_id) is None:
                raise NotFoundError("user", data.user_id)

            _, change = upsert_member(
                project.members,
                data.user_id,
                data.role,
                lambda user_id, role: ProjectMember(user_id=user_id, role=role),
            )
            if change is not MembershipChange.unchanged:
                touch(project)
            return change

        change = await write_with_version_check(
            self.db, mutate, expected_version=data.expected_version
        )
        logger.info(
            "Project member %s: project_id=%s user_id=%s role=%s",
            change.value, project_id, data.user_id, data.role.value,
        )
        return await self.get_project(project_id)

    async def remove_member(
        self,
        project_id: UUID,
        user_id: UUID,
        principal: Principal,
        expected_version: int | None = None,
    ) -> ProjectResponse:
        async def mutate() -> None:
            project = await self.authorizer.load_project(project_id)
            check_project(principal, project, Action.manage_project_members).enforce()
            check_version(project, expected_version)
            if remove_member(project.members, user_id) is MembershipChange.unchanged:
                raise NotFoundError("member", user_id)
            touch(project)

        await write_with_version_check(self.db, mutate, expected_version=expected_version)
        logger.info("Project member removed: project_id=%s user_id=%s", project_id, user_id)
        return await self.get_project(project_id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _to_response(self, project: Project) -> ProjectResponse:
        users = await load_user_summaries(
            self.db, [project.owner_id, *(m.user_id for m in project.members)]
        )
        teams = await load_team_summaries(self.db, [project.team_id])
        task_ids = await self.store.references(ReferenceField.project_tasks, project.id)

        return ProjectResponse(
            id=project.id,
            name=project.name,
            description=project.description,
            status=project.status,
            priority=project.priority,
            progress=project.progress,
            start_date=project.start_date,
            end_date=project.end_date,
            tags=project.tags,
            team_id=project.team_id,
            team=teams.get(project.team_id),
            owner_id=project.owner_id,
            owner=users.get(project.owner_id),
            members=[
                ProjectMemberResponse(user_id=m.user_id, user=users.get(m.user_id), role=m.role)
                for m in project.members
            ],
            tasks=task_ids,
            version=project.version,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


def _as_utc(value: datetime) -> datetime:
    # Naive values are stored UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _check_dates(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and _as_utc(end) < _as_utc(start):
        raise ValidationFailedError("end_date must not be before start_date")
