"""
Authorization engine.

Decides whether a principal may perform an action on a team, project, task
or comment. The check_* functions are pure: they only look at entities that
were already fetched. Authorizer.authorize() does the fetching and turns a
missing resource into NotFoundError, which is distinct from a denial.

Role requirements are explicit sets. A role is allowed only if it is listed
for the action; roles are never compared by rank, so `lead` gets nothing
that is granted to `admin` alone.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from collabhub.models.comment import Comment
from collabhub.models.project import Project, ProjectRole
from collabhub.models.task import Task
from collabhub.models.team import Team, TeamRole, TeamVisibility
from collabhub.models.user import User, UserRole
from collabhub.services.membership import role_of
from collabhub.services.store import EntityStore


class ResourceKind(str, enum.Enum):
    team = "team"
    project = "project"
    task = "task"
    comment = "comment"


class Action(str, enum.Enum):
    view_team = "view_team"
    update_team = "update_team"
    manage_team_members = "manage_team_members"
    delete_team = "delete_team"
    create_project = "create_project"

    view_project = "view_project"
    update_project = "update_project"
    manage_project_members = "manage_project_members"
    delete_project = "delete_project"

    create_task = "create_task"
    update_task = "update_task"
    delete_task = "delete_task"
    comment_on_task = "comment_on_task"

    update_comment = "update_comment"
    delete_comment = "delete_comment"
    add_comment_attachment = "add_comment_attachment"

    list_users = "list_users"


# ---------------------------------------------------------------------------
# Role sets
# ---------------------------------------------------------------------------

ALL_TEAM_ROLES = frozenset(TeamRole)
ALL_PROJECT_ROLES = frozenset(ProjectRole)

# Roles that pass besides the team creator. Empty set: creator only.
TEAM_ROLE_SETS: dict[Action, frozenset[TeamRole]] = {
    Action.view_team: ALL_TEAM_ROLES,
    Action.update_team: frozenset({TeamRole.admin}),
    Action.manage_team_members: frozenset({TeamRole.admin}),
    Action.delete_team: frozenset(),
    Action.create_project: frozenset({TeamRole.lead, TeamRole.admin}),
}

# Roles that pass besides the project owner. Empty set: owner only.
PROJECT_ROLE_SETS: dict[Action, frozenset[ProjectRole]] = {
    Action.update_project: frozenset({ProjectRole.manager}),
    Action.manage_project_members: frozenset({ProjectRole.manager}),
    Action.delete_project: frozenset(),
    Action.create_task: frozenset({ProjectRole.contributor, ProjectRole.manager}),
    Action.update_task: frozenset({ProjectRole.contributor, ProjectRole.manager}),
    Action.delete_task: frozenset({ProjectRole.manager}),
    Action.comment_on_task: ALL_PROJECT_ROLES,
}

TASK_ACTIONS = frozenset(
    {Action.create_task, Action.update_task, Action.delete_task, Action.comment_on_task}
)

COMMENT_ACTIONS = frozenset(
    {Action.update_comment, Action.delete_comment, Action.add_comment_attachment}
)

# Project roles that may delete someone else's comment.
COMMENT_MODERATOR_ROLES = frozenset({ProjectRole.manager})

# create_task is asked of the project, since the task does not exist yet.
ACTIONS_BY_KIND: dict[ResourceKind, frozenset[Action]] = {
    ResourceKind.team: frozenset(TEAM_ROLE_SETS),
    ResourceKind.project: (
        (frozenset(PROJECT_ROLE_SETS) - TASK_ACTIONS)
        | {Action.view_project, Action.create_task}
    ),
    ResourceKind.task: TASK_ACTIONS - {Action.create_task},
    ResourceKind.comment: COMMENT_ACTIONS,
}


# ---------------------------------------------------------------------------
# Principal and decision
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Principal:
    """The authenticated actor: a user id plus its global tier."""

    id: UUID
    role: UserRole = UserRole.user

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(id=user.id, role=user.role)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    resource: ResourceKind | None
    action: Action
    reason: str

    def enforce(self) -> None:
        """Raise ForbiddenError for a denial."""
        if not self.allowed:
            resource = self.resource.value if self.resource else "user"
            raise ForbiddenError(resource, self.action.value, self.reason)


def _allow(resource: ResourceKind | None, action: Action, reason: str) -> Decision:
    return Decision(True, resource, action, reason)


def _deny(resource: ResourceKind | None, action: Action, reason: str) -> Decision:
    return Decision(False, resource, action, reason)


def _check_roles(
    resource: ResourceKind,
    action: Action,
    role: enum.Enum | None,
    allowed: Iterable[enum.Enum],
) -> Decision:
    allowed = frozenset(allowed)
    if role is None:
        return _deny(resource, action, "not a member")
    if role in allowed:
        return _allow(resource, action, f"role '{role.value}'")
    if not allowed:
        return _deny(resource, action, "owner only")
    needed = ", ".join(sorted(r.value for r in allowed))
    return _deny(resource, action, f"role '{role.value}' is not one of [{needed}]")


# ---------------------------------------------------------------------------
# Pure checks
# ---------------------------------------------------------------------------

def check_team(principal: Principal, team: Team, action: Action) -> Decision:
    if action not in TEAM_ROLE_SETS:
        raise ValueError(f"{action.value} is not a team action")

    if team.created_by == principal.id:
        return _allow(ResourceKind.team, action, "team creator")

    role = role_of(team.members, principal.id)
    if (
        action is Action.view_team
        and role is None
        and team.visibility is TeamVisibility.public
    ):
        return _allow(ResourceKind.team, action, "public team")

    return _check_roles(ResourceKind.team, action, role, TEAM_ROLE_SETS[action])


def check_project(principal: Principal, project: Project, action: Action) -> Decision:
    if action is Action.view_project:
        return _allow(ResourceKind.project, action, "project reads are open to any principal")
    if action not in PROJECT_ROLE_SETS:
        raise ValueError(f"{action.value} is not a project action")

    if project.owner_id == principal.id:
        return _allow(ResourceKind.project, action, "project owner")

    role = role_of(project.members, principal.id)
    return _check_roles(ResourceKind.project, action, role, PROJECT_ROLE_SETS[action])


def check_task(principal: Principal, task: Task, project: Project, action: Action) -> Decision:
    """Tasks have no role list of their own; the owning project decides."""
    if action not in TASK_ACTIONS:
        raise ValueError(f"{action.value} is not a task action")
    decision = check_project(principal, project, action)
    return Decision(decision.allowed, ResourceKind.task, action, decision.reason)


def check_comment(
    principal: Principal, comment: Comment, project: Project | None, action: Action
) -> Decision:
    """
    Authors may edit and delete their comments. Deleting someone else's
    comment needs a moderator role on the project; owning the project
    without holding that role is not enough.
    """
    if action not in COMMENT_ACTIONS:
        raise ValueError(f"{action.value} is not a comment action")

    if comment.author_id == principal.id:
        return _allow(ResourceKind.comment, action, "comment author")

    if action is Action.delete_comment and project is not None:
        role = role_of(project.members, principal.id)
        if role in COMMENT_MODERATOR_ROLES:
            return _allow(ResourceKind.comment, action, f"project role '{role.value}'")

    return _deny(ResourceKind.comment, action, "only the author may do this")


def check_global(principal: Principal, action: Action) -> Decision:
    if action is not Action.list_users:
        raise ValueError(f"{action.value} is not a global action")
    if principal.role is UserRole.admin:
        return _allow(None, action, "global admin")
    return _deny(None, action, "requires global role 'admin'")


# ---------------------------------------------------------------------------
# Fetching front-end
# ---------------------------------------------------------------------------

class Authorizer:
    """Fetches the resource (and its owning project) then applies the pure checks."""

    def __init__(self, db: AsyncSession) -> None:
        self.store = EntityStore(db)

    async def authorize(
        self,
        principal: Principal,
        kind: ResourceKind,
        resource_id: UUID,
        action: Action,
    ) -> Decision:
        if action not in ACTIONS_BY_KIND[kind]:
            raise ValidationFailedError(
                f"{action.value} does not apply to a {kind.value}", code="ACTION_MISMATCH"
            )

        if kind is ResourceKind.team:
            team = await self.load_team(resource_id)
            return check_team(principal, team, action)

        if kind is ResourceKind.project:
            project = await self.load_project(resource_id)
            return check_project(principal, project, action)

        if kind is ResourceKind.task:
            task = await self.load_task(resource_id)
            project = await self.load_project(task.project_id)
            return check_task(principal, task, project, action)

        comment = await self.load_comment(resource_id)
        project = None
        if action is Action.delete_comment and comment.author_id != principal.id:
            project = await self.project_for_comment(comment)
        return check_comment(principal, comment, project, action)

    async def project_for_comment(self, comment: Comment) -> Project | None:
        """The project above a comment, or None once its task or project is gone."""
        task = await self.store.get(Task, comment.task_id)
        if task is None:
            return None
        return await self.store.get(Project, task.project_id)

    async def load_team(self, team_id: UUID) -> Team:
        team = await self.store.get(Team, team_id)
        if team is None:
            raise NotFoundError("team", team_id)
        return team

    async def load_project(self, project_id: UUID) -> Project:
        project = await self.store.get(Project, project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    async def load_task(self, task_id: UUID) -> Task:
        task = await self.store.get(Task, task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    async def load_comment(self, comment_id: UUID) -> Comment:
        comment = await self.store.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("comment", comment_id)
        return comment
