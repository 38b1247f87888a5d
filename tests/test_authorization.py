"""
Authorization engine tests.

The pure checks run against transient ORM objects; only the Authorizer
tests touch the database.
"""

import uuid

import pytest

from collabhub.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from collabhub.models import (
    Comment,
    Project,
    ProjectMember,
    ProjectRole,
    Team,
    TeamMember,
    TeamRole,
    TeamVisibility,
    UserRole,
)
from collabhub.services.authorization import (
    Action,
    Authorizer,
    Principal,
    ResourceKind,
    check_comment,
    check_global,
    check_project,
    check_team,
)

OWNER = uuid.uuid4()
STRANGER = uuid.uuid4()


def team_with(*members: tuple[uuid.UUID, TeamRole], visibility=TeamVisibility.private) -> Team:
    return Team(
        id=uuid.uuid4(),
        name="Platform",
        created_by=OWNER,
        visibility=visibility,
        members=[TeamMember(user_id=user_id, role=role) for user_id, role in members],
    )


def project_with(*members: tuple[uuid.UUID, ProjectRole]) -> Project:
    return Project(
        id=uuid.uuid4(),
        name="Launch",
        team_id=uuid.uuid4(),
        owner_id=OWNER,
        members=[ProjectMember(user_id=user_id, role=role) for user_id, role in members],
    )


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "action",
    [
        Action.view_team,
        Action.update_team,
        Action.manage_team_members,
        Action.delete_team,
        Action.create_project,
    ],
)
def test_team_creator_passes_every_team_action(action):
    assert check_team(Principal(OWNER), team_with(), action).allowed


def test_team_creator_passes_even_when_not_listed_as_member():
    team = team_with((uuid.uuid4(), TeamRole.admin))
    assert check_team(Principal(OWNER), team, Action.manage_team_members).allowed


@pytest.mark.parametrize(
    "role, action, allowed",
    [
        (TeamRole.member, Action.view_team, True),
        (TeamRole.member, Action.create_project, False),
        (TeamRole.lead, Action.create_project, True),
        (TeamRole.lead, Action.update_team, False),
        (TeamRole.lead, Action.manage_team_members, False),
        (TeamRole.admin, Action.update_team, True),
        (TeamRole.admin, Action.manage_team_members, True),
        (TeamRole.admin, Action.delete_team, False),
    ],
)
def test_team_roles_are_checked_as_sets(role, action, allowed):
    user = uuid.uuid4()
    decision = check_team(Principal(user), team_with((user, role)), action)
    assert decision.allowed is allowed
    assert decision.resource is ResourceKind.team


def test_private_team_hidden_from_non_members():
    decision = check_team(Principal(STRANGER), team_with(), Action.view_team)
    assert not decision.allowed
    assert decision.reason == "not a member"


def test_public_team_visible_to_anyone_but_not_editable():
    team = team_with(visibility=TeamVisibility.public)
    assert check_team(Principal(STRANGER), team, Action.view_team).allowed
    assert not check_team(Principal(STRANGER), team, Action.update_team).allowed


def test_global_admin_is_not_a_team_bypass():
    principal = Principal(STRANGER, UserRole.admin)
    assert not check_team(principal, team_with(), Action.update_team).allowed


def test_team_check_rejects_foreign_action():
    with pytest.raises(ValueError):
        check_team(Principal(OWNER), team_with(), Action.update_task)


# ---------------------------------------------------------------------------
# Projects and tasks
# ---------------------------------------------------------------------------

def test_project_reads_are_open():
    assert check_project(Principal(STRANGER), project_with(), Action.view_project).allowed


@pytest.mark.parametrize(
    "role, action, allowed",
    [
        (ProjectRole.viewer, Action.comment_on_task, True),
        (ProjectRole.viewer, Action.create_task, False),
        (ProjectRole.viewer, Action.update_task, False),
        (ProjectRole.contributor, Action.create_task, True),
        (ProjectRole.contributor, Action.update_task, True),
        (ProjectRole.contributor, Action.delete_task, False),
        (ProjectRole.contributor, Action.update_project, False),
        (ProjectRole.manager, Action.delete_task, True),
        (ProjectRole.manager, Action.update_project, True),
        (ProjectRole.manager, Action.manage_project_members, True),
        (ProjectRole.manager, Action.delete_project, False),
    ],
)
def test_project_role_sets(role, action, allowed):
    user = uuid.uuid4()
    assert check_project(Principal(user), project_with((user, role)), action).allowed is allowed


def test_project_owner_needs_no_membership_row():
    project = project_with()
    for action in (Action.delete_project, Action.delete_task, Action.update_project):
        assert check_project(Principal(OWNER), project, action).allowed


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

def test_comment_author_may_edit_and_delete():
    author = uuid.uuid4()
    comment = Comment(task_id=uuid.uuid4(), author_id=author, content="hi")
    for action in (Action.update_comment, Action.delete_comment, Action.add_comment_attachment):
        assert check_comment(Principal(author), comment, None, action).allowed


def test_project_manager_may_delete_others_comments_but_not_edit():
    manager = uuid.uuid4()
    project = project_with((manager, ProjectRole.manager))
    comment = Comment(task_id=uuid.uuid4(), author_id=uuid.uuid4(), content="hi")

    assert check_comment(Principal(manager), comment, project, Action.delete_comment).allowed
    assert not check_comment(Principal(manager), comment, project, Action.update_comment).allowed


def test_project_owner_without_manager_role_cannot_delete_others_comments():
    project = project_with()
    comment = Comment(task_id=uuid.uuid4(), author_id=uuid.uuid4(), content="hi")
    assert not check_comment(Principal(OWNER), comment, project, Action.delete_comment).allowed


@pytest.mark.parametrize("action", [Action.update_team, Action.update_task, Action.list_users])
def test_comment_check_rejects_foreign_action_even_for_author(action):
    author = uuid.uuid4()
    comment = Comment(task_id=uuid.uuid4(), author_id=author, content="hi")
    with pytest.raises(ValueError):
        check_comment(Principal(author), comment, None, action)


# ---------------------------------------------------------------------------
# Global tier and enforcement
# ---------------------------------------------------------------------------

def test_list_users_needs_global_admin():
    assert check_global(Principal(STRANGER, UserRole.admin), Action.list_users).allowed
    assert not check_global(Principal(STRANGER, UserRole.manager), Action.list_users).allowed


def test_denied_decision_enforces_as_forbidden_with_resource_and_action():
    decision = check_team(Principal(STRANGER), team_with(), Action.delete_team)
    with pytest.raises(ForbiddenError) as exc_info:
        decision.enforce()
    detail = exc_info.value.to_detail()
    assert detail["code"] == "FORBIDDEN"
    assert detail["resource"] == "team"
    assert detail["action"] == "delete_team"


# ---------------------------------------------------------------------------
# Authorizer (fetching front-end)
# ---------------------------------------------------------------------------

async def test_authorize_missing_resource_is_not_found(db):
    with pytest.raises(NotFoundError) as exc_info:
        await Authorizer(db).authorize(
            Principal(OWNER), ResourceKind.task, uuid.uuid4(), Action.update_task
        )
    assert exc_info.value.code == "TASK_NOT_FOUND"


async def test_authorize_rejects_action_for_wrong_kind(db):
    with pytest.raises(ValidationFailedError):
        await Authorizer(db).authorize(
            Principal(OWNER), ResourceKind.team, uuid.uuid4(), Action.delete_comment
        )


async def test_authorize_fetches_and_decides(db, make_user):
    owner = await make_user("owner")
    team = Team(name="Core", created_by=owner.id, members=[])
    db.add(team)
    await db.commit()

    authorizer = Authorizer(db)
    assert (await authorizer.authorize(
        Principal(owner.id), ResourceKind.team, team.id, Action.delete_team
    )).allowed
    assert not (await authorizer.authorize(
        Principal(STRANGER), ResourceKind.team, team.id, Action.view_team
    )).allowed
