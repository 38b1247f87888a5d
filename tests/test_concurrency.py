"""
Optimistic concurrency tests for membership writes.

Races are reproduced deterministically: one session holds a copy of the
team read before another session commits a change to it. Where two writes
run at once under asyncio.gather, the assertions hold for either ordering.
"""

import asyncio

import pytest

from collabhub.core.exceptions import ConflictError
from collabhub.models import Project, ProjectRole, Team, TeamMember, TeamRole
from collabhub.schemas.project import ProjectMemberRequest
from collabhub.schemas.team import TeamMemberRequest
from collabhub.services.membership import touch, upsert_member, write_with_version_check
from collabhub.services.project_service import ProjectService
from collabhub.services.store import EntityStore
from collabhub.services.team_service import TeamService


def new_team_member(user_id, role):
    return TeamMember(user_id=user_id, role=role)


async def test_membership_change_bumps_version(db, workspace, make_user):
    bob = await make_user("bob")
    service = TeamService(db)
    before = workspace.team.version

    added = await service.upsert_member(
        workspace.team.id, TeamMemberRequest(user_id=bob.id), workspace.principal
    )
    promoted = await service.upsert_member(
        workspace.team.id, TeamMemberRequest(user_id=bob.id, role=TeamRole.lead), workspace.principal
    )
    unchanged = await service.upsert_member(
        workspace.team.id, TeamMemberRequest(user_id=bob.id, role=TeamRole.lead), workspace.principal
    )

    assert added.version == before + 1
    assert promoted.version == before + 2
    assert unchanged.version == promoted.version
    roles = {m.user_id: m.role for m in unchanged.members}
    assert roles[bob.id] is TeamRole.lead


async def test_expected_version_mismatch_is_conflict(db, workspace, make_user):
    bob = await make_user("bob")
    with pytest.raises(ConflictError) as exc_info:
        await TeamService(db).upsert_member(
            workspace.team.id,
            TeamMemberRequest(user_id=bob.id, expected_version=workspace.team.version + 5),
            workspace.principal,
        )
    assert exc_info.value.code == "VERSION_CONFLICT"


async def test_compare_and_swap_loses_to_concurrent_writer(session_factory, workspace, make_user):
    bob = await make_user("bob")
    carol = await make_user("carol")
    seen_version = workspace.team.version

    async with session_factory() as other:
        await TeamService(other).upsert_member(
            workspace.team.id, TeamMemberRequest(user_id=bob.id), workspace.principal
        )

    async with session_factory() as session:
        with pytest.raises(ConflictError):
            await TeamService(session).upsert_member(
                workspace.team.id,
                TeamMemberRequest(user_id=carol.id, expected_version=seen_version),
                workspace.principal,
            )


async def test_stale_write_is_rejected_without_retries(session_factory, workspace, make_user):
    bob = await make_user("bob")
    carol = await make_user("carol")

    async with session_factory() as mine, session_factory() as theirs:
        stale = await EntityStore(mine).get(Team, workspace.team.id)
        await TeamService(theirs).upsert_member(
            workspace.team.id, TeamMemberRequest(user_id=bob.id), workspace.principal
        )

        async def mutate():
            upsert_member(stale.members, carol.id, TeamRole.member, new_team_member)
            touch(stale)

        with pytest.raises(ConflictError):
            await write_with_version_check(mine, mutate, max_retries=0)


async def test_stale_write_is_retried_against_fresh_state(session_factory, workspace, make_user):
    bob = await make_user("bob")
    carol = await make_user("carol")
    attempts = 0

    async with session_factory() as mine, session_factory() as theirs:
        stale = await EntityStore(mine).get(Team, workspace.team.id)
        await TeamService(theirs).upsert_member(
            workspace.team.id, TeamMemberRequest(user_id=bob.id), workspace.principal
        )

        async def mutate():
            nonlocal attempts
            attempts += 1
            team = stale if attempts == 1 else await EntityStore(mine).get(Team, workspace.team.id)
            upsert_member(team.members, carol.id, TeamRole.member, new_team_member)
            touch(team)

        await write_with_version_check(mine, mutate, max_retries=3)

    assert attempts == 2
    async with session_factory() as session:
        team = await EntityStore(session).get(Team, workspace.team.id)
        assert {m.user_id for m in team.members} == {workspace.owner.id, bob.id, carol.id}
        assert team.version == workspace.team.version + 2


async def change_project_role(session_factory, workspace, user_id, role, expected_version=None):
    async with session_factory() as session:
        return await ProjectService(session).upsert_member(
            workspace.project.id,
            ProjectMemberRequest(user_id=user_id, role=role, expected_version=expected_version),
            workspace.principal,
        )


async def test_concurrent_role_changes_leave_one_membership(db, session_factory, workspace, make_user):
    bob = await make_user("bob")
    viewer = await ProjectService(db).upsert_member(
        workspace.project.id,
        ProjectMemberRequest(user_id=bob.id, role=ProjectRole.viewer),
        workspace.principal,
    )

    await asyncio.gather(
        change_project_role(session_factory, workspace, bob.id, ProjectRole.contributor),
        change_project_role(session_factory, workspace, bob.id, ProjectRole.manager),
    )

    async with session_factory() as session:
        project = await EntityStore(session).get(Project, workspace.project.id)
        rows = [m for m in project.members if m.user_id == bob.id]
        assert len(rows) == 1
        assert rows[0].role in {ProjectRole.contributor, ProjectRole.manager}
        assert project.version == viewer.version + 2


async def test_concurrent_role_changes_with_expected_version_admit_one(
    db, session_factory, workspace, make_user
):
    bob = await make_user("bob")
    viewer = await ProjectService(db).upsert_member(
        workspace.project.id,
        ProjectMemberRequest(user_id=bob.id, role=ProjectRole.viewer),
        workspace.principal,
    )

    results = await asyncio.gather(
        change_project_role(
            session_factory, workspace, bob.id, ProjectRole.contributor, viewer.version
        ),
        change_project_role(
            session_factory, workspace, bob.id, ProjectRole.manager, viewer.version
        ),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, ConflictError)]
    winners = [r for r in results if not isinstance(r, BaseException)]
    assert len(conflicts) == 1
    assert len(winners) == 1
    assert winners[0].version == viewer.version + 1

    async with session_factory() as session:
        project = await EntityStore(session).get(Project, workspace.project.id)
        roles = [m.role for m in project.members if m.user_id == bob.id]
        assert roles == [next(m.role for m in winners[0].members if m.user_id == bob.id)]
