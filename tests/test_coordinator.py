"""
Consistency coordinator tests: back-reference propagation and cascades.
"""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from collabhub.core.exceptions import PropagationFailedError
from collabhub.models import Comment, ReferenceField, TeamRole
from collabhub.schemas.comment import CommentCreateRequest
from collabhub.schemas.team import TeamMemberRequest
from collabhub.services.comment_service import CommentService
from collabhub.services.project_service import ProjectService
from collabhub.services.store import EntityStore
from collabhub.services.team_service import TeamService


async def comment_on(service, workspace, content, parent_id=None):
    return await service.create_comment(
        CommentCreateRequest(content=content, task_id=workspace.task.id, parent_comment_id=parent_id),
        workspace.principal,
    )


# ---------------------------------------------------------------------------
# Store primitives
# ---------------------------------------------------------------------------

async def test_push_is_append_if_absent(db):
    store = EntityStore(db)
    owner_id, target_id = uuid.uuid4(), uuid.uuid4()
    await store.push(ReferenceField.user_teams, owner_id, target_id)
    await store.push(ReferenceField.user_teams, owner_id, target_id)
    await store.commit()
    assert await store.references(ReferenceField.user_teams, owner_id) == [target_id]


async def test_pull_of_absent_value_is_a_no_op(db):
    store = EntityStore(db)
    owner_id = uuid.uuid4()
    await store.pull(ReferenceField.user_teams, owner_id, uuid.uuid4())
    await store.commit()
    assert await store.references(ReferenceField.user_teams, owner_id) == []


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

async def test_team_creation_lists_team_on_creator(db, workspace):
    teams = await EntityStore(db).references(ReferenceField.user_teams, workspace.owner.id)
    assert teams == [workspace.team.id]


async def test_project_creation_lists_project_on_team(db, workspace):
    team = await TeamService(db).get_team(workspace.team.id, workspace.principal)
    assert [p.id for p in team.projects] == [workspace.project.id]


async def test_role_change_does_not_duplicate_user_team_entry(db, workspace, make_user):
    bob = await make_user("bob")
    service = TeamService(db)
    await service.upsert_member(workspace.team.id, TeamMemberRequest(user_id=bob.id), workspace.principal)
    await service.upsert_member(
        workspace.team.id, TeamMemberRequest(user_id=bob.id, role=TeamRole.lead), workspace.principal
    )
    assert await EntityStore(db).references(ReferenceField.user_teams, bob.id) == [workspace.team.id]


async def test_member_removal_pulls_team_from_user(db, workspace, make_user):
    bob = await make_user("bob")
    service = TeamService(db)
    await service.upsert_member(workspace.team.id, TeamMemberRequest(user_id=bob.id), workspace.principal)
    await service.remove_member(workspace.team.id, bob.id, workspace.principal)
    assert await EntityStore(db).references(ReferenceField.user_teams, bob.id) == []


async def test_team_delete_pulls_team_from_every_member(db, workspace, make_user):
    bob = await make_user("bob")
    carol = await make_user("carol")
    service = TeamService(db)
    for user in (bob, carol):
        await service.upsert_member(
            workspace.team.id, TeamMemberRequest(user_id=user.id), workspace.principal
        )

    await service.delete_team(workspace.team.id, workspace.principal)

    store = EntityStore(db)
    for user in (workspace.owner, bob, carol):
        assert await store.references(ReferenceField.user_teams, user.id) == []

    # Projects outlive their team.
    project = await ProjectService(db).get_project(workspace.project.id)
    assert project.team_id == workspace.team.id
    assert project.team is None


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

async def test_reply_is_listed_on_task_and_parent(db, workspace):
    service = CommentService(db)
    top = await comment_on(service, workspace, "top")
    reply = await comment_on(service, workspace, "reply", parent_id=top.id)

    store = EntityStore(db)
    assert set(await store.references(ReferenceField.task_comments, workspace.task.id)) == {
        top.id,
        reply.id,
    }
    assert await store.references(ReferenceField.comment_replies, top.id) == [reply.id]


async def test_deleting_reply_pulls_it_from_parent(db, workspace):
    service = CommentService(db)
    top = await comment_on(service, workspace, "top")
    reply = await comment_on(service, workspace, "reply", parent_id=top.id)

    await service.delete_comment(reply.id, workspace.principal)

    store = EntityStore(db)
    assert await store.references(ReferenceField.comment_replies, top.id) == []
    assert reply.id not in await store.references(ReferenceField.task_comments, workspace.task.id)


async def test_deleting_comment_removes_direct_replies_only(db, workspace):
    service = CommentService(db)
    top = await comment_on(service, workspace, "top")
    reply = await comment_on(service, workspace, "reply", parent_id=top.id)
    grandchild = await comment_on(service, workspace, "grandchild", parent_id=reply.id)

    await service.delete_comment(top.id, workspace.principal)

    store = EntityStore(db)
    assert await store.get(Comment, top.id) is None
    assert await store.get(Comment, reply.id) is None
    survivor = await store.get(Comment, grandchild.id)
    assert survivor is not None
    assert survivor.parent_comment_id == reply.id

    # Only the deleted comment itself is pulled from the task's list.
    task_comments = await store.references(ReferenceField.task_comments, workspace.task.id)
    assert top.id not in task_comments
    assert reply.id in task_comments
    assert grandchild.id in task_comments
    # The removed reply's own replies list goes with it.
    assert await store.references(ReferenceField.comment_replies, reply.id) == []


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

def failing_push(fail_on: set[ReferenceField]):
    original = EntityStore.push

    async def push(self, field, owner_id, target_id):
        if field in fail_on:
            raise OperationalError("INSERT INTO back_references", {}, Exception("database is locked"))
        await original(self, field, owner_id, target_id)

    return push


async def test_failed_step_reports_committed_resource(db, workspace, monkeypatch):
    monkeypatch.setattr(EntityStore, "push", failing_push({ReferenceField.task_comments}))

    with pytest.raises(PropagationFailedError) as exc_info:
        await comment_on(CommentService(db), workspace, "hello")

    err = exc_info.value
    assert err.event == "comment_created"
    assert err.step == "push task.comments"
    assert err.resource["content"] == "hello"
    assert err.to_detail()["code"] == "PROPAGATION_FAILED"

    # The primary write stays committed.
    assert await EntityStore(db).get(Comment, uuid.UUID(err.resource["id"])) is not None


async def test_steps_before_a_failure_stay_applied(db, workspace, monkeypatch):
    service = CommentService(db)
    top = await comment_on(service, workspace, "top")
    monkeypatch.setattr(EntityStore, "push", failing_push({ReferenceField.comment_replies}))

    with pytest.raises(PropagationFailedError) as exc_info:
        await comment_on(service, workspace, "reply", parent_id=top.id)

    reply_id = uuid.UUID(exc_info.value.resource["id"])
    store = EntityStore(db)
    assert reply_id in await store.references(ReferenceField.task_comments, workspace.task.id)
    assert await store.references(ReferenceField.comment_replies, top.id) == []
