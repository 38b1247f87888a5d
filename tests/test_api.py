"""
HTTP-level tests.

Drives the API through httpx the way a client would: register, log in,
then walk a team through projects, tasks and comments.
"""

import inspect
import uuid

import pytest
import httpx
from sqlalchemy.exc import OperationalError

from collabhub.models import ReferenceField
from collabhub.routers import auth, comments, projects, tasks, teams, users
from collabhub.services.store import EntityStore

API = "/api/v1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def register(client: httpx.AsyncClient, username: str, password: str = "password123") -> dict:
    resp = await client.post(f"{API}/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
    })
    assert resp.status_code == 201, f"Register failed: {resp.text}"
    tokens = resp.json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    me = await client.get(f"{API}/auth/me", headers=headers)
    assert me.status_code == 200, me.text
    return {"id": me.json()["id"], "headers": headers, "tokens": tokens}


async def create_team(client: httpx.AsyncClient, user: dict, name: str = "Core") -> dict:
    resp = await client.post(f"{API}/teams", json={"name": name}, headers=user["headers"])
    assert resp.status_code == 201, f"Create team failed: {resp.text}"
    return resp.json()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert "X-Request-Id" in resp.headers


async def test_register_login_and_duplicate(client):
    await register(client, "alice")

    dup = await client.post(f"{API}/auth/register", json={
        "username": "alice",
        "email": "other@example.com",
        "password": "password123",
    })
    assert dup.status_code == 409
    assert dup.json()["detail"]["code"] == "USER_EXISTS"

    login = await client.post(f"{API}/auth/login", json={
        "email": "alice@example.com",
        "password": "password123",
    })
    assert login.status_code == 200
    assert login.json()["token_type"] == "bearer"

    bad = await client.post(f"{API}/auth/login", json={
        "email": "alice@example.com",
        "password": "wrongpass1",
    })
    assert bad.status_code == 401


async def test_missing_token_is_401(client):
    resp = await client.get(f"{API}/teams/my-teams")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "MISSING_TOKEN"


async def test_logout_revokes_access_token(client):
    alice = await register(client, "alice")
    resp = await client.post(
        f"{API}/auth/logout",
        json={"refresh_token": alice["tokens"]["refresh_token"]},
        headers=alice["headers"],
    )
    assert resp.status_code == 200

    after = await client.get(f"{API}/auth/me", headers=alice["headers"])
    assert after.status_code == 401
    assert after.json()["detail"]["code"] == "TOKEN_REVOKED"

    refresh = await client.post(
        f"{API}/auth/refresh", json={"refresh_token": alice["tokens"]["refresh_token"]}
    )
    assert refresh.status_code == 401


async def test_refresh_rotates_tokens(client):
    alice = await register(client, "alice")
    first = await client.post(
        f"{API}/auth/refresh", json={"refresh_token": alice["tokens"]["refresh_token"]}
    )
    assert first.status_code == 200
    reused = await client.post(
        f"{API}/auth/refresh", json={"refresh_token": alice["tokens"]["refresh_token"]}
    )
    assert reused.status_code == 401


async def test_change_password(client):
    alice = await register(client, "alice")
    wrong = await client.put(
        f"{API}/users/change-password",
        json={"current_password": "nope", "new_password": "newpassword9"},
        headers=alice["headers"],
    )
    assert wrong.status_code == 400
    assert wrong.json()["detail"]["code"] == "INVALID_PASSWORD"

    ok = await client.put(
        f"{API}/users/change-password",
        json={"current_password": "password123", "new_password": "newpassword9"},
        headers=alice["headers"],
    )
    assert ok.status_code == 200
    login = await client.post(f"{API}/auth/login", json={
        "email": "alice@example.com",
        "password": "newpassword9",
    })
    assert login.status_code == 200


# ---------------------------------------------------------------------------
# Collaboration scenario
# ---------------------------------------------------------------------------

async def test_team_project_task_comment_flow(client):
    alice = await register(client, "alice")
    bob = await register(client, "bob")

    team = await create_team(client, alice)
    assert team["members"][0]["user"]["username"] == "alice"

    # Bob joins as a plain member and cannot create projects.
    resp = await client.post(
        f"{API}/teams/{team['id']}/members",
        json={"user_id": bob["id"], "role": "member"},
        headers=alice["headers"],
    )
    assert resp.status_code == 200
    assert resp.json()["version"] == team["version"] + 1

    denied = await client.post(
        f"{API}/projects",
        json={"name": "Launch", "team_id": team["id"]},
        headers=bob["headers"],
    )
    assert denied.status_code == 403
    detail = denied.json()["detail"]
    assert detail["code"] == "FORBIDDEN"
    assert detail["resource"] == "team"
    assert detail["action"] == "create_project"

    project = (await client.post(
        f"{API}/projects",
        json={"name": "Launch", "team_id": team["id"], "tags": ["q3"]},
        headers=alice["headers"],
    )).json()
    assert project["team"]["name"] == "Core"

    team_view = (await client.get(f"{API}/teams/{team['id']}", headers=bob["headers"])).json()
    assert [p["id"] for p in team_view["projects"]] == [project["id"]]

    resp = await client.post(
        f"{API}/projects/{project['id']}/members",
        json={"user_id": bob["id"], "role": "contributor"},
        headers=alice["headers"],
    )
    assert resp.status_code == 200

    task = await client.post(
        f"{API}/tasks",
        json={"title": "Write release notes", "project_id": project["id"], "assigned_to": [bob["id"]]},
        headers=bob["headers"],
    )
    assert task.status_code == 201, task.text
    task = task.json()
    assert task["assigned_to"][0]["username"] == "bob"

    done = await client.put(
        f"{API}/tasks/{task['id']}", json={"status": "completed"}, headers=bob["headers"]
    )
    assert done.json()["completed_at"] is not None

    comment = (await client.post(
        f"{API}/comments",
        json={"content": "Draft is up", "task_id": task["id"], "mentions": [alice["id"]]},
        headers=bob["headers"],
    )).json()
    reply = (await client.post(
        f"{API}/comments",
        json={"content": "Thanks", "task_id": task["id"], "parent_comment_id": comment["id"]},
        headers=alice["headers"],
    )).json()

    threads = (await client.get(f"{API}/comments/task/{task['id']}", headers=bob["headers"])).json()
    assert threads["total"] == 1
    assert threads["threads"][0]["comment"]["mentions"][0]["username"] == "alice"
    assert [r["id"] for r in threads["threads"][0]["replies"]] == [reply["id"]]

    # Bob cannot delete alice's reply; he is a contributor, not a manager.
    resp = await client.delete(f"{API}/comments/{reply['id']}", headers=bob["headers"])
    assert resp.status_code == 403

    resp = await client.delete(f"{API}/comments/{comment['id']}", headers=bob["headers"])
    assert resp.status_code == 200
    gone = await client.get(f"{API}/comments/task/{task['id']}", headers=bob["headers"])
    assert gone.json()["total"] == 0

    profile = (await client.get(f"{API}/users/profile", headers=bob["headers"])).json()
    assert [t["id"] for t in profile["teams"]] == [team["id"]]


async def test_authorize_endpoint(client):
    alice = await register(client, "alice")
    bob = await register(client, "bob")
    team = await create_team(client, alice)

    body = {"resource_kind": "team", "resource_id": team["id"], "action": "delete_team"}
    allowed = await client.post(f"{API}/authorize", json=body, headers=alice["headers"])
    assert allowed.json()["allowed"] is True

    denied = await client.post(f"{API}/authorize", json=body, headers=bob["headers"])
    assert denied.status_code == 200
    assert denied.json()["allowed"] is False

    missing = await client.post(
        f"{API}/authorize",
        json={**body, "resource_id": str(uuid.uuid4())},
        headers=alice["headers"],
    )
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "TEAM_NOT_FOUND"

    mismatch = await client.post(
        f"{API}/authorize",
        json={**body, "action": "update_task"},
        headers=alice["headers"],
    )
    assert mismatch.status_code == 422


async def test_malformed_id_is_rejected(client):
    alice = await register(client, "alice")
    resp = await client.get(f"{API}/teams/not-a-uuid", headers=alice["headers"])
    assert resp.status_code == 422


async def test_private_team_hidden_from_outsiders(client):
    alice = await register(client, "alice")
    mallory = await register(client, "mallory")
    team = await create_team(client, alice)
    resp = await client.get(f"{API}/teams/{team['id']}", headers=mallory["headers"])
    assert resp.status_code == 403


async def test_stale_expected_version_is_409(client):
    alice = await register(client, "alice")
    bob = await register(client, "bob")
    team = await create_team(client, alice)
    resp = await client.post(
        f"{API}/teams/{team['id']}/members",
        json={"user_id": bob["id"], "expected_version": team["version"] + 1},
        headers=alice["headers"],
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "VERSION_CONFLICT"


async def test_propagation_failure_is_500_with_resource(client, session_factory, monkeypatch):
    alice = await register(client, "alice")

    async def broken_push(self, field, owner_id, target_id):
        raise OperationalError("INSERT INTO back_references", {}, Exception("database is locked"))

    monkeypatch.setattr(EntityStore, "push", broken_push)
    resp = await client.post(f"{API}/teams", json={"name": "Core"}, headers=alice["headers"])

    assert resp.status_code == 500
    detail = resp.json()["detail"]
    assert detail["code"] == "PROPAGATION_FAILED"
    assert detail["event"] == "team_created"
    assert detail["resource"]["name"] == "Core"

    # The team itself was committed; only alice's team list is stale.
    monkeypatch.undo()
    team_id = detail["resource"]["id"]
    fetched = await client.get(f"{API}/teams/{team_id}", headers=alice["headers"])
    assert fetched.status_code == 200
    async with session_factory() as session:
        teams = await EntityStore(session).references(ReferenceField.user_teams, uuid.UUID(alice["id"]))
    assert teams == []


@pytest.mark.parametrize("path", ["teams", "projects", "tasks"])
async def test_unknown_resource_is_404(client, path):
    alice = await register(client, "alice")
    resp = await client.get(f"{API}/{path}/{uuid.uuid4()}", headers=alice["headers"])
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "factory",
    [
        teams.get_team_service,
        projects.get_project_service,
        tasks.get_task_service,
        comments.get_comment_service,
        users.get_user_service,
    ],
)
def test_entity_services_depend_on_the_database_only(factory):
    assert list(inspect.signature(factory).parameters) == ["db"]


def test_auth_service_keeps_redis_for_token_revocation():
    assert list(inspect.signature(auth.get_auth_service).parameters) == ["db", "redis"]
