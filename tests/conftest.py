"""
Pytest configuration for CollabHub backend tests.

Each test gets its own SQLite database file (so separate sessions really
are separate connections), a fake Redis, and an httpx client bound to the
ASGI app with both dependencies overridden.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import uuid  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fakeredis import aioredis as fake_aioredis  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from collabhub.core.database import get_db  # noqa: E402
from collabhub.core.dependencies import get_redis  # noqa: E402
from collabhub.main import app  # noqa: E402
from collabhub.models import Base, User, UserRole  # noqa: E402
from collabhub.schemas.project import ProjectCreateRequest  # noqa: E402
from collabhub.schemas.task import TaskCreateRequest  # noqa: E402
from collabhub.schemas.team import TeamCreateRequest  # noqa: E402
from collabhub.services.authorization import Principal  # noqa: E402
from collabhub.services.project_service import ProjectService  # noqa: E402
from collabhub.services.task_service import TaskService  # noqa: E402
from collabhub.services.team_service import TeamService  # noqa: E402

# Users created straight in the database never log in; any string will do.
FAKE_PASSWORD_HASH = "not-a-real-bcrypt-hash"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'collabhub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis():
    client = fake_aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()


@pytest.fixture
async def client(session_factory, redis):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Insert a user directly and return it."""

    async def _make_user(username: str | None = None, role: UserRole = UserRole.user) -> User:
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=FAKE_PASSWORD_HASH,
            role=role,
        )
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
async def workspace(db, make_user):
    """An owner with one team, one project in it and one task in that."""
    owner = await make_user("owner")
    principal = Principal.from_user(owner)
    team = await TeamService(db).create_team(TeamCreateRequest(name="Core"), principal)
    project = await ProjectService(db).create_project(
        ProjectCreateRequest(name="Launch", team_id=team.id), principal
    )
    task = await TaskService(db).create_task(
        TaskCreateRequest(title="Ship it", project_id=project.id), principal
    )
    return SimpleNamespace(
        owner=owner, principal=principal, team=team, project=project, task=task
    )
