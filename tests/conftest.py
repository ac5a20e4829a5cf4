"""
Pytest fixtures for TaskTrail tests.
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test config is set before importing tasktrail modules.
os.environ.setdefault("TASKTRAIL_ENV", "development")
os.environ.setdefault(
    "TASKTRAIL_DATABASE_URL",
    os.getenv("TASKTRAIL_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"),
)
os.environ.setdefault("TASKTRAIL_BCRYPT_ROUNDS", "4")

from tasktrail.auth import create_access_token, register_user
from tasktrail.config import settings
from tasktrail.db.base import Database
from tasktrail.engine import TaskTrailEngine
from tasktrail.models import Role
from tasktrail.observability.metrics import metrics


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield


@pytest.fixture
async def database():
    """Fresh database per test; in-memory sqlite unless overridden."""
    database = Database(settings.database_url)
    await database.drop_all()
    await database.create_all()
    yield database
    await database.close()


@pytest.fixture
async def engine(database):
    return TaskTrailEngine(database)


@pytest.fixture
async def admin(database):
    async with database.session() as session:
        return await register_user(session, "admin@example.com", "adminpassword", Role.ADMIN)


@pytest.fixture
async def user(database):
    async with database.session() as session:
        return await register_user(session, "user@example.com", "userpassword", Role.USER)


@pytest.fixture
def admin_actor(admin):
    return admin.as_actor()


@pytest.fixture
def user_actor(user):
    return user.as_actor()


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(admin)}"}


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
async def client(database):
    """Async test client bound to the per-test database."""
    from tasktrail.api.deps import get_database
    from tasktrail.main import app

    app.dependency_overrides[get_database] = lambda: database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
