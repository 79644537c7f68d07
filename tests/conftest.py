"""
Pytest configuration for the LearnHub suite.

Every test that touches storage gets its own throwaway SQLite file, created
from the ORM metadata; nothing is shared between tests. Identities are real
session cookies minted with the production JWT strategy.
"""
import itertools
import os
from contextlib import AsyncExitStack

import httpx
import pytest
from httpx import ASGITransport

# Settings are read once at import; pin them before anything from learnhub loads.
os.environ["SECRET"] = "test-secret-please-do-not-use-in-production"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["OWNER_OPEN_ID"] = "owner-open-id"
os.environ["RUN_DB_CREATE_ALL"] = "false"
os.environ["SEED_DEMO_CONTENT"] = "false"

from learnhub import database  # noqa: E402
from learnhub.models import Role  # noqa: E402
from learnhub.services.users import upsert_user  # noqa: E402
from learnhub.settings.config import settings  # noqa: E402
from learnhub.users import issue_session_token, password_helper  # noqa: E402

TEST_PASSWORD = "correct horse battery staple"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(anyio_backend, tmp_path):
    database.init_engine(f"sqlite+aiosqlite:///{tmp_path / 'learnhub-test.db'}")
    await database.create_all()
    try:
        yield database.engine
    finally:
        await database.dispose_engine()


@pytest.fixture
async def db(engine):
    async with database.session_factory()() as session:
        yield session


@pytest.fixture
def make_user(engine):
    """Insert a user with the given role and return it (committed)."""
    counter = itertools.count(1)

    async def _make(role: Role = Role.STUDENT, **fields):
        n = next(counter)
        async with database.session_factory()() as session:
            user = await upsert_user(
                session,
                open_id=fields.pop("open_id", f"user-{role.value.lower()}-{n}"),
                external_id=fields.pop("external_id", f"EXT-{role.value}-{n}"),
                hashed_password=password_helper.hash(TEST_PASSWORD),
                first_name=fields.pop("first_name", f"First{n}"),
                last_name=fields.pop("last_name", f"Last{n}"),
                email=fields.pop("email", None),
                role=role,
            )
            await session.commit()
        return user

    return _make


@pytest.fixture
async def client_for(engine):
    """Factory for ASGI clients; pass a user to carry their session cookie."""
    from learnhub.main import app

    async with AsyncExitStack() as stack:

        async def _client(user=None) -> httpx.AsyncClient:
            cookies = None
            if user is not None:
                cookies = {settings.SESSION_COOKIE_NAME: await issue_session_token(user)}
            return await stack.enter_async_context(
                httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test", cookies=cookies)
            )

        yield _client


@pytest.fixture
async def teacher(make_user):
    return await make_user(Role.TEACHER, first_name="Tala", last_name="Teacher")


@pytest.fixture
async def student(make_user):
    return await make_user(Role.STUDENT, first_name="Sami", last_name="Student")


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture
async def teacher_client(client_for, teacher):
    return await client_for(teacher)


@pytest.fixture
async def student_client(client_for, student):
    return await client_for(student)


@pytest.fixture
async def admin_client(client_for, admin):
    return await client_for(admin)


@pytest.fixture
async def anon_client(client_for):
    return await client_for()


COURSE_BODY = {
    "title": "Algebra",
    "titleAr": "الجبر",
    "description": "Linear equations and friends",
    "tags": ["math"],
    "visibility": "PUBLIC",
}


async def create_course(client: httpx.AsyncClient, **overrides) -> int:
    resp = await client.post("/api/courses/create", json={**COURSE_BODY, **overrides})
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


async def create_unit(client: httpx.AsyncClient, course_id: int, order: int = 1, **overrides) -> int:
    body = {"courseId": course_id, "title": f"Unit {order}", "order": order, **overrides}
    resp = await client.post("/api/units/create", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


async def create_lecture(client: httpx.AsyncClient, unit_id: int, order: int = 1, **overrides) -> int:
    body = {
        "unitId": unit_id,
        "title": f"Lecture {order}",
        "order": order,
        "videoUrl": f"https://cdn.example.test/lecture-{order}.mp4",
        "durationSec": 600,
        **overrides,
    }
    resp = await client.post("/api/lectures/create", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]
