"""Test fixtures — a fresh in-memory SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Env vars are set before anything from gameshelf is imported, because
   Settings() validates at import time (the JWT secret is required).
2. Each test gets its own in-memory SQLite engine (StaticPool keeps the
   single connection alive) with all tables created from the models.
3. The app's get_db is overridden so every request opens its own session
   on that engine, the same way it would against PostgreSQL.

Auth is NOT mocked: requests carry real tokens through the real
middleware, so these tests exercise the whole pipeline.
"""

import os
import uuid

os.environ.setdefault(
    "GAMESHELF_JWT_SECRET", "test-secret-0123456789-abcdefghijklmnopqrstuvwxyz"
)
os.environ.setdefault("GAMESHELF_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GAMESHELF_BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from gameshelf.db.engine import build_engine, get_db  # noqa: E402
from gameshelf.db.models import Base  # noqa: E402
from gameshelf.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture()
async def db_engine():
    engine = build_engine(TEST_DB_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for service-level tests (no HTTP)."""
    async with session_factory() as session:
        yield session


def _override_db(target_app, session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    target_app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the real app with only the database swapped."""
    _override_db(app, session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def app_client(session_factory):
    """Factory for clients on a custom-built app (e.g. different settings).

    Usage: ac = await app_client(create_app(cfg))
    """
    opened = []

    async def _make(custom_app):
        _override_db(custom_app, session_factory)
        ac = AsyncClient(transport=ASGITransport(app=custom_app), base_url="http://test")
        opened.append((custom_app, ac))
        return ac

    yield _make

    for custom_app, ac in opened:
        await ac.aclose()
        custom_app.dependency_overrides.clear()


@pytest.fixture()
def register(client):
    """Register a fresh user through the API; returns the auth response body."""

    async def _register(name="Player One", email=None, password="correct-horse-battery"):
        email = email or f"player-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/api/v1/auth/register",
            json={"email": email, "name": name, "password": password},
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _register