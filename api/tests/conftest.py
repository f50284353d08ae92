"""Shared fixtures: the real FastAPI app against a throwaway SQLite file.

Tables are created with a sync engine on the same file; the app gets an
aiosqlite session through ``dependency_overrides[get_db]``.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PUBLIC_API_URL", "https://optimeleon.test")

import pytest  # noqa: E402
from sqlalchemy import create_engine, text  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from starlette.testclient import TestClient  # noqa: E402

from app.core.database import create_engine_for, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "optimeleon.sqlite"


@pytest.fixture
def sync_engine(db_path):
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(db_path, sync_engine):
    engine = create_engine_for(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class BrokenSession:
    """Stands in for a session whose database is unreachable."""

    async def execute(self, *args, **kwargs):
        raise RuntimeError("database unavailable")

    def add(self, obj):
        raise RuntimeError("database unavailable")

    async def commit(self):
        raise RuntimeError("database unavailable")

    async def rollback(self):
        return None


@pytest.fixture
def broken_client():
    async def override_get_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_project(client):
    def _make(name="Landing page", domain="example.com", is_active=True):
        resp = client.post("/api/v1/projects", json={"name": name, "domain": domain})
        assert resp.status_code == 201, resp.text
        project = resp.json()
        if not is_active:
            resp = client.patch(f"/api/v1/projects/{project['id']}", json={"is_active": False})
            assert resp.status_code == 200, resp.text
            project = resp.json()
        return project

    return _make


@pytest.fixture
def fetch_events(sync_engine):
    def _fetch(project_id):
        with sync_engine.connect() as conn:
            rows = conn.execute(
                text(
                    "SELECT id, project_id, visitor_id, variation, timestamp, user_agent, referrer "
                    "FROM visitor_events WHERE project_id = :p ORDER BY timestamp"
                ),
                {"p": project_id},
            )
            return [dict(row._mapping) for row in rows]

    return _fetch
