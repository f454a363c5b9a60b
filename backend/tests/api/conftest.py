"""API test fixtures — FastAPI test client over the in-memory database.

Invariants:
    - get_db dependency overridden to use the test session factory
    - db_manager patched so the readiness probe sees the test engine
    - as_user(user) returns the X-User-Id header for that principal

Design Decisions:
    - No lifespan run: ASGITransport does not send startup events, so init_db never
      touches the configured DATABASE_URL
"""

import pytest
from httpx import ASGITransport, AsyncClient

import collabspace.infrastructure.database as db_module
from collabspace.infrastructure.database import DatabaseSessionManager, get_db
from collabspace.main import app


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


def as_user(user) -> dict[str, str]:
    return {"X-User-Id": str(user.id)}
