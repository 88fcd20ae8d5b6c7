"""Integration-test fixtures.

Requires a migrated PostgreSQL and a Redis (``alembic upgrade head``) and
RUN_INTEGRATION=1; otherwise the directory is not collected.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import os
import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from tests.integration.support import access_token, create_release

if not os.environ.get("RUN_INTEGRATION"):
    collect_ignore_glob = ["test_*.py"]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped authenticated client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers.update({"Authorization": f"Bearer {access_token()}"})
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def release_uuid() -> str:
    """A fresh release with no distribution chosen yet."""
    release_uuid = str(uuid.uuid4())
    await create_release(release_uuid)
    return release_uuid
