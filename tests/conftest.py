"""Shared pytest fixtures for the timeline-builder test suite.

Core tests run against an in-memory persistence adapter; API tests drive
the FastAPI app through httpx without opening any backend.
"""

from __future__ import annotations

from typing import AsyncIterator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from timeline_builder.config import Settings
from timeline_builder.core.persistence import MemoryPersistence
from timeline_builder.core.store import DataStore
from timeline_builder.core.visibility import Role, ViewerContext
from timeline_builder.main import create_app
from timeline_builder.services.viewer_jwt import create_viewer_token

JWT_SECRET = "test-viewer-jwt-secret"


# ---------------------------------------------------------------------------
# Settings override
# ---------------------------------------------------------------------------

@pytest.fixture()
def settings() -> Settings:
    return Settings(
        persistence_backend="memory",
        viewer_jwt_secret=JWT_SECRET,
        viewer_jwt_expiry_minutes=60,
        cors_origins=["http://localhost:3000"],
    )


# ---------------------------------------------------------------------------
# Store + viewers
# ---------------------------------------------------------------------------

@pytest.fixture()
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture()
def store(persistence: MemoryPersistence) -> DataStore:
    return DataStore(persistence)


@pytest.fixture()
def gm() -> ViewerContext:
    return ViewerContext(user_id="gm-1", role=Role.GM)


@pytest.fixture()
def player() -> ViewerContext:
    return ViewerContext(user_id="player-1", role=Role.PLAYER)


# ---------------------------------------------------------------------------
# httpx AsyncClient wired to the FastAPI app
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def client(settings: Settings, store: DataStore) -> AsyncIterator[AsyncClient]:
    app = create_app(settings=settings, store=store)
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a viewer id and role."""

    def _headers(user_id: str = "gm-1", role: str = "gm") -> dict[str, str]:
        token = create_viewer_token(user_id=user_id, role=role, jwt_secret=JWT_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers
