"""API test fixtures: the v1 router over the in-memory test database."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from elections_api.api.router import create_router
from elections_api.core.config import Settings, get_settings
from elections_api.core.dependencies import get_async_session


@pytest.fixture
def app(async_session: AsyncSession, settings: Settings) -> FastAPI:
    """v1 router with the session and settings dependencies overridden."""
    app = FastAPI()
    app.include_router(create_router(settings))

    async def _session() -> AsyncGenerator[AsyncSession]:
        yield async_session

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def viewer_headers(viewer_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {viewer_token}"}
