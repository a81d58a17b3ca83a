"""Integration test fixtures: seeded database and HTTP client.

All sessions share the single in-memory connection, so a test must commit
or roll back its own session before calling the API.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.api.app import create_app
from site_payroll.api.dependencies import get_app_settings, get_db_session


@pytest_asyncio.fixture
async def seed(session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Add objects and commit them."""

    async def _seed(*objects) -> None:
        session.add_all(objects)
        await session.commit()

    return _seed


@pytest_asyncio.fixture
async def app(session_factory, settings):
    """Application wired to the test database and settings."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_app_settings] = lambda: settings
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
