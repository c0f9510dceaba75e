"""Pytest fixtures."""

from collections.abc import AsyncIterator, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings
from app.database import Base, get_session, get_session_factory
from app.main import app
from app.services.audit_store import AuditStore


class FakeClock:
    """Settable clock for store timestamps.

    Parameters
    ----------
    now : datetime
        Initial time.
    """

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        """Move the clock forward by a ``timedelta`` worth of keyword arguments."""
        self.now += timedelta(**delta)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Reset cached settings around each test.

    Yields
    ------
    None
        Clears the settings cache before and after the test.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
async def session_factory(
    tmp_path: Path,
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create a session factory backed by a per-test SQLite file.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory for test database.

    Yields
    ------
    async_sessionmaker[AsyncSession]
        Factory bound to a freshly created schema.
    """
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    await engine.dispose()


@pytest.fixture()
def clock() -> FakeClock:
    """Return a clock frozen at a fixed UTC instant."""
    return FakeClock(datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store(
    session_factory: async_sessionmaker[AsyncSession], clock: FakeClock
) -> AuditStore:
    """Return an audit store using the fake clock."""
    return AuditStore(
        session_factory, default_page_size=10, max_page_size=100, clock=clock
    )


@pytest.fixture()
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """Create a test HTTP client backed by SQLite.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for the test database.

    Yields
    ------
    AsyncClient
        Configured test client.
    """

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    """Bootstrap the first administrator and return its auth headers.

    Parameters
    ----------
    client : AsyncClient
        Test HTTP client.

    Returns
    -------
    dict[str, str]
        Authorization header for the administrator.
    """
    response = await client.post("/v1/bootstrap", json={"username": "root"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
