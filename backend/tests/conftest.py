"""Shared fixtures: a recording resource sink, a fake DB session and an API client."""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from resource_hub.core.deps import get_resource_sink
from resource_hub.core.limiter import limiter
from resource_hub.db.session import get_session
from resource_hub.imports.catalog import CatalogRegistry
from resource_hub.imports.errors import ImportTransportError
from resource_hub.imports.session import SessionStore
from resource_hub.main import app


class RecordingSink:
    """Stand-in for the resource store. Fails on the given 1-based attempts."""

    def __init__(self, fail_on_attempts: set[int] | None = None):
        self.fail_on_attempts = fail_on_attempts or set()
        self.attempts = 0
        self.calls: list[list[dict]] = []

    async def create_batch(self, records: list[dict]) -> None:
        self.attempts += 1
        if self.attempts in self.fail_on_attempts:
            raise ImportTransportError("resource store unavailable")
        self.calls.append(list(records))


@pytest.fixture
def make_sink():
    return RecordingSink


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def fake_db() -> MagicMock:
    db = MagicMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest_asyncio.fixture
async def client(sink, fake_db):
    limiter.enabled = False
    app.state.catalogs = CatalogRegistry()
    app.state.import_sessions = SessionStore(ttl=timedelta(minutes=60))
    app.dependency_overrides[get_resource_sink] = lambda: sink
    app.dependency_overrides[get_session] = lambda: fake_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
