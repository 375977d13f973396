from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from roster.core import rate_limit
from roster.core.config import Settings
from roster.main import app
from roster.models.employee import EmployeeRecord
from roster.services.record_store import RecordStore


@pytest.fixture(autouse=True)
def reset_rate_limit():
    rate_limit.storage.reset()
    yield
    rate_limit.storage.reset()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def sqlite_settings(tmp_path) -> Settings:
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'roster.db'}")


@pytest.fixture
async def store(sqlite_settings):
    record_store = RecordStore()
    await record_store.initialize(sqlite_settings)
    yield record_store
    await record_store.close()


@pytest.fixture
def sample_record() -> EmployeeRecord:
    return EmployeeRecord(
        id=7,
        name="Jane Doe",
        email="jane.doe@example.com",
        position="Engineer",
        department="Engineering",
        photo_url=None,
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
