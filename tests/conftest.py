"""
Test configuration and fixtures for the share store.
This centralizes all test setup, making individual tests clean.

Every test gets fresh in-memory stores and a controllable clock, injected
through FastAPI's dependency overrides (API tests) or passed directly to the
services (service tests).
"""

import os

# In-memory backends before settings are loaded (no db file / blob dir on import)
os.environ.setdefault("METADATA_BACKEND", "memory")
os.environ.setdefault("BLOB_BACKEND", "memory")

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from share_app.blobs.strategies import InMemoryBlobStore
from share_app.config import settings
from share_app.dependencies import (
    get_analytics_store,
    get_blob_store,
    get_clock,
    get_metadata_store,
)
from share_app.metadata.strategies import InMemoryMetadataStore
from share_app.services.admin_service import AdminService
from share_app.services.file_service import FileService
from share_app.services.link_service import LinkService
from share_app.services.text_service import TextService


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class YieldingMetadataStore(InMemoryMetadataStore):
    """Gives up the event loop on every read and write, like a networked store"""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value, ttl=None):
        await asyncio.sleep(0)
        await super().set(key, value, ttl=ttl)

    async def replace(self, key, value):
        await asyncio.sleep(0)
        return await super().replace(key, value)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def metadata_store():
    return InMemoryMetadataStore()


@pytest.fixture
def yielding_store():
    return YieldingMetadataStore()


@pytest.fixture
def analytics_store():
    return InMemoryMetadataStore(namespace="analytics")


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def link_service(metadata_store, analytics_store, clock):
    return LinkService(metadata_store, analytics_store, clock=clock)


@pytest.fixture
def file_service(metadata_store, blob_store, clock):
    return FileService(metadata_store, blob_store, max_file_size=1024, clock=clock)


@pytest.fixture
def text_service(metadata_store, blob_store, clock):
    return TextService(metadata_store, blob_store, max_text_size=1024, clock=clock)


@pytest.fixture
def admin_service(link_service, file_service, text_service, clock):
    return AdminService(link_service, file_service, text_service, clock=clock, max_page_limit=100)


@pytest.fixture
def client(metadata_store, analytics_store, blob_store, clock):
    """
    Test client with every store and the clock overridden.
    This is the main fixture that API tests use.
    """
    app.dependency_overrides[get_metadata_store] = lambda: metadata_store
    app.dependency_overrides[get_analytics_store] = lambda: analytics_store
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {settings.admin_password}"}
