"""Fixtures for client library tests."""
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import respx
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from notes_client.api_client import ApiClient
from notes_client.config import ClientConfig
from notes_client.local_store import InMemoryKeyValueStore
from notes_client.notes_state import NotesState
from notes_client.session import SessionState

MOCK_API_URL = "http://notes.example.com/api"


@pytest.fixture
def local_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
async def api(app: FastAPI) -> AsyncGenerator[ApiClient]:
    """API client wired to the in-process app."""
    http = AsyncClient(transport=ASGITransport(app=app), base_url="http://test/api")
    yield ApiClient(ClientConfig(), http_client=http)
    await http.aclose()


@pytest.fixture
def session(api: ApiClient, local_store: InMemoryKeyValueStore) -> SessionState:
    return SessionState(api, local_store)


@pytest.fixture
async def logged_in(session: SessionState) -> SessionState:
    """A session registered and logged in as Alice."""
    assert await session.register("Alice", "alice@example.com", "secret1")
    return session


@pytest.fixture
def notes_state(logged_in: SessionState, local_store: InMemoryKeyValueStore) -> NotesState:
    return NotesState(logged_in.api, local_store)


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter]:
    """Mock the Notes API at MOCK_API_URL."""
    with respx.mock(base_url=MOCK_API_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def mocked_api(local_store: InMemoryKeyValueStore) -> AsyncGenerator[ApiClient]:
    """API client pointed at the respx-mocked base URL, with a session token stored."""
    local_store.set("token", "test-token")
    client = ApiClient(ClientConfig(api_url=MOCK_API_URL))
    SessionState(client, local_store)
    yield client
    await client.aclose()


@pytest.fixture
def sample_note() -> dict[str, Any]:
    """Sample note response data."""
    return {
        "id": "5b0f7f4e-3c1a-4f7e-9a51-3f1d0c8a2b10",
        "user_id": "0e7d6c5b-4a39-4281-9f70-6e5d4c3b2a19",
        "title": "Shopping",
        "content": "milk, eggs",
        "created_at": "2026-01-01T00:00:00Z",
        "updated_at": "2026-01-01T00:00:00Z",
    }
