"""Tests for the health endpoint."""
from fastapi import FastAPI
from httpx import AsyncClient

from services.exceptions import StoreUnavailableError
from services.note_store import InMemoryNoteStore
from services.storage import Stores, get_stores


async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "storage": "memory", "database": "healthy"}


class DownNoteStore(InMemoryNoteStore):
    async def ping(self) -> None:
        raise StoreUnavailableError("database unreachable")


async def test_health_check_degraded(app: FastAPI, client: AsyncClient, stores: Stores) -> None:
    """A failing store probe reports degraded instead of raising."""
    app.dependency_overrides[get_stores] = lambda: Stores(
        notes=DownNoteStore(), users=stores.users, backend="database",
    )

    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "storage": "database", "database": "unhealthy"}
