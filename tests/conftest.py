"""Pytest fixtures for testing."""
import os

# Must be set before any app imports that trigger Settings validation
os.environ["JWT_SECRET"] = "test-jwt-secret-with-enough-entropy-0123456789"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEV_MODE"] = "false"
os.environ["REVEAL_FORBIDDEN"] = "false"

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from db.session import register_sqlite_functions  # noqa: E402
from models.base import Base  # noqa: E402
from services.storage import Stores, build_memory_stores  # noqa: E402

DEFAULT_PASSWORD = "secret1"


@pytest.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine shared across connections, with tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_sqlite_functions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def stores() -> Stores:
    """Fresh in-memory stores for each test."""
    return build_memory_stores()


@pytest.fixture
def app(stores: Stores) -> Generator[FastAPI]:
    """The application with its stores swapped for the test's stores."""
    # Clear the settings cache so it picks up the test environment
    from core.config import get_settings

    get_settings.cache_clear()

    from api.main import app as fastapi_app
    from services.storage import get_stores

    fastapi_app.dependency_overrides[get_stores] = lambda: stores

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Test client talking to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client


RegisterUser = Callable[..., Awaitable[str]]


@pytest.fixture
def register_user(client: AsyncClient) -> RegisterUser:
    """Register a user through the API and return their token."""
    async def _register(
        email: str, name: str = "Test User", password: str = DEFAULT_PASSWORD,
    ) -> str:
        response = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()["token"]

    return _register


@pytest.fixture
async def alice_headers(register_user: RegisterUser) -> dict[str, str]:
    """Auth headers for a freshly registered user."""
    token = await register_user("alice@example.com", name="Alice")
    return {"x-auth-token": token}


@pytest.fixture
async def bob_headers(register_user: RegisterUser) -> dict[str, str]:
    """Auth headers for a second, unrelated user."""
    token = await register_user("bob@example.com", name="Bob")
    return {"x-auth-token": token}
