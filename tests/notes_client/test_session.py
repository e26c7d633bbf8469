"""Tests for the client session."""
import httpx
import pytest
import respx

from notes_client.api_client import ApiClient
from notes_client.errors import ApiError
from notes_client.local_store import InMemoryKeyValueStore
from notes_client.session import SessionState


async def test_register_logs_in(session: SessionState, local_store: InMemoryKeyValueStore) -> None:
    assert await session.register("Alice", "alice@example.com", "secret1")

    assert session.current_token() == "test-token"
    assert session.user is not None
    assert session.user.email == "alice@example.com"
    assert local_store.get("token") is not None
    assert session.loading is False


async def test_register_validation_is_local(session: SessionState) -> None:
    """Invalid input never reaches the server."""
    assert not await session.register("", "alice@example.com", "secret1")
    assert session.error == "Please enter your name"
    assert not await session.register("Alice", "not-an-email", "secret1")
    assert session.error == "Please enter a valid email"
    assert not await session.register("Alice", "alice@example.com", "12345")
    assert session.error == "Password must be at least 6 characters"
    assert not session.is_authenticated

    session.clear_error()
    assert session.error is None


async def test_register_duplicate_shows_server_message(
    logged_in: SessionState, api: ApiClient,
) -> None:
    other = SessionState(api, InMemoryKeyValueStore())
    assert not await other.register("Alice 2", "alice@example.com", "secret1")
    assert other.error == "User already exists"


async def test_login_and_logout(
    logged_in: SessionState, local_store: InMemoryKeyValueStore,
) -> None:
    logged_in.logout()
    assert not logged_in.is_authenticated
    assert local_store.get("token") is None

    assert not await logged_in.login("alice@example.com", "wrong")
    assert logged_in.error == "Invalid credentials"

    assert await logged_in.login("alice@example.com", "secret1")
    assert logged_in.is_authenticated


async def test_restore_from_stored_token(
    logged_in: SessionState, api: ApiClient, local_store: InMemoryKeyValueStore,
) -> None:
    """A new session over the same store picks the user back up, once."""
    restored = SessionState(api, local_store)
    assert await restored.restore()
    assert restored.user == logged_in.user

    local_store.remove("token")
    assert await restored.restore()


async def test_restore_without_token(session: SessionState) -> None:
    assert not await session.restore()
    assert session.loading is False


async def test_restore_drops_invalid_token(
    session: SessionState, local_store: InMemoryKeyValueStore,
) -> None:
    local_store.set("token", "not-a-valid-token")

    assert not await session.restore()
    assert local_store.get("token") is None
    assert not session.is_authenticated


async def test_unauthorized_response_expires_session(
    mock_api: respx.MockRouter, mocked_api: ApiClient, local_store: InMemoryKeyValueStore,
) -> None:
    """A 401 on any call drops the token and points at the login page."""
    mock_api.get("/notes").mock(
        return_value=httpx.Response(401, json={"detail": "Token is not valid"}),
    )
    session = mocked_api.session
    assert isinstance(session, SessionState)
    assert session.current_token() == "test-token"

    with pytest.raises(ApiError) as exc_info:
        await mocked_api.list_notes()
    assert exc_info.value.category == "auth"

    assert local_store.get("token") is None
    assert session.redirect_to == "/login"


async def test_token_sent_in_fixed_header(
    mock_api: respx.MockRouter, mocked_api: ApiClient,
) -> None:
    route = mock_api.get("/notes").mock(return_value=httpx.Response(200, json=[]))

    await mocked_api.list_notes()

    assert route.calls.last.request.headers["x-auth-token"] == "test-token"
    assert "authorization" not in route.calls.last.request.headers
