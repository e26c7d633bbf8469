"""
HTTP client for the Notes API.

Auth headers are built per request from the session the client was given; the
underlying httpx client never carries a default token. A 401 on any call tells
the session to expire itself.
"""
import logging
from types import TracebackType
from typing import Any, Protocol, Self, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from notes_client.config import ClientConfig
from notes_client.errors import (
    NETWORK_ERROR_MESSAGE,
    TIMEOUT_MESSAGE,
    UNEXPECTED_RESPONSE_MESSAGE,
    ApiError,
    parse_http_error,
)
from notes_client.models import Note, User

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TokenSource(Protocol):
    """What the API client needs from a session."""

    def current_token(self) -> str | None: ...

    def expire(self) -> None: ...


class ApiClient:
    """Typed wrappers over the Notes API endpoints."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        session: TokenSource | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.session = session
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.config.api_url,
            timeout=self.config.request_timeout,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.session.current_token() if self.session is not None else None
        if token:
            headers[self.config.auth_header_name] = token
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = parse_http_error(e)
            logger.warning(
                "%s %s failed with %s (%s)", method, path, error.status_code, error.category,
            )
            if error.category == "auth" and self.session is not None:
                self.session.expire()
            raise error from e
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise ApiError("timeout", TIMEOUT_MESSAGE) from e
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, type(e).__name__)
            raise ApiError("network", NETWORK_ERROR_MESSAGE) from e
        try:
            return response.json()
        except ValueError as e:
            logger.warning("%s %s returned a body that is not JSON", method, path)
            raise ApiError("internal", UNEXPECTED_RESPONSE_MESSAGE, response.status_code) from e

    @staticmethod
    def _parse(model: type[ModelT], data: Any) -> ModelT:  # noqa: ANN401
        """Validate a response payload, reporting a malformed one as an ApiError."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning("Response did not match %s: %s", model.__name__, e.error_count())
            raise ApiError("internal", UNEXPECTED_RESPONSE_MESSAGE) from e

    @classmethod
    def _parse_list(cls, model: type[ModelT], data: Any) -> list[ModelT]:  # noqa: ANN401
        if not isinstance(data, list):
            raise ApiError("internal", UNEXPECTED_RESPONSE_MESSAGE)
        return [cls._parse(model, item) for item in data]

    @staticmethod
    def _token(data: Any) -> str:  # noqa: ANN401
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str):
            raise ApiError("internal", UNEXPECTED_RESPONSE_MESSAGE)
        return token

    # Auth

    async def register(self, name: str, email: str, password: str) -> str:
        """Register and return the issued token."""
        data = await self._request(
            "POST", "/auth/register", json={"name": name, "email": email, "password": password},
        )
        return self._token(data)

    async def login(self, email: str, password: str) -> str:
        """Log in and return the issued token."""
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        return self._token(data)

    async def get_user(self) -> User:
        return self._parse(User, await self._request("GET", "/auth/user"))

    # Notes

    async def list_notes(self) -> list[Note]:
        return self._parse_list(Note, await self._request("GET", "/notes"))

    async def search_notes(self, query: str) -> list[Note]:
        data = await self._request("GET", "/notes/search", params={"query": query})
        return self._parse_list(Note, data)

    async def get_note(self, note_id: str) -> Note:
        return self._parse(Note, await self._request("GET", f"/notes/{note_id}"))

    async def create_note(self, title: str, content: str) -> Note:
        data = await self._request("POST", "/notes", json={"title": title, "content": content})
        return self._parse(Note, data)

    async def update_note(self, note_id: str, title: str, content: str) -> Note:
        data = await self._request(
            "PUT", f"/notes/{note_id}", json={"title": title, "content": content},
        )
        return self._parse(Note, data)

    async def test_update_note(self, note_id: str, title: str, content: str) -> Note:
        """Send an update through the fallback confirmation endpoint."""
        data = await self._request(
            "POST", f"/notes/test-update/{note_id}", json={"title": title, "content": content},
        )
        if not isinstance(data, dict) or not data.get("success"):
            raise ApiError("internal", "Test update failed")
        return self._parse(Note, data.get("note"))

    async def delete_note(self, note_id: str) -> None:
        await self._request("DELETE", f"/notes/{note_id}")

    async def health(self) -> dict[str, Any]:
        return await self._request("GET", "/health")
