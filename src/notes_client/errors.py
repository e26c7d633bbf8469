"""
Client-side error types and HTTP error parsing.

Every failure the client surfaces is an ApiError with a category, so state
holders can decide what to do (drop the session, offer a fallback, show a
message) without inspecting httpx exceptions.
"""
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "validation",  # 400/422 - Malformed or missing input
    "auth",        # 401 - Missing, invalid or expired token
    "forbidden",   # 403 - Valid token, wrong owner
    "not_found",   # 404 - Identifier does not resolve
    "internal",    # 5xx or unexpected status
    "network",     # No response at all
    "timeout",     # Request exceeded the configured timeout
]

# Failures worth a user-initiated retry or the fallback update path
TRANSIENT_CATEGORIES: frozenset[str] = frozenset({"internal", "network", "timeout"})

SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
TIMEOUT_MESSAGE = "Request timed out. Please check your connection and try again."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server"


class ApiError(Exception):
    """A failed API call, classified by category."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.category = category
        self.message = message
        self.status_code = status_code
        # Message reported by the server, when it sent one
        self.detail = detail
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        return self.category in TRANSIENT_CATEGORIES

    def user_message(self, fallback: str) -> str:
        """
        Message to show the user.

        Prefers the server's own message, then the connection-level message for
        auth/network/timeout failures, then the caller's operation-specific
        fallback.
        """
        if self.detail:
            return self.detail
        if self.category in ("auth", "network", "timeout"):
            return self.message
        return fallback


class FallbackNotAllowedError(Exception):
    """Raised when the fallback update path is used before the primary path failed."""

    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(f"Fallback update for note {note_id} requires a failed primary update first")


def parse_http_error(e: httpx.HTTPStatusError) -> ApiError:  # noqa: PLR0911
    """Parse an HTTP status error into an ApiError."""
    status = e.response.status_code
    detail = _extract_detail(e.response)

    if status == 401:
        return ApiError("auth", SESSION_EXPIRED_MESSAGE, status)

    if status == 403:
        return ApiError("forbidden", "Access denied", status, detail)

    if status == 404:
        return ApiError("not_found", "Not found", status, detail)

    if status in (400, 422):
        return ApiError("validation", "Validation error", status, detail)

    if status >= 500:
        return ApiError("internal", "Server error", status, detail)

    return ApiError("internal", f"API error {status}", status, detail)


def _extract_detail(response: httpx.Response) -> str | None:
    """Pull a human-readable message out of an error body, if there is one."""
    try:
        body: Any = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    detail = body.get("detail", body.get("msg"))
    if isinstance(detail, str):
        return detail or None
    if isinstance(detail, list):
        # FastAPI validation errors are a list of error objects
        messages = []
        for err in detail:
            if isinstance(err, dict):
                loc = err.get("loc", ["unknown"])
                field = loc[-1] if loc else "unknown"
                messages.append(f"{field}: {err.get('msg', 'invalid')}")
        return "; ".join(messages) or None
    return None
