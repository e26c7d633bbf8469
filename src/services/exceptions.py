"""Shared exceptions for service layer operations."""


class NoteNotFoundError(Exception):
    """Raised when a note identifier does not resolve to a stored note."""

    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(f"Note not found: {note_id}")


class NoteAccessDeniedError(Exception):
    """
    Raised when a note exists but belongs to a different user.

    Kept distinct from NoteNotFoundError so callers can audit it, while the
    API layer decides how much of the distinction to reveal.
    """

    def __init__(self, note_id: str, user_id: object) -> None:
        self.note_id = note_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own note {note_id}")


class DuplicateEmailError(Exception):
    """Raised when registering an email that already belongs to a user."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"User already exists: {email}")


class InvalidCredentialsError(Exception):
    """Raised when an email/password pair does not match a stored user."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InvalidTokenError(Exception):
    """Raised when a bearer token fails signature, expiry, or claim checks."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid token: {reason}")


class StoreUnavailableError(Exception):
    """
    Raised when the backing store cannot be reached or fails unexpectedly.

    Distinct from "not found": a failing store must never look like an empty
    result to callers.
    """

    def __init__(self, message: str = "Storage backend unavailable") -> None:
        super().__init__(message)
