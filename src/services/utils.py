"""Shared utility functions for service layer."""
from datetime import UTC, datetime, timedelta
from uuid import UUID

from models.base import utc_now


def escape_ilike(value: str) -> str:
    r"""
    Escape special ILIKE characters for safe use in LIKE/ILIKE patterns.

    LIKE/ILIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    This function escapes them so they match literally. Queries must pass
    escape="\\" since SQLite has no default escape character.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_ignore_case(text: str, term: str) -> bool:
    """Case-insensitive literal substring match used by in-memory search."""
    return term.casefold() in text.casefold()


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def next_timestamp(previous: datetime) -> datetime:
    """
    Return a timestamp strictly after `previous`.

    Normally the current time; bumps by one microsecond when the clock has
    not advanced (coarse clocks or back-to-back writes).
    """
    now = utc_now()
    previous = ensure_utc(previous)
    if now > previous:
        return now
    return previous + timedelta(microseconds=1)


def parse_uuid(value: str | UUID) -> UUID | None:
    """Parse an identifier, returning None for malformed input."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None
