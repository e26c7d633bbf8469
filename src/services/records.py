"""Plain records returned by the stores, independent of the storage backend."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class NoteRecord:
    """A stored note as seen by services and API handlers."""

    id: UUID
    user_id: UUID
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserRecord:
    """A stored user, including the password hash (never serialized)."""

    id: UUID
    name: str
    email: str
    password_hash: str
    created_at: datetime
