"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDMixin
from models.note import Note
from models.user import User

__all__ = ["Base", "Note", "TimestampMixin", "UUIDMixin", "User"]
