"""User model for storing registered users."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from models.note import Note


class User(Base, UUIDMixin, TimestampMixin):
    """User model - stores credentials for email/password login."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        comment="Normalized to lower case before storage",
    )
    password_hash: Mapped[str] = mapped_column(
        String(128),
        comment="bcrypt hash (salt embedded) - plaintext is never stored",
    )

    notes: Mapped[list["Note"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )
