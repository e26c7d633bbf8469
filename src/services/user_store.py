"""
Credential Store: persistence for user records.

Mirrors `services.note_store`: an abstract `UserStore` with a SQLAlchemy
adapter and an in-memory adapter. Email uniqueness is enforced by the store
itself (unique index for SQL, dict key for memory).
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.base import utc_now
from models.user import User
from services.exceptions import DuplicateEmailError, StoreUnavailableError
from services.records import UserRecord
from services.utils import ensure_utc

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively and without surrounding whitespace."""
    return email.strip().lower()


class UserStore(ABC):
    """User persistence. Users are created and read, never updated."""

    @abstractmethod
    async def create(self, name: str, email: str, password_hash: str) -> UserRecord:
        """
        Persist a new user.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """

    @abstractmethod
    async def find_by_email(self, email: str) -> UserRecord | None:
        """Return the user with this email, or None."""

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user with this id, or None."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise StoreUnavailableError if the store cannot serve requests."""


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        created_at=ensure_utc(user.created_at),
    )


class SqlUserStore(UserStore):
    """User store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error("User store operation failed: %s", e, exc_info=True)
            raise StoreUnavailableError() from e

    async def create(self, name: str, email: str, password_hash: str) -> UserRecord:
        """
        Insert a user.

        Concurrent registrations with the same email race on the unique
        index; the loser gets DuplicateEmailError.
        """
        now = utc_now()
        email = normalize_email(email)
        user = User(
            id=uuid4(),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._transaction() as session:
                session.add(user)
                await session.flush()
                return _to_record(user)
        except IntegrityError as e:
            raise DuplicateEmailError(email) from e

    async def find_by_email(self, email: str) -> UserRecord | None:
        """Look up by normalized email."""
        async with self._transaction() as session:
            result = await session.execute(
                select(User).where(User.email == normalize_email(email)),
            )
            user = result.scalar_one_or_none()
            return _to_record(user) if user is not None else None

    async def find_by_id(self, user_id: UUID) -> UserRecord | None:
        """Look up by primary key."""
        async with self._transaction() as session:
            user = await session.get(User, user_id)
            return _to_record(user) if user is not None else None

    async def ping(self) -> None:
        """Run a trivial query."""
        async with self._transaction() as session:
            await session.execute(text("SELECT 1"))


class InMemoryUserStore(UserStore):
    """User store kept in process-local dicts keyed by id and email."""

    def __init__(self) -> None:
        self._users: dict[UUID, UserRecord] = {}
        self._ids_by_email: dict[str, UUID] = {}

    async def create(self, name: str, email: str, password_hash: str) -> UserRecord:
        """Insert a user, rejecting duplicate emails."""
        email = normalize_email(email)
        if email in self._ids_by_email:
            raise DuplicateEmailError(email)
        user = UserRecord(
            id=uuid4(),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=utc_now(),
        )
        self._users[user.id] = user
        self._ids_by_email[email] = user.id
        return user

    async def find_by_email(self, email: str) -> UserRecord | None:
        """Look up by normalized email."""
        user_id = self._ids_by_email.get(normalize_email(email))
        return self._users.get(user_id) if user_id is not None else None

    async def find_by_id(self, user_id: UUID) -> UserRecord | None:
        """Look up by id."""
        return self._users.get(user_id)

    async def ping(self) -> None:
        """Always available."""
        return None
