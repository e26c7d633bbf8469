"""
Note Store: persistence for note records.

`NoteStore` is the interface the rest of the server depends on. Two adapters
implement it:

- `SqlNoteStore` - SQLAlchemy async, one short transaction per operation.
- `InMemoryNoteStore` - process-local dict, for local runs and tests.

The adapter is chosen once at startup (see `services.storage`).
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace
from uuid import UUID, uuid4

from sqlalchemy import delete, func, or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.base import utc_now
from models.note import Note
from services.exceptions import StoreUnavailableError
from services.records import NoteRecord
from services.utils import contains_ignore_case, ensure_utc, escape_ilike, next_timestamp

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "content"})


def _check_fields(fields: Mapping[str, str]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")


class NoteStore(ABC):
    """Single-record note persistence. No cross-note transactions."""

    @abstractmethod
    async def create(self, title: str, content: str, owner_id: UUID) -> NoteRecord:
        """Persist a new note and return it with its generated id and timestamps."""

    @abstractmethod
    async def list_by_owner(self, owner_id: UUID) -> list[NoteRecord]:
        """Return the owner's notes, newest-created first."""

    @abstractmethod
    async def search_by_owner(self, owner_id: UUID, query: str) -> list[NoteRecord]:
        """Return the owner's notes whose title or content contains `query` (any case)."""

    @abstractmethod
    async def find_by_id(self, note_id: UUID) -> NoteRecord | None:
        """Return the note or None. Not scoped to an owner."""

    @abstractmethod
    async def update_fields(
        self,
        note_id: UUID,
        fields: Mapping[str, str],
    ) -> NoteRecord | None:
        """
        Apply a partial update and refresh updated_at.

        Fields not present in `fields` are left unchanged. Returns None if
        the note does not exist.
        """

    @abstractmethod
    async def delete(self, note_id: UUID) -> bool:
        """Delete the note. Returns False if it did not exist."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise StoreUnavailableError if the store cannot serve requests."""


def _to_record(note: Note) -> NoteRecord:
    return NoteRecord(
        id=note.id,
        user_id=note.user_id,
        title=note.title,
        content=note.content,
        created_at=ensure_utc(note.created_at),
        updated_at=ensure_utc(note.updated_at),
    )


class SqlNoteStore(NoteStore):
    """Note store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession]:
        """
        Yield a session inside a transaction, committing on success.

        Database errors other than integrity violations are logged and
        re-raised as StoreUnavailableError.
        """
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error("Note store operation failed: %s", e, exc_info=True)
            raise StoreUnavailableError() from e

    async def create(self, title: str, content: str, owner_id: UUID) -> NoteRecord:
        """Insert a note; created_at and updated_at start equal."""
        now = utc_now()
        note = Note(
            id=uuid4(),
            user_id=owner_id,
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
        )
        async with self._transaction() as session:
            session.add(note)
            await session.flush()
            return _to_record(note)

    async def list_by_owner(self, owner_id: UUID) -> list[NoteRecord]:
        """List notes for an owner, newest first."""
        async with self._transaction() as session:
            result = await session.execute(
                select(Note)
                .where(Note.user_id == owner_id)
                .order_by(Note.created_at.desc()),
            )
            return [_to_record(note) for note in result.scalars().all()]

    async def search_by_owner(self, owner_id: UUID, query: str) -> list[NoteRecord]:
        """Case-insensitive literal substring search over title and content."""
        async with self._transaction() as session:
            if session.get_bind().dialect.name == "sqlite":
                # ILIKE on SQLite only folds ASCII; casefold is registered per connection
                pattern = f"%{escape_ilike(query.casefold())}%"
                matches = or_(
                    func.casefold(Note.title).like(pattern, escape="\\"),
                    func.casefold(Note.content).like(pattern, escape="\\"),
                )
            else:
                pattern = f"%{escape_ilike(query)}%"
                matches = or_(
                    Note.title.ilike(pattern, escape="\\"),
                    Note.content.ilike(pattern, escape="\\"),
                )
            result = await session.execute(
                select(Note)
                .where(Note.user_id == owner_id, matches)
                .order_by(Note.created_at.desc()),
            )
            return [_to_record(note) for note in result.scalars().all()]

    async def find_by_id(self, note_id: UUID) -> NoteRecord | None:
        """Fetch a single note by primary key."""
        async with self._transaction() as session:
            note = await session.get(Note, note_id)
            return _to_record(note) if note is not None else None

    async def update_fields(
        self,
        note_id: UUID,
        fields: Mapping[str, str],
    ) -> NoteRecord | None:
        """
        Update a note under a row lock.

        SELECT ... FOR UPDATE serializes concurrent writers to the same row on
        PostgreSQL (SQLite serializes writers at the database level). The last
        writer wins.
        """
        _check_fields(fields)
        async with self._transaction() as session:
            result = await session.execute(
                select(Note).where(Note.id == note_id).with_for_update(),
            )
            note = result.scalar_one_or_none()
            if note is None:
                return None

            for field, value in fields.items():
                setattr(note, field, value)
            note.updated_at = next_timestamp(note.updated_at)

            await session.flush()
            return _to_record(note)

    async def delete(self, note_id: UUID) -> bool:
        """Delete by primary key."""
        async with self._transaction() as session:
            result = await session.execute(delete(Note).where(Note.id == note_id))
            return result.rowcount > 0

    async def ping(self) -> None:
        """Run a trivial query."""
        async with self._transaction() as session:
            await session.execute(text("SELECT 1"))


class InMemoryNoteStore(NoteStore):
    """
    Note store kept in a process-local dict.

    Every method body runs without awaiting, so each operation is atomic
    with respect to other coroutines on the event loop. Records are frozen,
    so callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._notes: dict[UUID, NoteRecord] = {}

    def _newest_first(self, notes: list[NoteRecord]) -> list[NoteRecord]:
        # Reversed insertion order keeps newest-first for equal timestamps (stable sort)
        return sorted(reversed(notes), key=lambda note: note.created_at, reverse=True)

    async def create(self, title: str, content: str, owner_id: UUID) -> NoteRecord:
        """Insert a note; created_at and updated_at start equal."""
        now = utc_now()
        note = NoteRecord(
            id=uuid4(),
            user_id=owner_id,
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self._notes[note.id] = note
        return note

    async def list_by_owner(self, owner_id: UUID) -> list[NoteRecord]:
        """List notes for an owner, newest first."""
        return self._newest_first(
            [note for note in self._notes.values() if note.user_id == owner_id],
        )

    async def search_by_owner(self, owner_id: UUID, query: str) -> list[NoteRecord]:
        """Case-insensitive literal substring search over title and content."""
        return self._newest_first([
            note
            for note in self._notes.values()
            if note.user_id == owner_id
            and (contains_ignore_case(note.title, query) or contains_ignore_case(note.content, query))
        ])

    async def find_by_id(self, note_id: UUID) -> NoteRecord | None:
        """Fetch a single note by id."""
        return self._notes.get(note_id)

    async def update_fields(
        self,
        note_id: UUID,
        fields: Mapping[str, str],
    ) -> NoteRecord | None:
        """Replace the stored record with an updated copy."""
        _check_fields(fields)
        note = self._notes.get(note_id)
        if note is None:
            return None
        updated = replace(note, **fields, updated_at=next_timestamp(note.updated_at))
        self._notes[note_id] = updated
        return updated

    async def delete(self, note_id: UUID) -> bool:
        """Delete by id."""
        return self._notes.pop(note_id, None) is not None

    async def ping(self) -> None:
        """Always available."""
        return None
