"""Service layer for owner-scoped note operations."""
import logging
from uuid import UUID

from schemas.note import NoteCreate, NoteUpdate
from services.exceptions import NoteAccessDeniedError, NoteNotFoundError
from services.note_store import NoteStore
from services.records import NoteRecord
from services.utils import parse_uuid

logger = logging.getLogger(__name__)


class NoteService:
    """
    Note operations for an authenticated user.

    Every read, update and delete by id checks that the requester owns the
    note. Ownership failures raise NoteAccessDeniedError, never
    NoteNotFoundError, so the two stay distinguishable server-side.
    """

    def __init__(self, store: NoteStore) -> None:
        self.store = store

    async def _get_owned(self, user_id: UUID, note_id: str) -> NoteRecord:
        parsed_id = parse_uuid(note_id)
        if parsed_id is None:
            raise NoteNotFoundError(note_id)

        note = await self.store.find_by_id(parsed_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        if note.user_id != user_id:
            logger.warning("User %s attempted to access note %s owned by another user", user_id, note_id)
            raise NoteAccessDeniedError(note_id, user_id)
        return note

    async def list_notes(self, user_id: UUID) -> list[NoteRecord]:
        """All notes for the user, newest first."""
        return await self.store.list_by_owner(user_id)

    async def search_notes(self, user_id: UUID, query: str) -> list[NoteRecord]:
        """
        Case-insensitive substring search over title and content.

        Raises:
            ValueError: If the query is blank.
        """
        if not query or not query.strip():
            raise ValueError("Search query is required")
        return await self.store.search_by_owner(user_id, query)

    async def create_note(self, user_id: UUID, data: NoteCreate) -> NoteRecord:
        """Create a note owned by the user."""
        note = await self.store.create(data.title, data.content, user_id)
        logger.debug("Created note %s for user %s", note.id, user_id)
        return note

    async def get_note(self, user_id: UUID, note_id: str) -> NoteRecord:
        """
        Fetch a note the user owns.

        Raises:
            NoteNotFoundError: If the id is malformed or does not exist.
            NoteAccessDeniedError: If the note belongs to another user.
        """
        return await self._get_owned(user_id, note_id)

    async def update_note(self, user_id: UUID, note_id: str, data: NoteUpdate) -> NoteRecord:
        """
        Apply a partial update to a note the user owns.

        An update with no fields still refreshes updated_at.

        Raises:
            NoteNotFoundError: If the note does not exist (or vanished mid-update).
            NoteAccessDeniedError: If the note belongs to another user.
        """
        note = await self._get_owned(user_id, note_id)
        updated = await self.store.update_fields(note.id, data.changed_fields())
        if updated is None:
            raise NoteNotFoundError(note_id)
        return updated

    async def delete_note(self, user_id: UUID, note_id: str) -> None:
        """
        Delete a note the user owns.

        Raises:
            NoteNotFoundError: If the note does not exist.
            NoteAccessDeniedError: If the note belongs to another user.
        """
        note = await self._get_owned(user_id, note_id)
        if not await self.store.delete(note.id):
            raise NoteNotFoundError(note_id)
