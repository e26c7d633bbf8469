"""
Client note state: the session's view of its notes.

Holds the note list, the selected note, the search term, favorite ids, and a
single error slot. Filtered and favorite views are properties computed on
read, so they can never drift from the list they derive from. Mutations are
applied in the order their responses arrive; a failed call leaves the list as
it was.
"""
import asyncio
import json
import logging

from notes_client.api_client import ApiClient
from notes_client.errors import ApiError, FallbackNotAllowedError
from notes_client.local_store import FAVORITES_KEY, KeyValueStore
from notes_client.models import Note

logger = logging.getLogger(__name__)

CONNECTION_TIMEOUT_MESSAGE = "Connection timeout. Please try again later."
EMPTY_FIELDS_MESSAGE = "Please enter a title and content"


class NotesState:
    """Note list state with optimistic reconciliation against the API."""

    def __init__(
        self,
        api: ApiClient,
        store: KeyValueStore,
        load_timeout: float | None = None,
    ) -> None:
        self.api = api
        self.store = store
        self.load_timeout = load_timeout if load_timeout is not None else api.config.load_timeout

        self.notes: list[Note] = []
        self.current_note: Note | None = None
        self.loading = True
        self.error: str | None = None
        self.search_term = ""
        self.favorite_ids: list[str] = self._read_favorites()

        self._initial_load_done = False
        self._late_load: asyncio.Task[list[Note]] | None = None
        # Notes whose primary update failed, with the failure; these may use the fallback path
        self._failed_updates: dict[str, ApiError] = {}

    # Derived views

    @property
    def filtered_notes(self) -> list[Note]:
        """Notes matching the search term; all notes when the term is empty."""
        return [note for note in self.notes if note.matches(self.search_term)]

    @property
    def favorite_notes(self) -> list[Note]:
        favorites = set(self.favorite_ids)
        return [note for note in self.notes if note.id in favorites]

    # Loading

    async def initial_load(self) -> bool:
        """Load once per state lifetime; repeat calls are no-ops."""
        if self._initial_load_done:
            return not self.error
        self._initial_load_done = True
        return await self.load()

    async def load(self) -> bool:
        """
        Replace the note list with the server's.

        Bounded by load_timeout. When the watchdog fires, loading is switched
        off and a timeout error is recorded, but the request keeps running and
        its outcome is applied whenever it arrives.
        """
        self.loading = True
        fetch = asyncio.ensure_future(self.api.list_notes())
        try:
            notes = await asyncio.wait_for(asyncio.shield(fetch), timeout=self.load_timeout)
        except TimeoutError:
            logger.warning("Note load exceeded %.1fs watchdog", self.load_timeout)
            self.loading = False
            self.error = CONNECTION_TIMEOUT_MESSAGE
            self._late_load = fetch
            fetch.add_done_callback(self._apply_late_load)
            return False
        except ApiError as e:
            self._apply_load_failure(e)
            return False
        finally:
            self.loading = False
        self._apply_loaded(notes)
        return True

    async def wait_for_pending_load(self) -> None:
        """Wait for a load that outlived the watchdog, if any."""
        if self._late_load is not None:
            await asyncio.gather(self._late_load, return_exceptions=True)

    def _apply_loaded(self, notes: list[Note]) -> None:
        self.notes = list(notes)
        self.error = None

    def _apply_load_failure(self, e: ApiError) -> None:
        self.notes = []
        self.error = e.user_message("Error fetching notes")

    def _apply_late_load(self, fetch: asyncio.Task[list[Note]]) -> None:
        if self._late_load is fetch:
            self._late_load = None
        if fetch.cancelled():
            return
        exc = fetch.exception()
        if exc is None:
            self._apply_loaded(fetch.result())
        elif isinstance(exc, ApiError):
            self._apply_load_failure(exc)
        else:
            logger.error("Late note load failed unexpectedly", exc_info=exc)

    # Mutations

    async def add(self, title: str, content: str) -> bool:
        """Create a note and prepend it. Returns False without a request if a field is empty."""
        if not title.strip() or not content.strip():
            self.error = EMPTY_FIELDS_MESSAGE
            return False
        try:
            note = await self.api.create_note(title, content)
        except ApiError as e:
            self.error = e.user_message("Error adding note")
            return False
        self.notes = [note, *self.notes]
        return True

    async def update(self, note: Note) -> bool:
        """Send the note's title and content; replace the matching entry on success."""
        try:
            updated = await self.api.update_note(note.id, note.title, note.content)
        except ApiError as e:
            self._failed_updates[note.id] = e
            self.error = e.user_message("Failed to update note. Please try again.")
            return False
        self._failed_updates.pop(note.id, None)
        self._replace(updated)
        return True

    async def force_update(self, note: Note) -> bool:
        """
        Re-send a failed update through the fallback confirmation endpoint.

        Raises:
            FallbackNotAllowedError: If the primary update of this note has not failed.
        """
        if note.id not in self._failed_updates:
            raise FallbackNotAllowedError(note.id)
        try:
            updated = await self.api.test_update_note(note.id, note.title, note.content)
        except ApiError as e:
            self.error = e.user_message("Test update failed")
            return False
        self._failed_updates.pop(note.id, None)
        self._replace(updated)
        return True

    async def update_with_fallback(self, note: Note) -> bool:
        """Primary update first; the fallback only after a transient failure."""
        if await self.update(note):
            return True
        failure = self._failed_updates.get(note.id)
        if failure is None or not failure.is_transient:
            return False
        logger.info("Primary update of note %s failed (%s), trying fallback", note.id, failure.category)
        return await self.force_update(note)

    async def delete(self, note_id: str) -> bool:
        try:
            await self.api.delete_note(note_id)
        except ApiError as e:
            self.error = e.user_message("Error deleting note")
            return False
        self._failed_updates.pop(note_id, None)
        self.notes = [note for note in self.notes if note.id != note_id]
        return True

    def _replace(self, updated: Note) -> None:
        """Swap in the server's copy by id; never inserts a note that is not listed."""
        self.notes = [updated if note.id == updated.id else note for note in self.notes]
        if self.current_note is not None and self.current_note.id == updated.id:
            self.current_note = updated

    # Local-only state

    def set_search(self, term: str) -> None:
        self.search_term = term

    def set_current(self, note: Note) -> None:
        self.current_note = note

    def clear_current(self) -> None:
        self.current_note = None

    def clear_error(self) -> None:
        self.error = None

    # Favorites

    def is_favorite(self, note_id: str) -> bool:
        return note_id in self.favorite_ids

    def toggle_favorite(self, note_id: str) -> None:
        """Flip favorite membership and persist the whole set immediately."""
        if note_id in self.favorite_ids:
            updated = [fid for fid in self.favorite_ids if fid != note_id]
        else:
            updated = [*self.favorite_ids, note_id]
        # Memory follows storage; a failed write leaves both unchanged
        self.store.set(FAVORITES_KEY, json.dumps(updated))
        self.favorite_ids = updated

    def _read_favorites(self) -> list[str]:
        raw = self.store.get(FAVORITES_KEY)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored favorites are not valid JSON, starting empty")
            return []
        if not isinstance(data, list):
            return []
        return [str(item) for item in data]
