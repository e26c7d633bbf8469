"""Tests for the client note state."""
import asyncio
from typing import Any

import httpx
import pytest
import respx

from notes_client.api_client import ApiClient
from notes_client.config import ClientConfig
from notes_client.errors import NETWORK_ERROR_MESSAGE, ApiError, FallbackNotAllowedError
from notes_client.local_store import InMemoryKeyValueStore
from notes_client.models import Note
from notes_client.notes_state import CONNECTION_TIMEOUT_MESSAGE, NotesState


async def test_add_then_load_round_trip(notes_state: NotesState) -> None:
    assert await notes_state.add("T", "C")
    assert await notes_state.load()

    [note] = notes_state.notes
    assert note.title == "T"
    assert note.content == "C"
    assert note.id
    assert note.created_at <= note.updated_at
    assert notes_state.loading is False
    assert notes_state.error is None


async def test_add_prepends(notes_state: NotesState) -> None:
    assert await notes_state.add("first", "1")
    assert await notes_state.add("second", "2")
    assert [n.title for n in notes_state.notes] == ["second", "first"]


async def test_add_validates_locally(notes_state: NotesState, api: ApiClient) -> None:
    assert not await notes_state.add("", "C")
    assert not await notes_state.add("T", "   ")
    assert notes_state.notes == []
    assert notes_state.error == "Please enter a title and content"
    assert await api.list_notes() == []


async def test_notes_track_successful_mutations(notes_state: NotesState, api: ApiClient) -> None:
    """The list holds exactly the created-minus-deleted notes, each once."""
    assert await notes_state.add("a", "1")
    assert await notes_state.add("b", "2")
    assert await notes_state.add("c", "3")
    b = next(n for n in notes_state.notes if n.title == "b")

    assert await notes_state.delete(b.id)
    assert not await notes_state.delete(b.id)
    a = next(n for n in notes_state.notes if n.title == "a")
    assert await notes_state.update(a.model_copy(update={"content": "changed"}))

    ids = [n.id for n in notes_state.notes]
    assert len(ids) == len(set(ids))
    assert ids == [n.id for n in await api.list_notes()]
    assert [n.title for n in notes_state.notes] == ["c", "a"]


async def test_update_replaces_and_propagates_to_current(notes_state: NotesState) -> None:
    assert await notes_state.add("Shopping", "milk, eggs")
    original = notes_state.notes[0]
    notes_state.set_current(original)

    assert await notes_state.update(original.model_copy(update={"content": "milk, eggs, bread"}))

    [updated] = notes_state.notes
    assert updated.content == "milk, eggs, bread"
    assert updated.updated_at > original.updated_at
    assert notes_state.current_note == updated


async def test_update_never_inserts(notes_state: NotesState, api: ApiClient) -> None:
    """A note missing from the local list stays missing after a successful update."""
    unlisted = await api.create_note("Elsewhere", "created by another tab")

    assert await notes_state.update(unlisted.model_copy(update={"title": "Renamed"}))
    assert notes_state.notes == []


async def test_failed_update_leaves_state(notes_state: NotesState, api: ApiClient) -> None:
    assert await notes_state.add("T", "C")
    note = notes_state.notes[0]
    await api.delete_note(note.id)

    assert not await notes_state.update(note.model_copy(update={"title": "T2"}))
    assert notes_state.notes == [note]
    assert notes_state.error == "Note not found"

    notes_state.clear_error()
    assert notes_state.error is None


async def test_force_update_requires_failed_primary(notes_state: NotesState) -> None:
    assert await notes_state.add("T", "C")
    with pytest.raises(FallbackNotAllowedError):
        await notes_state.force_update(notes_state.notes[0])


async def test_failed_delete_leaves_state(notes_state: NotesState, api: ApiClient) -> None:
    assert await notes_state.add("T", "C")
    note = notes_state.notes[0]
    await api.delete_note(note.id)
    assert await notes_state.add("Other", "x")

    before = list(notes_state.notes)
    assert not await notes_state.delete(note.id)
    assert notes_state.notes == before


async def test_initial_load_runs_once(notes_state: NotesState, api: ApiClient) -> None:
    assert await notes_state.initial_load()
    await api.create_note("Later", "added after the first load")

    assert await notes_state.initial_load()
    assert notes_state.notes == []

    assert await notes_state.load()
    assert len(notes_state.notes) == 1


async def test_search_filter(notes_state: NotesState) -> None:
    assert await notes_state.add("Shopping", "milk")
    assert await notes_state.add("Work", "deadline")

    notes_state.set_search("mil")
    first = notes_state.filtered_notes
    notes_state.set_search("mil")
    assert notes_state.filtered_notes == first
    assert [n.title for n in first] == ["Shopping"]

    notes_state.set_search("DEAD")
    assert [n.title for n in notes_state.filtered_notes] == ["Work"]

    notes_state.set_search("")
    assert notes_state.filtered_notes == notes_state.notes


async def test_filtered_view_follows_mutations(notes_state: NotesState) -> None:
    """Derived views recompute from the list; they are never stale copies."""
    notes_state.set_search("milk")
    assert await notes_state.add("Shopping", "milk")
    assert [n.title for n in notes_state.filtered_notes] == ["Shopping"]

    note = notes_state.notes[0]
    assert await notes_state.update(note.model_copy(update={"content": "bread"}))
    assert notes_state.filtered_notes == []


async def test_favorites_survive_reload(
    notes_state: NotesState, api: ApiClient, local_store: InMemoryKeyValueStore,
) -> None:
    assert await notes_state.add("Fav", "x")
    assert await notes_state.add("Plain", "y")
    fav = next(n for n in notes_state.notes if n.title == "Fav")

    notes_state.toggle_favorite(fav.id)
    assert notes_state.is_favorite(fav.id)
    assert notes_state.favorite_notes == [fav]

    reloaded = NotesState(api, local_store)
    assert reloaded.is_favorite(fav.id)

    notes_state.toggle_favorite(fav.id)
    assert not notes_state.is_favorite(fav.id)
    assert not NotesState(api, local_store).is_favorite(fav.id)


async def test_corrupt_favorites_ignored(local_store: InMemoryKeyValueStore) -> None:
    local_store.set("favoriteNotes", "{not json")
    async with ApiClient(ClientConfig()) as api:
        state = NotesState(api, local_store)
        assert state.favorite_ids == []


async def test_set_and_clear_current(notes_state: NotesState) -> None:
    assert await notes_state.add("T", "C")
    notes_state.set_current(notes_state.notes[0])
    assert notes_state.current_note == notes_state.notes[0]
    notes_state.clear_current()
    assert notes_state.current_note is None


# Failure handling against a mocked API


async def test_load_failure_empties_list(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
    sample_note: dict[str, Any],
) -> None:
    route = mock_api.get("/notes")
    route.mock(return_value=httpx.Response(200, json=[sample_note]))
    state = NotesState(mocked_api, local_store)
    assert await state.load()
    assert len(state.notes) == 1

    route.mock(return_value=httpx.Response(500, json={"detail": "Server error"}))
    assert not await state.load()
    assert state.notes == []
    assert state.error == "Server error"
    assert state.loading is False


async def test_load_network_error(
    mock_api: respx.MockRouter, mocked_api: ApiClient, local_store: InMemoryKeyValueStore,
) -> None:
    mock_api.get("/notes").mock(side_effect=httpx.ConnectError("connection refused"))
    state = NotesState(mocked_api, local_store)

    assert not await state.load()
    assert state.error == NETWORK_ERROR_MESSAGE


async def test_load_success_clears_stale_error(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
) -> None:
    mock_api.get("/notes").mock(return_value=httpx.Response(200, json=[]))
    state = NotesState(mocked_api, local_store)
    state.error = "old failure"

    assert await state.load()
    assert state.error is None


async def test_update_with_fallback_after_transient_failure(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
    sample_note: dict[str, Any],
) -> None:
    """A 5xx on the primary path allows the fallback endpoint."""
    note_id = sample_note["id"]
    mock_api.get("/notes").mock(return_value=httpx.Response(200, json=[sample_note]))
    put_route = mock_api.put(f"/notes/{note_id}").mock(
        return_value=httpx.Response(503, json={"detail": "Server error"}),
    )
    updated = {**sample_note, "content": "milk, eggs, bread", "updated_at": "2026-01-02T00:00:00Z"}
    fallback_route = mock_api.post(f"/notes/test-update/{note_id}").mock(
        return_value=httpx.Response(200, json={"success": True, "note": updated}),
    )
    state = NotesState(mocked_api, local_store)
    await state.load()

    edited = state.notes[0].model_copy(update={"content": "milk, eggs, bread"})
    assert await state.update_with_fallback(edited)

    assert put_route.call_count == 1
    assert fallback_route.call_count == 1
    assert state.notes[0].content == "milk, eggs, bread"


async def test_no_fallback_after_validation_failure(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
    sample_note: dict[str, Any],
) -> None:
    note_id = sample_note["id"]
    mock_api.put(f"/notes/{note_id}").mock(
        return_value=httpx.Response(400, json={"detail": "Title cannot be empty"}),
    )
    fallback_route = mock_api.post(f"/notes/test-update/{note_id}")
    state = NotesState(mocked_api, local_store)

    assert not await state.update_with_fallback(Note.model_validate(sample_note))
    assert fallback_route.call_count == 0
    assert state.error == "Title cannot be empty"


async def test_force_update_allowed_after_failure(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
    sample_note: dict[str, Any],
) -> None:
    note_id = sample_note["id"]
    mock_api.put(f"/notes/{note_id}").mock(side_effect=httpx.ConnectError("down"))
    mock_api.post(f"/notes/test-update/{note_id}").mock(
        return_value=httpx.Response(200, json={"success": True, "note": sample_note}),
    )
    state = NotesState(mocked_api, local_store)
    note = Note.model_validate(sample_note)

    assert not await state.update(note)
    assert await state.force_update(note)

    # Success resets the gate
    with pytest.raises(FallbackNotAllowedError):
        await state.force_update(note)


class GatedApi(ApiClient):
    """API client whose note list only arrives when released."""

    def __init__(self, notes: list[Note] | None = None, error: ApiError | None = None) -> None:
        super().__init__(ClientConfig())
        self.release = asyncio.Event()
        self._notes = notes or []
        self._error = error

    async def list_notes(self) -> list[Note]:
        await self.release.wait()
        if self._error is not None:
            raise self._error
        return self._notes


async def test_load_watchdog_then_late_success(
    local_store: InMemoryKeyValueStore, sample_note: dict[str, Any],
) -> None:
    """The watchdog ends loading; a late response is still applied."""
    api = GatedApi(notes=[Note.model_validate(sample_note)])
    state = NotesState(api, local_store, load_timeout=0.05)

    assert not await state.load()
    assert state.loading is False
    assert state.error == CONNECTION_TIMEOUT_MESSAGE
    assert state.notes == []

    api.release.set()
    await state.wait_for_pending_load()

    assert [n.id for n in state.notes] == [sample_note["id"]]
    assert state.error is None
    await api.aclose()


async def test_load_watchdog_then_late_failure(local_store: InMemoryKeyValueStore) -> None:
    api = GatedApi(error=ApiError("internal", "Server error", 500, "Server error"))
    state = NotesState(api, local_store, load_timeout=0.05)

    assert not await state.load()
    api.release.set()
    await state.wait_for_pending_load()

    assert state.notes == []
    assert state.error == "Server error"
    await api.aclose()


async def test_load_non_json_body_is_recorded(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
    sample_note: dict[str, Any],
) -> None:
    """A proxy page in place of JSON fails the load instead of raising."""
    mock_api.get("/notes").mock(return_value=httpx.Response(200, text="<html>proxy</html>"))
    state = NotesState(mocked_api, local_store)
    state.notes = [Note.model_validate(sample_note)]

    assert not await state.load()
    assert state.notes == []
    assert state.error == "Error fetching notes"
    assert state.loading is False


async def test_malformed_note_payload_is_recorded(
    mock_api: respx.MockRouter, mocked_api: ApiClient, local_store: InMemoryKeyValueStore,
) -> None:
    mock_api.get("/notes").mock(return_value=httpx.Response(200, json={"notes": []}))
    mock_api.post("/notes").mock(return_value=httpx.Response(200, json={"title": "no id"}))
    state = NotesState(mocked_api, local_store)

    assert not await state.load()
    assert state.error == "Error fetching notes"

    assert not await state.add("T", "C")
    assert state.notes == []
    assert state.error == "Error adding note"


async def test_malformed_payload_is_transient(
    mock_api: respx.MockRouter, mocked_api: ApiClient,
) -> None:
    mock_api.get("/auth/user").mock(return_value=httpx.Response(200, text="not json"))

    with pytest.raises(ApiError) as exc_info:
        await mocked_api.get_user()
    assert exc_info.value.category == "internal"
    assert exc_info.value.is_transient


class FailingWriteStore(InMemoryKeyValueStore):
    """Store whose writes fail, as a full disk would."""

    def set(self, key: str, value: str) -> None:
        raise OSError("No space left on device")


async def test_toggle_favorite_failed_write_keeps_state() -> None:
    store = FailingWriteStore({"favoriteNotes": '["kept"]'})
    async with ApiClient(ClientConfig()) as api:
        state = NotesState(api, store)

        with pytest.raises(OSError):
            state.toggle_favorite("new")
        with pytest.raises(OSError):
            state.toggle_favorite("kept")

        assert state.favorite_ids == ["kept"]
        assert store.get("favoriteNotes") == '["kept"]'


async def test_delete_clears_fallback_permission(
    mock_api: respx.MockRouter,
    mocked_api: ApiClient,
    local_store: InMemoryKeyValueStore,
    sample_note: dict[str, Any],
) -> None:
    """A deleted note keeps no pending fallback permission."""
    note_id = sample_note["id"]
    mock_api.put(f"/notes/{note_id}").mock(side_effect=httpx.ConnectError("down"))
    mock_api.delete(f"/notes/{note_id}").mock(
        return_value=httpx.Response(200, json={"msg": "Note removed"}),
    )
    fallback_route = mock_api.post(f"/notes/test-update/{note_id}")
    state = NotesState(mocked_api, local_store)
    note = Note.model_validate(sample_note)

    assert not await state.update(note)
    assert await state.delete(note_id)

    with pytest.raises(FallbackNotAllowedError):
        await state.force_update(note)
    assert fallback_route.call_count == 0
