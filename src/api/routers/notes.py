"""Notes CRUD and search endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_current_user, get_note_service, get_settings
from core.config import Settings
from schemas.note import (
    NoteCreate,
    NoteDeleteResponse,
    NoteResponse,
    NoteTestUpdateResponse,
    NoteUpdate,
)
from services.exceptions import NoteAccessDeniedError, NoteNotFoundError
from services.note_service import NoteService
from services.records import NoteRecord, UserRecord

router = APIRouter(prefix="/notes", tags=["notes"])

NOT_FOUND_DETAIL = "Note not found"
FORBIDDEN_DETAIL = "User not authorized"


def _lookup_error(e: NoteNotFoundError | NoteAccessDeniedError, settings: Settings) -> HTTPException:
    """
    Translate a failed by-id lookup to an HTTP error.

    A foreign note renders exactly like a missing one unless REVEAL_FORBIDDEN
    is enabled, so other users' note ids cannot be probed.
    """
    if isinstance(e, NoteAccessDeniedError) and settings.reveal_forbidden:
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)


@router.get("", response_model=list[NoteResponse])
async def list_notes(
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
) -> list[NoteRecord]:
    """List the current user's notes, newest first."""
    return await note_service.list_notes(current_user.id)


@router.get("/search", response_model=list[NoteResponse])
async def search_notes(
    query: str | None = Query(
        default=None,
        description="Text to find in title or content (case-insensitive substring)",
    ),
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
) -> list[NoteRecord]:
    """Search the current user's notes. Same ordering as the list endpoint."""
    try:
        return await note_service.search_notes(current_user.id, query or "")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
    settings: Settings = Depends(get_settings),
) -> NoteRecord:
    """Get a single note by ID."""
    try:
        return await note_service.get_note(current_user.id, note_id)
    except (NoteNotFoundError, NoteAccessDeniedError) as e:
        raise _lookup_error(e, settings)


@router.post("", response_model=NoteResponse, status_code=201)
async def create_note(
    data: NoteCreate,
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
) -> NoteRecord:
    """Create a new note owned by the current user."""
    return await note_service.create_note(current_user.id, data)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
    settings: Settings = Depends(get_settings),
) -> NoteRecord:
    """Partially update a note. Omitted fields are left unchanged."""
    try:
        return await note_service.update_note(current_user.id, note_id, data)
    except (NoteNotFoundError, NoteAccessDeniedError) as e:
        raise _lookup_error(e, settings)


@router.post("/test-update/{note_id}", response_model=NoteTestUpdateResponse)
async def test_update_note(
    note_id: str,
    data: NoteUpdate,
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
    settings: Settings = Depends(get_settings),
) -> NoteTestUpdateResponse:
    """
    Fallback update path used by clients after a failed PUT.

    Runs the same validation and ownership checks as PUT; only the response
    envelope differs.
    """
    try:
        note = await note_service.update_note(current_user.id, note_id, data)
    except (NoteNotFoundError, NoteAccessDeniedError) as e:
        raise _lookup_error(e, settings)
    return NoteTestUpdateResponse(success=True, note=NoteResponse.model_validate(note))


@router.delete("/{note_id}", response_model=NoteDeleteResponse)
async def delete_note(
    note_id: str,
    current_user: UserRecord = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
    settings: Settings = Depends(get_settings),
) -> NoteDeleteResponse:
    """Permanently delete a note."""
    try:
        await note_service.delete_note(current_user.id, note_id)
    except (NoteNotFoundError, NoteAccessDeniedError) as e:
        raise _lookup_error(e, settings)
    return NoteDeleteResponse()
