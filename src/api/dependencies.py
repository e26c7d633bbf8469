"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.auth import get_current_user
from core.config import Settings, get_settings
from services.auth_service import AuthService
from services.note_service import NoteService
from services.storage import Stores, get_stores


def get_note_service(stores: Stores = Depends(get_stores)) -> NoteService:
    """Note service bound to the configured note store."""
    return NoteService(stores.notes)


def get_auth_service(
    stores: Stores = Depends(get_stores),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """Auth service bound to the configured user store."""
    return AuthService(stores.users, bcrypt_rounds=settings.bcrypt_rounds)


__all__ = [
    "get_auth_service",
    "get_current_user",
    "get_note_service",
    "get_settings",
    "get_stores",
]
