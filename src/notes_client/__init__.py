"""Async client library for the Notes API: session, note state and local preferences."""
from notes_client.api_client import ApiClient
from notes_client.config import ClientConfig
from notes_client.errors import ApiError, FallbackNotAllowedError
from notes_client.local_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from notes_client.models import Note, User
from notes_client.notes_state import NotesState
from notes_client.preferences import UserPreferences
from notes_client.session import SessionState

__all__ = [
    "ApiClient",
    "ApiError",
    "ClientConfig",
    "FallbackNotAllowedError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "Note",
    "NotesState",
    "SessionState",
    "User",
    "UserPreferences",
]
