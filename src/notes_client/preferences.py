"""User settings blob kept in the client-local store."""
import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from notes_client.local_store import SETTINGS_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class UserPreferences(BaseModel):
    """Presentation settings. Serialized with camelCase keys (``fontSize``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    theme: Literal["light", "dark"] = "light"
    font_size: Literal["small", "medium", "large"] = "medium"
    language: str = "english"
    notifications: bool = True


def load_preferences(store: KeyValueStore) -> UserPreferences:
    """Read stored settings; a missing or unreadable blob yields the defaults."""
    raw = store.get(SETTINGS_KEY)
    if raw is None:
        return UserPreferences()
    try:
        return UserPreferences.model_validate_json(raw)
    except ValidationError:
        logger.warning("Stored user settings are invalid, using defaults")
        return UserPreferences()


def save_preferences(store: KeyValueStore, preferences: UserPreferences) -> None:
    store.set(SETTINGS_KEY, preferences.model_dump_json(by_alias=True))


def reset_preferences(store: KeyValueStore) -> UserPreferences:
    """Overwrite stored settings with the defaults and return them."""
    defaults = UserPreferences()
    save_preferences(store, defaults)
    return defaults


def toggle_theme(store: KeyValueStore) -> UserPreferences:
    """Flip between light and dark, persisting immediately."""
    current = load_preferences(store)
    updated = current.model_copy(update={"theme": "light" if current.theme == "dark" else "dark"})
    save_preferences(store, updated)
    return updated
