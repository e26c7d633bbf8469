"""Tests for the user settings blob."""
import json

from notes_client.local_store import InMemoryKeyValueStore
from notes_client.preferences import (
    UserPreferences,
    load_preferences,
    reset_preferences,
    save_preferences,
    toggle_theme,
)


def test_defaults_when_missing() -> None:
    prefs = load_preferences(InMemoryKeyValueStore())
    assert prefs == UserPreferences(theme="light", font_size="medium", language="english", notifications=True)


def test_save_uses_camel_case_keys() -> None:
    store = InMemoryKeyValueStore()
    save_preferences(store, UserPreferences(font_size="large", notifications=False))

    stored = json.loads(store.get("user-settings"))
    assert stored["fontSize"] == "large"
    assert stored["notifications"] is False
    assert load_preferences(store).font_size == "large"


def test_unreadable_blob_falls_back_to_defaults() -> None:
    store = InMemoryKeyValueStore({"user-settings": "{broken"})
    assert load_preferences(store) == UserPreferences()

    store.set("user-settings", json.dumps({"fontSize": "gigantic"}))
    assert load_preferences(store) == UserPreferences()


def test_toggle_theme_persists() -> None:
    store = InMemoryKeyValueStore()
    assert toggle_theme(store).theme == "dark"
    assert load_preferences(store).theme == "dark"
    assert toggle_theme(store).theme == "light"


def test_reset() -> None:
    store = InMemoryKeyValueStore()
    save_preferences(store, UserPreferences(theme="dark", language="french"))
    assert reset_preferences(store) == UserPreferences()
    assert load_preferences(store) == UserPreferences()
