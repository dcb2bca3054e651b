"""Tests for settings persistence."""
import json

import pytest

from describo.config import GameDefaults
from describo.models.game_models import GameSettings, Role
from describo.services.settings_store import SETTINGS_KEY, SettingsStore
from describo.services.storage_service import InMemoryStore

KNOWN = {"easy", "medium", "hard"}


@pytest.fixture
def settings_store(store: InMemoryStore, defaults: GameDefaults) -> SettingsStore:
    return SettingsStore(store, defaults, known_categories=KNOWN)


def test_defaults_when_nothing_stored(settings_store: SettingsStore) -> None:
    loaded = settings_store.load()

    assert loaded == GameSettings(
        language="en",
        second_language_enabled=False,
        second_language="es",
        timer_enabled=False,
        timer_minutes=1,
        enabled_categories=KNOWN,
        role=Role.NARRATOR,
    )


@pytest.mark.parametrize("value", [
    GameSettings("es", True, "ru", True, 3, {"easy", "hard"}, Role.GUESSER),
    GameSettings("ru", False, "en", False, 1, set(), Role.NARRATOR),
    GameSettings("en", True, "en", True, 10, set(KNOWN), Role.NARRATOR),
])
def test_round_trip(settings_store: SettingsStore, value: GameSettings) -> None:
    settings_store.save(value)
    assert settings_store.load() == value


def test_save_overwrites(settings_store: SettingsStore, store: InMemoryStore) -> None:
    settings_store.save(GameSettings("es", True, "ru", True, 3, {"easy"}, Role.GUESSER))
    settings_store.save(GameSettings("en", False, "es", False, 2, set(), Role.NARRATOR))

    assert json.loads(store.get(SETTINGS_KEY))["enabled_categories"] == []
    assert settings_store.load().timer_minutes == 2


@pytest.mark.parametrize("raw", ["{broken", "[]", "null", "\"text\""])
def test_corrupt_blob_gives_defaults(store: InMemoryStore, settings_store: SettingsStore, raw: str) -> None:
    store.set(SETTINGS_KEY, raw)
    assert settings_store.load() == settings_store.default_settings()


def test_invalid_fields_fall_back_individually(store: InMemoryStore, settings_store: SettingsStore) -> None:
    store.set(SETTINGS_KEY, json.dumps({
        "language": "xx",
        "second_language_enabled": "yes",
        "second_language": "ru",
        "timer_enabled": True,
        "timer_minutes": 0,
        "enabled_categories": ["easy", "unknown"],
        "role": "referee",
    }))

    loaded = settings_store.load()
    assert loaded.language == "en"
    assert loaded.second_language_enabled is False
    assert loaded.second_language == "ru"
    assert loaded.timer_enabled is True
    assert loaded.timer_minutes == 1
    assert loaded.enabled_categories == {"easy"}
    assert loaded.role is Role.NARRATOR


@pytest.mark.parametrize("minutes", [True, "5", 2.5, -3])
def test_invalid_minutes(store: InMemoryStore, settings_store: SettingsStore, minutes) -> None:
    store.set(SETTINGS_KEY, json.dumps({"timer_minutes": minutes}))
    assert settings_store.load().timer_minutes == 1


def test_default_categories_from_config(store: InMemoryStore, defaults: GameDefaults) -> None:
    defaults.categories = ["easy", "gone"]
    settings_store = SettingsStore(store, defaults, known_categories=KNOWN)

    assert settings_store.load().enabled_categories == {"easy"}
