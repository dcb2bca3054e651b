"""Persistence of the user's game settings."""
import json
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Set

from describo.config import GameDefaults, settings as app_settings
from describo.errors import InvalidSetting
from describo.models.game_models import GameSettings, Role

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"


class SettingsStore:
    """Reads and writes GameSettings as one JSON object.

    load() never fails: each missing or malformed field falls back to its
    default, and an unreadable blob gives all defaults.
    """

    def __init__(
        self,
        store,
        defaults: Optional[GameDefaults] = None,
        known_categories: Optional[Iterable[str]] = None,
        key: str = SETTINGS_KEY,
    ):
        self.store = store
        self.defaults = defaults or app_settings.game
        self.known_categories: Optional[Set[str]] = set(known_categories) if known_categories is not None else None
        self.key = key

    def default_settings(self) -> GameSettings:
        """Get the settings of a fresh session."""
        if self.defaults.categories:
            categories = set(self.defaults.categories)
            if self.known_categories is not None:
                categories &= self.known_categories
        else:
            categories = set(self.known_categories or ())

        return GameSettings(
            language=self.defaults.default_language,
            second_language_enabled=False,
            second_language=self.defaults.default_second_language,
            timer_enabled=False,
            timer_minutes=self.defaults.timer_minutes,
            enabled_categories=categories,
            role=Role.NARRATOR,
        )

    # ---- Field validators ----
    def _language(self, field: str, value: Any) -> str:
        if not isinstance(value, str) or value not in self.defaults.languages:
            raise InvalidSetting(field, value)
        return value

    def _flag(self, field: str, value: Any) -> bool:
        if not isinstance(value, bool):
            raise InvalidSetting(field, value)
        return value

    def _minutes(self, field: str, value: Any) -> int:
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidSetting(field, value)
        return value

    def _categories(self, field: str, value: Any) -> Set[str]:
        if not isinstance(value, list) or not all(isinstance(c, str) for c in value):
            raise InvalidSetting(field, value)
        categories = set(value)
        if self.known_categories is not None:
            unknown = categories - self.known_categories
            if unknown:
                logger.debug("Dropping unknown categories %s", sorted(unknown))
            categories -= unknown
        return categories

    def _role(self, field: str, value: Any) -> Role:
        try:
            return Role(value)
        except ValueError as e:
            raise InvalidSetting(field, value) from e

    def _validators(self) -> Dict[str, Callable[[str, Any], Any]]:
        return {
            "language": self._language,
            "second_language_enabled": self._flag,
            "second_language": self._language,
            "timer_enabled": self._flag,
            "timer_minutes": self._minutes,
            "enabled_categories": self._categories,
            "role": self._role,
        }

    def load(self) -> GameSettings:
        """Load settings, replacing anything invalid with defaults."""
        result = self.default_settings()

        raw = self.store.get(self.key)
        if raw is None:
            return result

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring corrupt settings blob: %r", raw)
            return result

        if not isinstance(data, dict):
            logger.warning("Ignoring settings blob of type %s", type(data).__name__)
            return result

        for field, validate in self._validators().items():
            if field not in data:
                continue
            try:
                setattr(result, field, validate(field, data[field]))
            except InvalidSetting as e:
                logger.debug("%s, using default", e)

        return result

    def save(self, game_settings: GameSettings) -> None:
        """Overwrite the stored settings."""
        data = {
            "language": game_settings.language,
            "second_language_enabled": game_settings.second_language_enabled,
            "second_language": game_settings.second_language,
            "timer_enabled": game_settings.timer_enabled,
            "timer_minutes": game_settings.timer_minutes,
            "enabled_categories": sorted(game_settings.enabled_categories),
            "role": game_settings.role.value,
        }
        self.store.set(self.key, json.dumps(data, ensure_ascii=False, sort_keys=True))
