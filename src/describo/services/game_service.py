"""Game session tying word selection, history, solved words and the timer together."""
import asyncio
import logging
import random
from typing import Callable, Dict, Iterable, List, Optional, Union

from describo.config import GameDefaults, settings
from describo.errors import LoadFailure, PoolExhausted
from describo.models.game_models import (
    Category,
    CategoryWords,
    GameSettings,
    HistoryEntry,
    PoolCounts,
    Role,
    SimpleWord,
    TargetWord,
    WordDisplay,
)
from describo.monitoring import (
    active_sessions,
    load_failures,
    pool_exhausted,
    timer_expired,
    undo_count,
    words_shown,
    words_solved,
)
from describo.services.selection_pool import SelectionPool
from describo.services.session_history import SessionHistory
from describo.services.settings_store import SettingsStore
from describo.services.solved_tracker import SolvedTracker
from describo.services.timer import CountdownTimer, TimerTicker
from describo.services.word_repository import WordRepository

logger = logging.getLogger(__name__)


class GameSession:
    """One player's game: settings, shown words, solved words and the round timer.

    History and timer live only as long as the session. Solved words and
    settings go through the store and survive restarts.
    """

    def __init__(
        self,
        repository: WordRepository,
        store,
        defaults: Optional[GameDefaults] = None,
        rng: Optional[random.Random] = None,
        on_timer_update: Optional[Callable[[str], None]] = None,
        on_timer_expired: Optional[Callable[[], None]] = None,
    ):
        """Initialize the session and load persisted state from the store."""
        self.repository = repository
        self.defaults = defaults or settings.game
        self.solved_tracker = SolvedTracker(store)
        self.settings_store = SettingsStore(store, self.defaults)
        self.settings: GameSettings = self.settings_store.load()
        self.pool = SelectionPool(self.solved_tracker, rng)
        self.history = SessionHistory()
        self.categories: List[Category] = []

        self.on_timer_update = on_timer_update
        self.on_timer_expired = on_timer_expired
        self.timer = CountdownTimer(on_update=self._handle_timer_update, on_expire=self._handle_timer_expired)
        self.ticker = TimerTicker(self.timer, self.defaults.tick_seconds)
        self._started = False

    @property
    def base_language(self) -> str:
        return self.defaults.base_language

    @property
    def is_narrator(self) -> bool:
        return self.settings.role is Role.NARRATOR

    async def start(self) -> None:
        """Load the category index and drop stale categories from the settings."""
        try:
            self.categories = await self.repository.load_category_index()
        except LoadFailure as e:
            load_failures.labels(kind=e.kind).inc()
            logger.warning("Starting without a category index: %s", str(e))
        else:
            self.settings_store.known_categories = {c.id for c in self.categories}
            self.settings = self.settings_store.load()

        if not self._started:
            self._started = True
            active_sessions.inc()

    async def close(self) -> None:
        """Stop the timer task."""
        await self.ticker.close()
        if self._started:
            self._started = False
            active_sessions.dec()

    # ---- Word lists ----
    def _enabled_categories(self) -> List[str]:
        """Enabled categories in index order."""
        enabled = self.settings.enabled_categories
        ordered = [c.id for c in self.categories if c.id in enabled]
        return ordered + sorted(enabled - set(ordered))

    async def _load_one(self, category_id: str, language: str) -> Optional[CategoryWords]:
        try:
            base = await self.repository.load_target_category(category_id, self.base_language)
            if language == self.base_language:
                display = base
            else:
                display = await self.repository.load_target_category(category_id, language)
        except LoadFailure as e:
            load_failures.labels(kind=e.kind).inc()
            logger.warning("Category %s is unavailable: %s", category_id, str(e))
            return None
        return CategoryWords(base=base, display=display)

    async def _load_category_words(self, category_ids: Iterable[str], language: str) -> Dict[str, CategoryWords]:
        """Load word lists, leaving out categories that failed to load."""
        category_ids = list(category_ids)
        results = await asyncio.gather(*(self._load_one(c, language) for c in category_ids))
        return {c: words for c, words in zip(category_ids, results) if words is not None}

    async def translate(self, word: TargetWord, language: str) -> Optional[str]:
        """Get a word's text in another language, or None if it has none."""
        if language == word.language:
            return word.text

        try:
            base = await self.repository.load_target_category(word.category, self.base_language)
            target = await self.repository.load_target_category(word.category, language)
        except LoadFailure as e:
            load_failures.labels(kind=e.kind).inc()
            logger.warning("No %s translation for %s: %s", language, word.identity, str(e))
            return None

        try:
            index = base.index(word.canonical)
        except ValueError:
            return None
        return target[index] if index < len(target) else None

    # ---- Words ----
    async def new_word(self) -> HistoryEntry:
        """Pick a fresh word, show it and restart the timer."""
        language = self.settings.language
        category_words = await self._load_category_words(self._enabled_categories(), language)

        word = self.pool.pick(category_words, language)
        if word is None:
            pool_exhausted.inc()
            raise PoolExhausted()

        entry = self.history.advance(HistoryEntry(word=word, category=word.category, language=language))
        words_shown.labels(category=word.category).inc()
        logger.info("New word %s (%s)", word.identity, language)

        self._restart_timer()
        return entry

    def current_word(self) -> Optional[HistoryEntry]:
        return self.history.current()

    def prev_word(self) -> Optional[HistoryEntry]:
        return self.history.back()

    def next_word(self) -> Optional[HistoryEntry]:
        return self.history.forward()

    async def mark_solved(self) -> Optional[HistoryEntry]:
        """Retire the current word and move on to a new one.

        Returns None if no word is shown. Raises PoolExhausted if the solved
        word was the last one.
        """
        entry = self.history.current()
        if entry is None:
            return None

        if self.solved_tracker.mark_solved(entry.word):
            words_solved.labels(category=entry.category).inc()
        return await self.new_word()

    def undo_last(self) -> Optional[str]:
        identity = self.solved_tracker.undo_last()
        if identity is not None:
            undo_count.labels(kind="last").inc()
        return identity

    def undo_all(self) -> int:
        undo_count.labels(kind="all").inc()
        return self.solved_tracker.undo_all()

    async def current_display(self) -> Optional[WordDisplay]:
        """Render the current word in the current language settings."""
        entry = self.history.current()
        if entry is None:
            return None

        text = await self.translate(entry.word, self.settings.language) or entry.word.text
        translation = None
        if self.settings.second_language_enabled:
            translation = await self.translate(entry.word, self.settings.second_language)
        return WordDisplay(text=text, translation=translation)

    async def simple_words(self) -> List[List[SimpleWord]]:
        """Get the simple words grid with optional second language translations.

        Raises LoadFailure if the grid of the current language cannot be loaded.
        """
        groups = await self.repository.load_simple_words(self.settings.language)

        second: List[List[str]] = []
        if self.settings.second_language_enabled:
            try:
                second = await self.repository.load_simple_words(self.settings.second_language)
            except LoadFailure as e:
                load_failures.labels(kind=e.kind).inc()
                logger.warning("Showing simple words without translations: %s", str(e))

        grid = []
        for group_index, group in enumerate(groups):
            translations = second[group_index] if group_index < len(second) else []
            grid.append([
                SimpleWord(
                    text=word,
                    translation=translations[word_index] if word_index < len(translations) else None,
                )
                for word_index, word in enumerate(group)
            ])
        return grid

    async def counts(self) -> PoolCounts:
        """Count available words per category and over the enabled ones."""
        category_ids = [c.id for c in self.categories] or self._enabled_categories()
        category_words = await self._load_category_words(category_ids, self.base_language)
        return self.pool.counts(category_words, self.settings.enabled_categories)

    # ---- Settings ----
    def _save(self) -> None:
        self.settings_store.save(self.settings)

    def toggle_category(self, category_id: str) -> bool:
        """Enable or disable a category. Returns True if it is now enabled."""
        if self.categories and category_id not in {c.id for c in self.categories}:
            raise ValueError(f"Unknown category: {category_id}")

        enabled = self.settings.enabled_categories
        if category_id in enabled:
            enabled.discard(category_id)
        else:
            enabled.add(category_id)
        self._save()
        return category_id in enabled

    def set_role(self, role: Union[Role, str]) -> None:
        self.settings.role = Role(role)
        self._save()

    def _check_language(self, language: str) -> None:
        if language not in self.defaults.languages:
            raise ValueError(f"Unsupported language: {language}")

    def set_language(self, language: str) -> None:
        self._check_language(language)
        self.settings.language = language
        self._save()

    def set_second_language_enabled(self, enabled: bool) -> None:
        self.settings.second_language_enabled = bool(enabled)
        self._save()

    def set_second_language(self, language: str) -> None:
        self._check_language(language)
        self.settings.second_language = language
        self._save()

    def set_timer_enabled(self, enabled: bool) -> None:
        self.settings.timer_enabled = bool(enabled)
        self._save()
        if not enabled:
            self.reset_timer()

    def set_timer_minutes(self, minutes: int) -> None:
        if minutes < 1:
            raise ValueError("Timer minutes must be positive")
        self.settings.timer_minutes = int(minutes)
        self._save()

    # ---- Timer ----
    def _restart_timer(self) -> None:
        if self.settings.timer_enabled:
            self.start_timer()
        else:
            self.reset_timer()

    def start_timer(self) -> None:
        """Start a fresh countdown of the configured length."""
        self.ticker.cancel()
        self.timer.start(self.settings.timer_minutes * 60)
        if self.timer.running:
            self.ticker.start()

    def pause_timer(self) -> bool:
        return self.timer.pause()

    def resume_timer(self) -> bool:
        resumed = self.timer.resume()
        if resumed and not self.ticker.active:
            self.ticker.start()
        return resumed

    def reset_timer(self) -> None:
        self.ticker.cancel()
        self.timer.reset()

    def _handle_timer_update(self, display: str) -> None:
        if self.on_timer_update:
            self.on_timer_update(display)

    def _handle_timer_expired(self) -> None:
        timer_expired.inc()
        if self.on_timer_expired:
            self.on_timer_expired()
