"""Models for in-memory game data."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple


class Role(Enum):
    """Who is holding the device."""
    NARRATOR = "narrator"  # Sees the word and the controls
    GUESSER = "guesser"  # Sees only the simple words panel


class TimerStatus(Enum):
    """Countdown timer states."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


def make_identity(category: str, canonical: str) -> str:
    """Build the solved-tracking key of a word."""
    return f"{category}:{canonical}"


@dataclass(frozen=True)
class Category:
    """A word category, e.g. "easy"."""
    id: str
    label: str


@dataclass(frozen=True)
class TargetWord:
    """A word to describe, as shown in one language."""
    text: str
    language: str
    category: str
    canonical: str  # Text in the base language

    @property
    def identity(self) -> str:
        return make_identity(self.category, self.canonical)


@dataclass(frozen=True)
class HistoryEntry:
    """A shown word together with the category/language it was picked under."""
    word: TargetWord
    category: str
    language: str


@dataclass(frozen=True)
class CategoryWords:
    """Index-aligned word lists of one category."""
    base: List[str]
    display: List[str]


@dataclass
class TimerState:
    """Snapshot of the countdown timer."""
    total_seconds: int = 0
    remaining_seconds: int = 0
    status: TimerStatus = TimerStatus.IDLE

    @property
    def running(self) -> bool:
        return self.status is TimerStatus.RUNNING


@dataclass
class GameSettings:
    """User preferences persisted across restarts."""
    language: str
    second_language_enabled: bool
    second_language: str
    timer_enabled: bool
    timer_minutes: int
    enabled_categories: Set[str] = field(default_factory=set)
    role: Role = Role.NARRATOR


@dataclass(frozen=True)
class WordDisplay:
    """What the narrator sees for the current word."""
    text: str
    translation: Optional[str] = None


@dataclass(frozen=True)
class SimpleWord:
    """One chip of the simple words panel."""
    text: str
    translation: Optional[str] = None


@dataclass
class PoolCounts:
    """Per-category (available, total) counts and their sum."""
    per_category: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    available: int = 0
    total: int = 0
