"""Service for tracking permanently retired words."""
import json
import logging
from typing import List, Optional, Set, Union

from describo.models.game_models import TargetWord

logger = logging.getLogger(__name__)

SOLVED_KEY = "solved"


class SolvedTracker:
    """Keeps the set of solved word identities and an undo stack.

    The set is persisted after every change. The undo stack only covers
    marks made since the tracker was created.
    """

    def __init__(self, store, key: str = SOLVED_KEY):
        """Initialize the tracker and rehydrate the solved set from the store."""
        self.store = store
        self.key = key
        self._solved: Set[str] = set()
        self._undo_stack: List[str] = []
        self._load()

    def _load(self) -> None:
        raw = self.store.get(self.key)
        if raw is None:
            return

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring corrupt solved snapshot: %r", raw)
            return

        if not isinstance(data, list):
            logger.warning("Ignoring solved snapshot of type %s", type(data).__name__)
            return

        self._solved = {item for item in data if isinstance(item, str)}
        logger.info("Loaded %d solved words", len(self._solved))

    def _persist(self) -> None:
        self.store.set(self.key, json.dumps(sorted(self._solved), ensure_ascii=False))

    @property
    def solved(self) -> frozenset:
        return frozenset(self._solved)

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    def is_solved(self, identity: str) -> bool:
        """Check if a word identity is solved."""
        return identity in self._solved

    def mark_solved(self, word: Union[TargetWord, str]) -> bool:
        """Retire a word. Returns False if it was already solved.

        A repeated mark leaves the persisted set unchanged, so nothing is
        written and nothing is pushed for undo.
        """
        identity = word.identity if isinstance(word, TargetWord) else word
        if identity in self._solved:
            return False

        self._solved.add(identity)
        self._undo_stack.append(identity)
        self._persist()
        logger.info("Marked %s as solved", identity)
        return True

    def undo_last(self) -> Optional[str]:
        """Bring back the most recently solved word."""
        if not self._undo_stack:
            return None

        identity = self._undo_stack.pop()
        self._solved.discard(identity)
        self._persist()
        logger.info("Undid solved %s", identity)
        return identity

    def undo_all(self) -> int:
        """Bring back every solved word. Returns how many were cleared."""
        count = len(self._solved)
        self._solved.clear()
        self._undo_stack.clear()
        self._persist()
        logger.info("Cleared %d solved words", count)
        return count
