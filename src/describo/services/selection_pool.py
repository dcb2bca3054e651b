"""Uniform random word selection from the unsolved pool."""
import logging
import random
from typing import Iterable, List, Mapping, Optional

from describo.models.game_models import CategoryWords, PoolCounts, TargetWord, make_identity
from describo.services.solved_tracker import SolvedTracker

logger = logging.getLogger(__name__)


class SelectionPool:
    """Builds the candidate pool and picks from it.

    The result depends only on the word lists passed in, the language and the
    current solved set.
    """

    def __init__(self, solved_tracker: SolvedTracker, rng: Optional[random.Random] = None):
        self.solved_tracker = solved_tracker
        self.rng = rng or random.Random()

    def _all_words(
        self, category_words: Mapping[str, CategoryWords], language: str
    ) -> Iterable[TargetWord]:
        for category_id, words in category_words.items():
            # zip stops at the shorter list, so words without a base text are skipped
            for canonical, text in zip(words.base, words.display):
                yield TargetWord(text=text, language=language, category=category_id, canonical=canonical)

    def candidates(
        self, category_words: Mapping[str, CategoryWords], language: str
    ) -> List[TargetWord]:
        """Get all unsolved words of the given categories."""
        return [
            word for word in self._all_words(category_words, language)
            if not self.solved_tracker.is_solved(word.identity)
        ]

    def pick(
        self, category_words: Mapping[str, CategoryWords], language: str
    ) -> Optional[TargetWord]:
        """Pick an unsolved word uniformly at random, or None if none is left."""
        pool = self.candidates(category_words, language)
        if not pool:
            logger.info("Pool exhausted for categories %s", sorted(category_words))
            return None

        word = self.rng.choice(pool)
        logger.debug("Picked %s out of %d candidates", word.identity, len(pool))
        return word

    def counts(
        self,
        category_words: Mapping[str, CategoryWords],
        enabled: Optional[Iterable[str]] = None,
    ) -> PoolCounts:
        """Count available and total words per category.

        The overall sums only cover the enabled categories when given.
        """
        enabled = set(category_words) if enabled is None else set(enabled)
        counts = PoolCounts()
        for category_id, words in category_words.items():
            total = len(words.base)
            available = sum(
                1 for canonical in words.base
                if not self.solved_tracker.is_solved(make_identity(category_id, canonical))
            )
            counts.per_category[category_id] = (available, total)
            if category_id in enabled:
                counts.available += available
                counts.total += total
        return counts
