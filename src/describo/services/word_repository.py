"""Service for loading word lists from the data directory."""
import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from describo.config import settings
from describo.errors import LoadFailure
from describo.models.game_models import Category

logger = logging.getLogger(__name__)

# (kind, category, language)
CacheKey = Tuple[str, Optional[str], Optional[str]]

CATEGORY_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class WordRepository:
    """Loads categories, target words and simple words from JSON files.

    Layout of the words directory:
        categories.json           [{"id": ..., "label": ...}, ...]
        targets/<category>.json   {"<lang>": ["word", ...], ...}
        simple_words.json         {"<lang>": [["word", ...], ...], ...}

    Target lists are index-aligned across languages. Results are cached per
    (kind, category, language) key and concurrent requests for the same key
    share one pending load. Failed loads are not cached.
    """

    def __init__(self, words_dir: Optional[Path] = None):
        """Initialize the repository with the directory holding the word files."""
        self.words_dir = Path(words_dir or settings.paths.words_dir)
        self._cache: Dict[CacheKey, asyncio.Task] = {}

    async def _load(self, key: CacheKey, loader: Callable[[], Any]) -> Any:
        task = self._cache.get(key)
        if task is None:
            task = asyncio.create_task(asyncio.to_thread(loader))
            self._cache[key] = task

        try:
            # Shield so a cancelled caller does not cancel a load others wait on
            return await asyncio.shield(task)
        except Exception as e:
            if self._cache.get(key) is task:
                del self._cache[key]
            logger.warning("%s", e)
            raise

    def _read_json(self, kind: str, key: Any, path: Path) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise LoadFailure(kind, key, "file not found") from e
        except json.JSONDecodeError as e:
            raise LoadFailure(kind, key, f"invalid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise LoadFailure(kind, key, f"invalid encoding: {e}") from e
        except OSError as e:
            raise LoadFailure(kind, key, str(e)) from e

    def _read_category_index(self) -> List[Category]:
        data = self._read_json("categories", None, self.words_dir / "categories.json")
        if not isinstance(data, list):
            raise LoadFailure("categories", None, "expected a list")

        categories = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str):
                raise LoadFailure("categories", None, f"malformed entry {item!r}")
            categories.append(Category(id=item["id"], label=str(item.get("label") or item["id"])))
        return categories

    def _read_target_category(self, category_id: str, language: str) -> List[str]:
        key = (category_id, language)
        if not CATEGORY_ID_RE.match(category_id):
            raise LoadFailure("category", key, "invalid category id")

        data = self._read_json("category", key, self.words_dir / "targets" / f"{category_id}.json")
        words = data.get(language) if isinstance(data, dict) else None
        if words is None:
            raise LoadFailure("category", key, "language not available")
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise LoadFailure("category", key, "expected a list of strings")
        return words

    def _read_simple_words(self, language: str) -> List[List[str]]:
        data = self._read_json("simple_words", language, self.words_dir / "simple_words.json")
        groups = data.get(language) if isinstance(data, dict) else None
        if groups is None:
            raise LoadFailure("simple_words", language, "language not available")
        if not isinstance(groups, list) or not all(
            isinstance(g, list) and all(isinstance(w, str) for w in g) for g in groups
        ):
            raise LoadFailure("simple_words", language, "expected a list of word groups")
        return groups

    async def load_category_index(self) -> List[Category]:
        """Load the ordered list of categories."""
        categories = await self._load(("categories", None, None), self._read_category_index)
        return list(categories)

    async def load_target_category(self, category_id: str, language: str) -> List[str]:
        """Load the target words of a category in a language."""
        words = await self._load(
            ("category", category_id, language),
            lambda: self._read_target_category(category_id, language),
        )
        return list(words)

    async def load_simple_words(self, language: str) -> List[List[str]]:
        """Load the simple words grid of a language."""
        groups = await self._load(
            ("simple_words", None, language),
            lambda: self._read_simple_words(language),
        )
        return [list(group) for group in groups]
