"""Test configuration."""
import json
import os
import random
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from describo.config import GameDefaults, ensure_directories
from describo.services.storage_service import InMemoryStore
from describo.services.word_repository import WordRepository

TARGETS = {
    "easy": {"en": ["Apple", "Chair"], "es": ["Manzana", "Silla"], "ru": ["Яблоко", "Стул"]},
    "medium": {"en": ["Computer", "Airport"], "es": ["Computadora", "Aeropuerto"], "ru": ["Компьютер", "Аэропорт"]},
    # No Russian list on purpose
    "hard": {"en": ["Democracy", "Philosophy"], "es": ["Democracia", "Filosofía"]},
}

SIMPLE_WORDS = {
    "en": [["person", "place", "thing"], ["do", "feel", "go"]],
    "es": [["persona", "lugar", "cosa"], ["hacer", "sentir"]],
}


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    # Ensure test directories exist
    ensure_directories()

    yield


@pytest.fixture
def words_dir(tmp_path: Path) -> Path:
    """Create a words directory with three small categories."""
    (tmp_path / "targets").mkdir()
    (tmp_path / "categories.json").write_text(
        json.dumps([
            {"id": "easy", "label": "Easy"},
            {"id": "medium", "label": "Medium"},
            {"id": "hard", "label": "Hard"},
        ]),
        encoding="utf-8",
    )
    for category_id, words in TARGETS.items():
        (tmp_path / "targets" / f"{category_id}.json").write_text(
            json.dumps(words, ensure_ascii=False), encoding="utf-8"
        )
    (tmp_path / "simple_words.json").write_text(
        json.dumps(SIMPLE_WORDS, ensure_ascii=False), encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def repository(words_dir: Path) -> WordRepository:
    """Create a repository reading the test words directory."""
    return WordRepository(words_dir)


@pytest.fixture
def store() -> InMemoryStore:
    """Create an empty in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def defaults() -> GameDefaults:
    """Create game defaults independent of the environment."""
    return GameDefaults(
        languages=["en", "es", "ru"],
        default_language="en",
        default_second_language="es",
        timer_minutes=1,
        tick_seconds=0.01,
        categories=[],
    )


@pytest.fixture
def rng() -> random.Random:
    """Create a seeded random generator."""
    return random.Random(1234)
