"""Tests for solved word tracking."""
import json

import pytest

from describo.models.game_models import TargetWord
from describo.services.solved_tracker import SOLVED_KEY, SolvedTracker
from describo.services.storage_service import InMemoryStore

APPLE = TargetWord(text="Manzana", language="es", category="easy", canonical="Apple")


@pytest.fixture
def tracker(store: InMemoryStore) -> SolvedTracker:
    return SolvedTracker(store)


def test_mark_solved_persists(tracker: SolvedTracker, store: InMemoryStore) -> None:
    assert tracker.mark_solved(APPLE) is True

    assert tracker.is_solved("easy:Apple")
    assert json.loads(store.get(SOLVED_KEY)) == ["easy:Apple"]


def test_mark_solved_twice_is_idempotent(tracker: SolvedTracker, store: InMemoryStore, mocker) -> None:
    tracker.mark_solved(APPLE)
    once = tracker.solved
    saved = store.get(SOLVED_KEY)
    spy = mocker.spy(store, "set")

    assert tracker.mark_solved(APPLE) is False
    assert tracker.solved == once
    assert tracker.undo_depth == 1
    spy.assert_not_called()
    assert store.get(SOLVED_KEY) == saved


def test_undo_last_restores_previous_set(tracker: SolvedTracker, store: InMemoryStore) -> None:
    tracker.mark_solved("easy:Chair")
    before = tracker.solved

    tracker.mark_solved(APPLE)
    assert tracker.undo_last() == "easy:Apple"

    assert tracker.solved == before
    assert json.loads(store.get(SOLVED_KEY)) == ["easy:Chair"]


def test_undo_last_on_empty_stack(tracker: SolvedTracker) -> None:
    assert tracker.undo_last() is None
    assert tracker.solved == frozenset()


def test_undo_all(tracker: SolvedTracker, store: InMemoryStore) -> None:
    tracker.mark_solved("easy:Apple")
    tracker.mark_solved("easy:Chair")

    assert tracker.undo_all() == 2
    assert tracker.solved == frozenset()
    assert tracker.undo_depth == 0
    assert json.loads(store.get(SOLVED_KEY)) == []


def test_rehydrates_without_undo_history(store: InMemoryStore) -> None:
    """A new tracker sees old solved words but cannot undo them."""
    SolvedTracker(store).mark_solved(APPLE)

    reloaded = SolvedTracker(store)
    assert reloaded.is_solved("easy:Apple")
    assert reloaded.undo_last() is None
    assert reloaded.is_solved("easy:Apple")


@pytest.mark.parametrize("raw", ["not json", "{\"a\": 1}", "42"])
def test_corrupt_snapshot_gives_empty_set(raw: str) -> None:
    tracker = SolvedTracker(InMemoryStore({SOLVED_KEY: raw}))
    assert tracker.solved == frozenset()


def test_snapshot_ignores_non_string_items() -> None:
    tracker = SolvedTracker(InMemoryStore({SOLVED_KEY: json.dumps(["easy:Apple", 3, None])}))
    assert tracker.solved == frozenset({"easy:Apple"})
