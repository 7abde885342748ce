"""Tests for queue management."""

import random
from unittest.mock import MagicMock

import pytest

from jukebox.models import Song
from jukebox.playback.queue import QueueManager
from jukebox.storage import MemoryStore, StorageKeys


def _songs(*ids: str) -> list[Song]:
    return [Song(id=i, title=f"Song {i}") for i in ids]


class TestQueueManager:
    """Tests for QueueManager class."""

    @pytest.fixture
    def queue(self, store: MemoryStore) -> QueueManager:
        """Create a fresh queue."""
        return QueueManager(store)

    # =========================================================================
    # Add / Remove Tests
    # =========================================================================

    def test_add_appends(self, queue: QueueManager) -> None:
        a, b = _songs("a", "b")
        assert queue.add(a) == 1
        assert queue.add(b) == 2
        assert [s.id for s in queue.items] == ["a", "b"]

    def test_add_at_position(self, queue: QueueManager) -> None:
        a, b, c = _songs("a", "b", "c")
        queue.add(a)
        queue.add(b)
        queue.add(c, position=0)
        assert [s.id for s in queue.items] == ["c", "a", "b"]

    def test_duplicates_allowed(self, queue: QueueManager) -> None:
        (a,) = _songs("a")
        queue.add(a)
        queue.add(a)
        assert len(queue) == 2

    def test_remove_returns_song(self, queue: QueueManager) -> None:
        queue.extend(_songs("a", "b", "c"))
        removed = queue.remove(1)
        assert removed is not None
        assert removed.id == "b"
        assert [s.id for s in queue.items] == ["a", "c"]

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_remove_out_of_range_is_noop(self, queue: QueueManager, index: int) -> None:
        queue.extend(_songs("a", "b", "c"))
        assert queue.remove(index) is None
        assert len(queue) == 3

    def test_length_after_random_operations(self, queue: QueueManager) -> None:
        """Final length = adds - in-bounds removes."""
        rng = random.Random(42)
        adds = in_bounds_removes = 0
        for step in range(300):
            if rng.random() < 0.55:
                queue.add(Song(id=str(step), title="t"))
                adds += 1
            else:
                index = rng.randint(-2, len(queue) + 2)
                if queue.remove(index) is not None:
                    in_bounds_removes += 1
        assert len(queue) == adds - in_bounds_removes

    # =========================================================================
    # Navigation Tests
    # =========================================================================

    def test_get_next_dequeues_head(self, queue: QueueManager) -> None:
        queue.extend(_songs("a", "b"))

        first = queue.get_next()
        assert first is not None and first.id == "a"
        second = queue.get_next()
        assert second is not None and second.id == "b"
        assert queue.get_next() is None
        assert queue.is_empty

    def test_clear(self, queue: QueueManager) -> None:
        queue.extend(_songs("a", "b"))
        queue.clear()
        assert len(queue) == 0

    # =========================================================================
    # Persistence Tests
    # =========================================================================

    def test_mutations_persist(self, queue: QueueManager, store: MemoryStore) -> None:
        queue.extend(_songs("a", "b"))
        queue.get_next()
        assert [entry["id"] for entry in store.load(StorageKeys.QUEUE)] == ["b"]

    def test_load_restores(self, store: MemoryStore) -> None:
        QueueManager(store).extend(_songs("a", "b"))

        restored = QueueManager(store)
        assert restored.load() == 2
        assert [s.id for s in restored.items] == ["a", "b"]

    def test_load_skips_invalid_entries(self, store: MemoryStore) -> None:
        store.save(StorageKeys.QUEUE, [{"id": "a", "title": "A"}, {"title": "no id"}, "junk"])
        queue = QueueManager(store)
        assert queue.load() == 1
        assert queue.items[0].id == "a"

    def test_load_ignores_non_list(self, store: MemoryStore) -> None:
        store.save(StorageKeys.QUEUE, {"id": "a"})
        assert QueueManager(store).load() == 0

    def test_load_empty_store(self, queue: QueueManager) -> None:
        assert queue.load() == 0

    def test_save_failure_does_not_raise(self) -> None:
        store = MagicMock()
        store.save.return_value = False
        queue = QueueManager(store)
        assert queue.add(Song(id="a", title="A")) == 1

    def test_change_callback(self, queue: QueueManager) -> None:
        lengths = []
        queue.on_change(lengths.append)
        queue.extend(_songs("a", "b"))
        queue.remove(0)
        queue.clear()
        assert lengths == [2, 1, 0]
