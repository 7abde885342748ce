"""
Recently played history.
"""

import logging
from typing import Optional

from jukebox.models import Song
from jukebox.storage import PersistenceGateway, StorageKeys

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50
DEFAULT_PERSISTED_SIZE = 20


class HistoryManager:
    """
    Bounded, deduplicated, most-recent-first list of played songs.

    Holds at most `cap` songs, never two with the same id. Only the first
    `persisted_cap` entries are written to storage.
    """

    def __init__(
        self,
        store: PersistenceGateway,
        cap: int = DEFAULT_HISTORY_SIZE,
        persisted_cap: int = DEFAULT_PERSISTED_SIZE,
        key: str = StorageKeys.RECENTLY_PLAYED,
    ):
        if cap < 1:
            raise ValueError(f"History cap must be positive, got {cap}")
        self._store = store
        self._cap = cap
        self._persisted_cap = min(persisted_cap, cap)
        self._key = key
        self._items: list[Song] = []

    def add_to_recently_played(self, song: Song) -> None:
        """Move song to the head, dropping the oldest entries beyond the cap."""
        self._items = [s for s in self._items if s.id != song.id]
        self._items.insert(0, song)
        del self._items[self._cap :]
        self._persist()

    def shift_most_recent(self, skip_id: Optional[str] = None) -> Optional[Song]:
        """
        Remove and return the most recent song.

        Entries whose id equals skip_id are passed over and stay in place.
        """
        for i, song in enumerate(self._items):
            if skip_id is not None and song.id == skip_id:
                continue
            del self._items[i]
            self._persist()
            return song
        return None

    def clear(self) -> None:
        self._items = []
        self._persist()

    def load(self) -> int:
        """Restore history from storage. Returns the number of songs loaded."""
        data = self._store.load(self._key)
        if not isinstance(data, list):
            return 0

        seen: set[str] = set()
        items = []
        for entry in data:
            try:
                song = Song.from_dict(entry)
            except ValueError as e:
                logger.warning(f"Skipping invalid history entry: {e}")
                continue
            if song.id not in seen:
                seen.add(song.id)
                items.append(song)
        self._items = items[: self._cap]
        logger.debug(f"Restored history: {len(self._items)} songs")
        return len(self._items)

    def _persist(self) -> None:
        payload = [song.to_dict() for song in self._items[: self._persisted_cap]]
        if not self._store.save(self._key, payload):
            logger.warning("Failed to persist history")

    @property
    def items(self) -> tuple[Song, ...]:
        """Snapshot, most recent first."""
        return tuple(self._items)

    @property
    def cap(self) -> int:
        return self._cap

    def __len__(self) -> int:
        return len(self._items)
