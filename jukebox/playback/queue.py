"""
Play queue: tracks the user explicitly queued.

Consumed head-first by TransportController.next() before falling back to
album playback.
"""

import logging
from typing import Callable, Iterable, Optional

from jukebox.errors import QueueBoundsError
from jukebox.models import Song
from jukebox.storage import PersistenceGateway, StorageKeys

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[int], None]  # new length


class QueueManager:
    """
    FIFO list of queued songs.

    Duplicates are allowed. The length only shrinks through remove(),
    get_next() and clear(). Every mutation is persisted.
    """

    def __init__(self, store: PersistenceGateway, key: str = StorageKeys.QUEUE):
        self._store = store
        self._key = key
        self._items: list[Song] = []
        self._on_change: Optional[ChangeCallback] = None

    def on_change(self, callback: Optional[ChangeCallback]) -> None:
        """Register callback for length changes (UI counts)."""
        self._on_change = callback

    # =========================================================================
    # Persistence
    # =========================================================================

    def load(self) -> int:
        """Restore the queue from storage. Returns the number of songs loaded."""
        data = self._store.load(self._key)
        if not data:
            return 0
        if not isinstance(data, list):
            logger.warning(f"Ignoring stored queue: expected a list, got {type(data).__name__}")
            return 0

        items = []
        for entry in data:
            try:
                items.append(Song.from_dict(entry))
            except ValueError as e:
                logger.warning(f"Skipping invalid queue entry: {e}")
        self._items = items
        logger.info(f"Restored queue: {len(items)} songs")
        return len(items)

    def _persist(self) -> None:
        if not self._store.save(self._key, [song.to_dict() for song in self._items]):
            logger.warning("Failed to persist queue")
        if self._on_change:
            self._on_change(len(self._items))

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, song: Song, position: Optional[int] = None) -> int:
        """
        Insert song at position, or append.

        Returns:
            New queue length
        """
        if position is None:
            self._items.append(song)
        else:
            self._items.insert(position, song)
        self._persist()
        logger.debug(f'Queued "{song.title}" ({len(self._items)} in queue)')
        return len(self._items)

    def extend(self, songs: Iterable[Song]) -> int:
        """Append several songs with a single write. Returns the new length."""
        self._items.extend(songs)
        self._persist()
        return len(self._items)

    def remove(self, index: int) -> Optional[Song]:
        """Remove and return the song at index, or None if out of range."""
        try:
            song = self._pop(index)
        except QueueBoundsError as e:
            logger.debug(str(e))
            return None
        self._persist()
        return song

    def get_next(self) -> Optional[Song]:
        """Dequeue the head, or None if the queue is empty."""
        return self.remove(0) if self._items else None

    def clear(self) -> None:
        """Empty the queue."""
        self._items = []
        self._persist()
        logger.info("Queue cleared")

    def _pop(self, index: int) -> Song:
        if not 0 <= index < len(self._items):
            raise QueueBoundsError(f"Queue index {index} out of range (length {len(self._items)})")
        return self._items.pop(index)

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def items(self) -> tuple[Song, ...]:
        """Snapshot of the queue, head first."""
        return tuple(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
