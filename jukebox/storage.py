"""
Key/value persistence for queue, history and favorites.

save() and load() return immediately and never raise. JsonFileStore keeps
the latest serialized value per key in memory and writes it to disk after a
debounce delay, off the event loop.
"""

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from .errors import PersistenceError

logger = logging.getLogger(__name__)


class StorageKeys:
    """Persistence keys."""

    QUEUE = "queue"
    RECENTLY_PLAYED = "recentlyPlayed"
    FAVORITE_SONGS = "favoriteSongs"
    FAVORITE_ARTISTS = "favoriteArtists"
    FAVORITE_ALBUMS = "favoriteAlbums"


class PersistenceGateway(ABC):
    """
    Abstract key/value store.

    Failures are reported as False (save) or None (load), never raised,
    and are not retried.
    """

    @abstractmethod
    def save(self, key: str, value: Any) -> bool:
        """Store a JSON-serializable value under key."""
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Load the value stored under key, or None."""
        pass

    def flush(self) -> bool:
        """Write any pending values. Default is a no-op."""
        return True

    async def close(self) -> None:
        """Wait for background writes and flush. Called at shutdown."""
        self.flush()


class MemoryStore(PersistenceGateway):
    """In-memory store. Values round-trip through JSON like the file store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def save(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
            return True
        except (TypeError, ValueError) as e:
            logger.warning(f"Cannot serialize value for '{key}': {e}")
            return False

    def load(self, key: str) -> Optional[Any]:
        payload = self._data.get(key)
        if payload is None:
            return None
        return json.loads(payload)


class JsonFileStore(PersistenceGateway):
    """
    One JSON document per key in a directory.

    Writes are debounced: repeated saves of the same key within the
    debounce window result in a single disk write.
    """

    def __init__(self, directory: Path, debounce_seconds: float = 0.5):
        self._directory = Path(directory).expanduser()
        self._debounce = debounce_seconds
        self._pending: dict[str, str] = {}
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._inflight: set[asyncio.Task] = set()
        self._writes: dict[str, asyncio.Task] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def save(self, key: str, value: Any) -> bool:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cannot serialize value for '{key}': {e}")
            return False

        self._pending[key] = payload

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (startup/shutdown or scripts): write through
            return self._flush_key(key)

        handle = self._handles.pop(key, None)
        if handle:
            handle.cancel()
        self._handles[key] = loop.call_later(self._debounce, self._schedule_write, key)
        return True

    def load(self, key: str) -> Optional[Any]:
        if key in self._pending:
            return json.loads(self._pending[key])

        path = self._path(key)
        if not path.exists():
            return None

        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load '{key}' from {path}: {e}")
            return None

    def flush(self) -> bool:
        """Cancel pending timers and write everything now."""
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

        ok = True
        for key in list(self._pending):
            ok = self._flush_key(key) and ok
        return ok

    async def close(self) -> None:
        # Let executor writes land before the final flush so an older
        # payload cannot overwrite a newer one on disk
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        self.flush()

    def _schedule_write(self, key: str) -> None:
        """Debounce expired: queue the write behind any in-flight write of key."""
        self._handles.pop(key, None)
        if key not in self._pending:
            return
        task = asyncio.create_task(self._write_after(key, self._writes.get(key)))
        self._writes[key] = task
        self._inflight.add(task)
        task.add_done_callback(lambda t, k=key: self._on_written(k, t))

    async def _write_after(self, key: str, previous: Optional[asyncio.Task]) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        # Read the payload only now so the newest value is the one written
        payload = self._pending.get(key)
        if payload is None:
            return
        loop = asyncio.get_running_loop()
        if await loop.run_in_executor(None, self._write_quietly, key, payload):
            # Only drop the pending value if no newer save arrived meanwhile
            if self._pending.get(key) == payload:
                del self._pending[key]

    def _on_written(self, key: str, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if self._writes.get(key) is task:
            del self._writes[key]
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Background write of '{key}' failed: {task.exception()}")

    def _flush_key(self, key: str) -> bool:
        payload = self._pending.get(key)
        if payload is None:
            return True
        if self._write_quietly(key, payload):
            self._pending.pop(key, None)
            return True
        return False

    def _write_quietly(self, key: str, payload: str) -> bool:
        try:
            self._write(key, payload)
            return True
        except PersistenceError as e:
            logger.warning(str(e))
            return False

    def _write(self, key: str, payload: str) -> None:
        """Atomically replace the document for key."""
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to save '{key}' to {path}: {e}")
        logger.debug(f"Saved '{key}' ({len(payload)} bytes)")
