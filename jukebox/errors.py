"""
Error taxonomy for the playback core.

None of these escape the TransportController boundary: callers see
False/None return values and a reverted loading indicator instead.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Song


class JukeboxError(Exception):
    """Base class for playback core errors."""

    pass


class OutputError(JukeboxError):
    """Audio output could not fetch, decode or drive a resource."""

    pass


class LoadError(JukeboxError):
    """
    Every audio format candidate for a song failed.

    Attributes:
        song: Song that could not be loaded
        attempts: (url, reason) pairs in the order they were tried
    """

    def __init__(self, song: "Song", attempts: Optional[list[tuple[str, str]]] = None):
        self.song = song
        self.attempts = attempts or []
        tried = ", ".join(url for url, _ in self.attempts) or "no candidates"
        super().__init__(f'Could not load "{song.title}" ({tried})')


class SeekError(JukeboxError, ValueError):
    """Seek target is not a finite, non-negative time."""

    pass


class PersistenceError(JukeboxError):
    """Storage backend failed to read or write a key."""

    pass


class QueueBoundsError(JukeboxError, IndexError):
    """Queue index out of range."""

    pass


class LibraryError(JukeboxError):
    """Music library file is missing or malformed."""

    pass
