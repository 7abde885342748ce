"""
Core value types: songs, album context and repeat modes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .utils import parse_duration


class RepeatMode(Enum):
    """Repeat modes."""

    OFF = "off"  # Stop at album end
    ALL = "all"  # Wrap within album
    ONE = "one"  # Restart current track

    def cycle(self) -> "RepeatMode":
        """Next mode in OFF -> ALL -> ONE -> OFF order."""
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]

    @classmethod
    def parse(cls, value: Any) -> "RepeatMode":
        """Parse a mode name ("off", "all", "one"). Raises ValueError."""
        if isinstance(value, RepeatMode):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class Song:
    """
    A playable track.

    Immutable once created; components pass references around and never
    mutate songs in place.

    Attributes:
        id: Stable identifier (dedup key for history and favorites)
        title: Track title, also the source of the audio locator
        artist: Artist name
        album: Album name, also the source of the artwork locator
        duration: Duration in seconds (0 when unknown)
        cover: Explicit artwork URL, overrides the derived album cover
    """

    id: str
    title: str
    artist: str = ""
    album: str = ""
    duration: float = 0.0
    cover: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration,
        }
        if self.cover:
            result["cover"] = self.cover
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Song":
        """
        Build a Song from a dictionary.

        Raises:
            ValueError: If id or title is missing
        """
        if not isinstance(data, dict):
            raise ValueError(f"Song entry must be an object, got {type(data).__name__}")

        song_id = data.get("id")
        title = data.get("title")
        if song_id is None or song_id == "":
            raise ValueError("Song is missing 'id'")
        if not title:
            raise ValueError(f"Song {song_id} is missing 'title'")

        return cls(
            id=str(song_id),
            title=str(title),
            artist=str(data.get("artist") or ""),
            album=str(data.get("album") or ""),
            duration=parse_duration(data.get("duration")),
            cover=data.get("cover") or None,
        )


@dataclass(frozen=True)
class AlbumContext:
    """An album's ordered track list, used for next/previous resolution."""

    artist: str
    album: str
    songs: tuple[Song, ...] = field(default_factory=tuple)
    year: Optional[int] = None

    def __len__(self) -> int:
        return len(self.songs)

    def index_of(self, song: Optional[Song]) -> int:
        """Position of song in this album (by id, then title), or -1."""
        if song is None:
            return -1
        for i, candidate in enumerate(self.songs):
            if candidate.id == song.id:
                return i
        for i, candidate in enumerate(self.songs):
            if candidate.title == song.title:
                return i
        return -1
