"""
Shared playback state and the player context that owns it.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from jukebox.models import RepeatMode, Song

if TYPE_CHECKING:
    from jukebox.config import Config
    from jukebox.storage import PersistenceGateway


@dataclass
class PlaybackState:
    """
    What the player is doing right now.

    Mutated only by TransportController and by the PlaybackEngine events
    it receives. Everything else reads it.
    """

    current_song: Optional[Song] = None
    is_playing: bool = False
    is_loading: bool = False
    current_time: float = 0.0  # seconds
    duration: float = 0.0  # seconds
    shuffle_mode: bool = False
    repeat_mode: RepeatMode = RepeatMode.OFF
    error_message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "currentSong": self.current_song.to_dict() if self.current_song else None,
            "isPlaying": self.is_playing,
            "isLoading": self.is_loading,
            "currentTime": self.current_time,
            "duration": self.duration,
            "shuffleMode": self.shuffle_mode,
            "repeatMode": self.repeat_mode.value,
            "error": self.error_message,
        }


@dataclass
class PlayerContext:
    """
    State shared by the player components.

    Built once at startup and handed to each component constructor.
    """

    config: "Config"
    store: "PersistenceGateway"
    state: PlaybackState = field(default_factory=PlaybackState)
