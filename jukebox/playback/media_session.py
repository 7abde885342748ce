"""
OS media session synchronization.

Mirrors now-playing metadata and play/pause state to a media surface
(lock screen, media keys, desktop widgets) and routes the surface's
actions back to the transport.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from jukebox.models import Song
from jukebox.utils import album_image_url

from .state import PlayerContext

if TYPE_CHECKING:
    from .transport import TransportController

logger = logging.getLogger(__name__)

MEDIA_ACTIONS = (
    "play",
    "pause",
    "previoustrack",
    "nexttrack",
    "seekto",
    "seekbackward",
    "seekforward",
)
DEFAULT_SEEK_OFFSET = 10.0  # seconds

ActionHandler = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass
class MediaMetadata:
    title: str
    artist: str
    album: str
    artwork: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "artwork": [dict(image) for image in self.artwork],
        }


@dataclass
class PositionState:
    duration: float
    position: float
    playback_rate: float = 1.0


class MediaSurface(ABC):
    """The platform media controls."""

    @abstractmethod
    def set_metadata(self, metadata: Optional[MediaMetadata]) -> None:
        pass

    @abstractmethod
    def set_playback_state(self, state: str) -> None:
        """state is "playing", "paused" or "none"."""
        pass

    @abstractmethod
    def set_position_state(self, position: PositionState) -> None:
        pass

    @abstractmethod
    def set_action_handler(self, action: str, handler: Optional[ActionHandler]) -> None:
        pass


class LoggingMediaSurface(MediaSurface):
    """
    Media surface that logs what it is given.

    Keeps the last published values and the registered handlers, and can
    dispatch actions to them (used by the CLI and tests in place of a
    platform integration).
    """

    def __init__(self) -> None:
        self.metadata: Optional[MediaMetadata] = None
        self.playback_state = "none"
        self.position_state: Optional[PositionState] = None
        self.handlers: dict[str, ActionHandler] = {}

    def set_metadata(self, metadata: Optional[MediaMetadata]) -> None:
        self.metadata = metadata
        if metadata:
            logger.info(f"Now playing: {metadata.artist} - {metadata.title} [{metadata.album}]")

    def set_playback_state(self, state: str) -> None:
        self.playback_state = state
        logger.debug(f"Media session state: {state}")

    def set_position_state(self, position: PositionState) -> None:
        self.position_state = position

    def set_action_handler(self, action: str, handler: Optional[ActionHandler]) -> None:
        if handler is None:
            self.handlers.pop(action, None)
        else:
            self.handlers[action] = handler

    async def dispatch(self, action: str, details: Optional[dict[str, Any]] = None) -> bool:
        """Invoke the handler registered for action. Returns False if there is none."""
        handler = self.handlers.get(action)
        if handler is None:
            logger.warning(f"No handler for media action '{action}'")
            return False
        await handler(details or {})
        return True


class MediaSessionBridge:
    """Publishes transport state to a MediaSurface."""

    def __init__(
        self,
        context: PlayerContext,
        surface: Optional[MediaSurface] = None,
        artwork_base_url: str = "",
        seek_offset: float = DEFAULT_SEEK_OFFSET,
    ):
        self._context = context
        self._surface = surface or LoggingMediaSurface()
        self._artwork_base_url = artwork_base_url
        self._seek_offset = seek_offset
        self._is_setup = False

    @property
    def surface(self) -> MediaSurface:
        return self._surface

    def setup(self, transport: "TransportController") -> None:
        """Register action handlers. Only the first call has an effect."""
        if self._is_setup:
            return
        self._is_setup = True

        offset = self._seek_offset
        actions: dict[str, ActionHandler] = {
            "play": lambda details: transport.play(),
            "pause": lambda details: transport.pause(),
            "previoustrack": lambda details: transport.previous(),
            "nexttrack": lambda details: transport.next(),
            "seekto": lambda details: transport.seek_to(details.get("seekTime", 0)),
            "seekbackward": lambda details: transport.skip(-(details.get("seekOffset") or offset)),
            "seekforward": lambda details: transport.skip(details.get("seekOffset") or offset),
        }
        for action, handler in actions.items():
            try:
                self._surface.set_action_handler(action, handler)
            except Exception as e:
                logger.warning(f"Media surface rejected handler '{action}': {e}")

        self._publish(self._surface.set_metadata, None)
        logger.debug("Media session handlers registered")

    def build_metadata(self, song: Song) -> MediaMetadata:
        return MediaMetadata(
            title=song.title or "Unknown Song",
            artist=song.artist or "Unknown Artist",
            album=song.album or "Unknown Album",
            artwork=[
                {
                    "src": song.cover or album_image_url(self._artwork_base_url, song.album),
                    "sizes": "512x512",
                    "type": "image/jpeg",
                }
            ],
        )

    def update_metadata(self, song: Optional[Song]) -> None:
        if song is None:
            return
        self._publish(self._surface.set_metadata, self.build_metadata(song))

    def update_playback_state(self, is_playing: bool) -> None:
        self._publish(self._surface.set_playback_state, "playing" if is_playing else "paused")

        state = self._context.state
        if state.duration > 0:
            position = min(max(0.0, state.current_time), state.duration)
            self._publish(
                self._surface.set_position_state,
                PositionState(duration=state.duration, position=position),
            )

    def _publish(self, setter: Callable[[Any], None], value: Any) -> None:
        try:
            setter(value)
        except Exception as e:
            logger.warning(f"Media surface update failed: {e}")
