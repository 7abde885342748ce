"""
Abstract audio output interface.

The audio output is the single playback primitive of the player. It is
exclusively owned by PlaybackEngine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import AudioSource, OutputInfo, OutputState

logger = logging.getLogger(__name__)

# Event callback types
StateChangeCallback = Callable[[OutputState], None]
PositionUpdateCallback = Callable[[float], None]  # position in seconds
TrackEndedCallback = Callable[[], None]
PlaybackErrorCallback = Callable[[str], None]  # error_message


class AudioOutput(ABC):
    """
    Abstract base class for audio outputs.

    Loading is split in two phases:
    - prepare(url): fetch and decode, no side effects on playback
    - start(source): replace the current source and start playing

    Outputs must implement all abstract methods and report changes through
    the _notify_* helpers.
    """

    def __init__(self, name: str = "AudioOutput"):
        """Initialize output."""
        self.name = name
        self._state: OutputState = OutputState.STOPPED
        self._is_connected: bool = False

        # Event callbacks
        self._on_state_change: Optional[StateChangeCallback] = None
        self._on_position_update: Optional[PositionUpdateCallback] = None
        self._on_track_ended: Optional[TrackEndedCallback] = None
        self._on_playback_error: Optional[PlaybackErrorCallback] = None

    # =========================================================================
    # Loading - Required
    # =========================================================================

    @abstractmethod
    async def prepare(self, url: str) -> AudioSource:
        """
        Fetch and decode a resource until it is ready to play.

        Raises:
            OutputError: If the resource is unreachable or cannot be decoded
        """
        pass

    @abstractmethod
    async def start(self, source: AudioSource) -> None:
        """Stop whatever is playing and start source from the beginning."""
        pass

    # =========================================================================
    # Playback Control - Required
    # =========================================================================

    @abstractmethod
    async def play(self) -> None:
        """Resume paused playback, or restart a finished source."""
        pass

    @abstractmethod
    async def pause(self) -> None:
        """Pause current playback."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop playback completely."""
        pass

    @abstractmethod
    async def seek(self, position: float) -> None:
        """Seek to position (seconds) in the current source."""
        pass

    # =========================================================================
    # State
    # =========================================================================

    @property
    @abstractmethod
    def position(self) -> float:
        """Current playback position in seconds."""
        pass

    @property
    @abstractmethod
    def duration(self) -> float:
        """Duration of the current source in seconds (0 when none)."""
        pass

    @property
    def state(self) -> OutputState:
        """Current output state."""
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == OutputState.PLAYING

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    async def connect(self) -> bool:
        """Open the output device. Returns True if successful."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the output device."""
        pass

    def is_connected(self) -> bool:
        """Check if output is connected."""
        return self._is_connected

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def on_state_change(self, callback: Optional[StateChangeCallback]) -> None:
        """Register callback for state changes."""
        self._on_state_change = callback

    def on_position_update(self, callback: Optional[PositionUpdateCallback]) -> None:
        """Register callback for position updates."""
        self._on_position_update = callback

    def on_track_ended(self, callback: Optional[TrackEndedCallback]) -> None:
        """Register callback for natural track end (not stop command)."""
        self._on_track_ended = callback

    def on_playback_error(self, callback: Optional[PlaybackErrorCallback]) -> None:
        """Register callback for playback errors."""
        self._on_playback_error = callback

    # =========================================================================
    # Event Notification Helpers
    # =========================================================================

    def _notify_state_change(self, state: OutputState) -> None:
        """Notify listeners of state change."""
        old_state = self._state
        self._state = state
        if old_state != state and self._on_state_change:
            try:
                self._on_state_change(state)
            except Exception as e:
                logger.error(f"State change callback error: {e}")

    def _notify_position_update(self, position: float) -> None:
        """Notify listeners of position update."""
        if self._on_position_update:
            try:
                self._on_position_update(position)
            except Exception as e:
                logger.error(f"Position update callback error: {e}")

    def _notify_track_ended(self) -> None:
        """Notify listeners that track ended naturally."""
        if self._on_track_ended:
            try:
                self._on_track_ended()
            except Exception as e:
                logger.error(f"Track ended callback error: {e}")

    def _notify_playback_error(self, message: str) -> None:
        """Notify listeners of playback error."""
        if self._on_playback_error:
            try:
                self._on_playback_error(message)
            except Exception as e:
                logger.error(f"Playback error callback error: {e}")

    # =========================================================================
    # Info
    # =========================================================================

    def get_info(self) -> OutputInfo:
        """Get information about this output."""
        return OutputInfo(
            output_type="unknown",
            name=self.name,
            device_id="",
        )
