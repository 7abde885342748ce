"""Playback state machine and its coordination components."""

from .engine import EngineListener, PlaybackEngine
from .favorites import FavoritesManager
from .history import HistoryManager
from .media_session import (
    LoggingMediaSurface,
    MediaMetadata,
    MediaSessionBridge,
    MediaSurface,
    PositionState,
)
from .queue import QueueManager
from .resolver import RepeatShuffleResolver, next_index, previous_index
from .state import PlaybackState, PlayerContext
from .state_reporter import PlaybackStateReport, StateReporter
from .transport import TransportController

__all__ = [
    # Engine
    "EngineListener",
    "PlaybackEngine",
    # State
    "PlaybackState",
    "PlayerContext",
    # Collections
    "FavoritesManager",
    "HistoryManager",
    "QueueManager",
    # Resolution
    "RepeatShuffleResolver",
    "next_index",
    "previous_index",
    # Transport
    "TransportController",
    # Media session
    "LoggingMediaSurface",
    "MediaMetadata",
    "MediaSessionBridge",
    "MediaSurface",
    "PositionState",
    # State reporting
    "PlaybackStateReport",
    "StateReporter",
]
