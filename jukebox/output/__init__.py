"""
Audio output module.

Provides the abstract output interface and the local device output.
"""

from .base import (
    AudioOutput,
    PlaybackErrorCallback,
    PositionUpdateCallback,
    StateChangeCallback,
    TrackEndedCallback,
)
from .types import AudioSource, OutputInfo, OutputState
from .local import LocalAudioOutput

__all__ = [
    # Types
    "AudioSource",
    "OutputInfo",
    "OutputState",
    # Base class
    "AudioOutput",
    # Callback types
    "PlaybackErrorCallback",
    "PositionUpdateCallback",
    "StateChangeCallback",
    "TrackEndedCallback",
    # Local output
    "LocalAudioOutput",
]
