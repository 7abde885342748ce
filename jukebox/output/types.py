"""
Audio output types and enumerations.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional


class OutputState(IntEnum):
    """Audio output state enumeration."""

    STOPPED = 1  # Nothing playing, position at 0
    PLAYING = 2  # Active playback
    PAUSED = 3  # Paused, position maintained
    LOADING = 4  # Switching to a new source
    ERROR = 5  # Output failed mid-playback


@dataclass
class AudioSource:
    """
    A fetched and decoded resource, ready to start.

    Produced by AudioOutput.prepare() without touching playback state, so
    a superseded load can simply drop it.

    Attributes:
        url: Locator the source was fetched from
        duration: Duration in seconds
        sample_rate: Frames per second
        frames: Decoded samples (output-specific, numpy array for local output)
    """

    url: str
    duration: float
    sample_rate: int = 0
    frames: Any = field(default=None, repr=False)


@dataclass
class OutputInfo:
    """Information about an audio output, for display purposes."""

    output_type: str  # 'local', etc.
    name: str
    device_id: str
    sample_rate: Optional[int] = None
    channels: Optional[int] = None

    def __str__(self) -> str:
        if self.sample_rate:
            return f"{self.name} ({self.output_type}, {self.sample_rate}Hz)"
        return f"{self.name} ({self.output_type})"
