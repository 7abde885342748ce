"""
Now-playing state reporting.

Sends the playback state periodically while playing and immediately on
changes.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from jukebox.utils import format_time

from .state import PlayerContext

logger = logging.getLogger(__name__)

# Heartbeat interval while playing
STATE_UPDATE_INTERVAL_SECONDS = 5.0


@dataclass
class PlaybackStateReport:
    """Snapshot of the playback state at timestamp_ms."""

    title: Optional[str]
    artist: Optional[str]
    is_playing: bool
    is_loading: bool
    position: float  # seconds
    duration: float  # seconds
    shuffle: bool
    repeat: str
    queue_length: int
    timestamp_ms: int
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "artist": self.artist,
            "isPlaying": self.is_playing,
            "isLoading": self.is_loading,
            "position": self.position,
            "duration": self.duration,
            "shuffle": self.shuffle,
            "repeat": self.repeat,
            "queueLength": self.queue_length,
            "timestamp": self.timestamp_ms,
            "error": self.error,
        }

    def describe(self) -> str:
        """One-line status, e.g. "> Artist - Title 1:02 / 3:45"."""
        if self.is_loading:
            return "... Loading"
        if not self.title:
            return f"[] {self.error}" if self.error else "[] Stopped"
        marker = ">" if self.is_playing else "||"
        who = f"{self.artist} - " if self.artist else ""
        return (
            f"{marker} {who}{self.title} "
            f"{format_time(self.position)} / {format_time(self.duration)}"
        )


SendCallback = Callable[[PlaybackStateReport], Awaitable[None]]


async def log_report(report: PlaybackStateReport) -> None:
    """Default sink: write the report to the log."""
    logger.info(report.describe())


class StateReporter:
    """
    Reports playback state to a sink.

    Sends:
    - Periodic updates every 5 seconds while playing (heartbeat)
    - Immediate updates through report_now()
    """

    def __init__(
        self,
        context: PlayerContext,
        send_callback: Optional[SendCallback] = None,
        queue_length: Optional[Callable[[], int]] = None,
        interval: float = STATE_UPDATE_INTERVAL_SECONDS,
    ):
        self._context = context
        self._send_callback = send_callback or log_report
        self._queue_length = queue_length or (lambda: 0)
        self._interval = interval

        self._is_running = False
        self._heartbeat_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the heartbeat."""
        if self._is_running:
            return

        self._is_running = True
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        logger.debug("StateReporter started")

    async def stop(self) -> None:
        self._is_running = False

        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None

        logger.debug("StateReporter stopped")

    async def report_now(self) -> None:
        """
        Send an immediate update.

        Called on play/pause/stop, track change, seek, mode change and errors.
        """
        await self._send_state_update()

    def build_report(self) -> PlaybackStateReport:
        state = self._context.state
        song = state.current_song
        return PlaybackStateReport(
            title=song.title if song else None,
            artist=song.artist if song else None,
            is_playing=state.is_playing,
            is_loading=state.is_loading,
            position=state.current_time,
            duration=state.duration,
            shuffle=state.shuffle_mode,
            repeat=state.repeat_mode.value,
            queue_length=self._queue_length(),
            timestamp_ms=int(time.time() * 1000),
            error=state.error_message,
        )

    async def _heartbeat_loop(self) -> None:
        while self._is_running:
            try:
                await asyncio.sleep(self._interval)

                # Paused/stopped state was reported when it changed
                if self._context.state.is_playing:
                    await self._send_state_update()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Heartbeat error: {e}", exc_info=True)
                await asyncio.sleep(1.0)

    async def _send_state_update(self) -> None:
        try:
            await self._send_callback(self.build_report())
        except Exception as e:
            logger.error(f"Failed to send state update: {e}", exc_info=True)
