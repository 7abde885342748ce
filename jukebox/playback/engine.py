"""
Playback engine.

Owns the audio output, turns a Song into a playing source by trying each
audio format in turn, and forwards output events to a single listener.
"""

import asyncio
import logging
import math
from typing import Optional, Sequence

from jukebox.errors import LoadError, OutputError, SeekError
from jukebox.models import Song
from jukebox.output import AudioOutput, OutputState
from jukebox.utils import audio_url

logger = logging.getLogger(__name__)

DEFAULT_FORMATS = ("mp3", "ogg", "m4a")
DEFAULT_LOAD_TIMEOUT = 15.0  # seconds per candidate


class EngineListener:
    """
    Receiver of PlaybackEngine events.

    Every method is a no-op by default; override the ones you need.
    Callbacks run synchronously on the event loop and must not block.
    """

    def on_time_update(self, seconds: float) -> None:
        """Playback position changed (seconds from start)."""
        pass

    def on_ended(self) -> None:
        """Current source played to its end (not called for stop())."""
        pass

    def on_metadata_ready(self, duration: float) -> None:
        """A new source was started; duration in seconds."""
        pass

    def on_play(self) -> None:
        """Output started or resumed producing audio."""
        pass

    def on_pause(self) -> None:
        """Output stopped producing audio (pause, stop, load or failure)."""
        pass

    def on_error(self, message: str) -> None:
        """Output failed during playback."""
        pass


class PlaybackEngine:
    """
    Song loading with format fallback on top of an AudioOutput.

    Each load() takes a token; a load whose token is no longer the latest
    when it resumes gives up without touching the output. Only the newest
    load can start a source.
    """

    def __init__(
        self,
        output: AudioOutput,
        base_url: str,
        formats: Sequence[str] = DEFAULT_FORMATS,
        load_timeout: float = DEFAULT_LOAD_TIMEOUT,
    ):
        self._output = output
        self._base_url = base_url
        self._formats = tuple(formats)
        self._load_timeout = load_timeout
        self._listener = EngineListener()
        self._load_token = 0
        self._current_url: Optional[str] = None
        self.last_error: Optional[LoadError] = None

        output.on_state_change(self._on_output_state)
        output.on_position_update(self._on_output_position)
        output.on_track_ended(self._on_output_ended)
        output.on_playback_error(self._on_output_error)

    def set_listener(self, listener: Optional[EngineListener]) -> None:
        """Register the event listener (None restores the no-op listener)."""
        self._listener = listener or EngineListener()

    @property
    def output(self) -> AudioOutput:
        return self._output

    @property
    def current_url(self) -> Optional[str]:
        """Locator of the source currently loaded, if any."""
        return self._current_url

    def candidate_urls(self, song: Song) -> list[str]:
        """Locators to try for song, in priority order."""
        return [audio_url(self._base_url, song.title, fmt) for fmt in self._formats]

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self, song: Song) -> bool:
        """
        Load song and start playing it.

        Tries every candidate format until one is ready. Never raises.

        Returns:
            True if playback started, False if every candidate failed or a
            newer load superseded this one
        """
        self._load_token += 1
        token = self._load_token
        attempts: list[tuple[str, str]] = []

        for url in self.candidate_urls(song):
            logger.debug(f"Trying {url}")
            try:
                source = await asyncio.wait_for(self._output.prepare(url), self._load_timeout)
            except asyncio.TimeoutError:
                reason = f"timed out after {self._load_timeout:.0f}s"
            except OutputError as e:
                reason = str(e)
            except Exception as e:
                logger.error(f"Unexpected error preparing {url}: {e}", exc_info=True)
                reason = str(e)
            else:
                if token != self._load_token:
                    logger.debug(f'Load of "{song.title}" superseded, dropping {url}')
                    return False
                try:
                    await self._output.start(source)
                except OutputError as e:
                    reason = str(e)
                else:
                    self._current_url = url
                    self.last_error = None
                    logger.info(f'Loaded "{song.title}" from {url}')
                    self._listener.on_metadata_ready(source.duration)
                    return True

            if token != self._load_token:
                logger.debug(f'Load of "{song.title}" superseded')
                return False
            logger.warning(f"Candidate {url} failed: {reason}")
            attempts.append((url, reason))

        self.last_error = LoadError(song, attempts)
        logger.error(str(self.last_error))
        await self._stop_after_failure()
        return False

    async def _stop_after_failure(self) -> None:
        try:
            await self._output.stop()
        except Exception as e:
            logger.error(f"Failed to stop output after load failure: {e}")
        self._current_url = None
        self._listener.on_pause()

    # =========================================================================
    # Playback Control
    # =========================================================================

    async def play(self) -> None:
        """Resume playback. Raises OutputError if nothing is loaded."""
        await self._output.play()

    async def pause(self) -> None:
        await self._output.pause()

    async def stop(self) -> None:
        await self._output.stop()

    async def seek(self, time: float) -> None:
        """
        Seek to time (seconds).

        Raises:
            SeekError: If time is not a finite, non-negative number
        """
        try:
            target = float(time)
        except (TypeError, ValueError):
            raise SeekError(f"Invalid seek time: {time!r}")
        if not math.isfinite(target) or target < 0:
            raise SeekError(f"Invalid seek time: {time!r}")
        await self._output.seek(target)

    @property
    def current_time(self) -> float:
        return self._output.position

    @property
    def duration(self) -> float:
        return self._output.duration

    @property
    def is_playing(self) -> bool:
        return self._output.is_playing

    # =========================================================================
    # Output Events
    # =========================================================================

    def _on_output_state(self, state: OutputState) -> None:
        if state == OutputState.PLAYING:
            self._listener.on_play()
        else:
            self._listener.on_pause()

    def _on_output_position(self, position: float) -> None:
        self._listener.on_time_update(position)

    def _on_output_ended(self) -> None:
        self._listener.on_ended()

    def _on_output_error(self, message: str) -> None:
        logger.error(f"Output error: {message}")
        self._listener.on_error(message)
