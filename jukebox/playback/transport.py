"""
Transport controller.

The player's state machine: turns user and media-key commands into engine
calls, picks what plays next from the queue and album context, and keeps
PlaybackState, history, the media session and the reporter in step.
"""

import asyncio
import logging
import math
import random
from typing import Any, Callable, Coroutine, Optional

from jukebox.library import Library
from jukebox.models import AlbumContext, RepeatMode, Song
from jukebox.notifications import NotificationCenter, NotificationType

from .engine import EngineListener, PlaybackEngine
from .history import HistoryManager
from .media_session import MediaSessionBridge
from .queue import QueueManager
from .resolver import RepeatShuffleResolver
from .state import PlaybackState, PlayerContext
from .state_reporter import StateReporter

logger = logging.getLogger(__name__)

# Above this position, previous() restarts the current track
PREVIOUS_TRACK_THRESHOLD_SECONDS = 3.0

LOADING_LABEL = "Loading..."

REPEAT_MESSAGES = {
    RepeatMode.OFF: "Repeat disabled",
    RepeatMode.ALL: "Repeat all songs",
    RepeatMode.ONE: "Repeat current song",
}


def _finite_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class TransportController(EngineListener):
    """
    Main playback controller.

    Coordinates:
    - PlaybackEngine: loading and the audio output
    - QueueManager: user-queued songs, consumed before the album
    - HistoryManager: recently played songs, used by previous()
    - RepeatShuffleResolver: next/previous within the album context
    - MediaSessionBridge and StateReporter: outward state

    Every play_song() call takes a new generation number. A load that
    completes after a newer play_song() started is discarded without
    touching PlaybackState.

    No engine exception escapes: commands return False instead.
    """

    def __init__(
        self,
        context: PlayerContext,
        engine: PlaybackEngine,
        queue: QueueManager,
        history: HistoryManager,
        resolver: Optional[RepeatShuffleResolver] = None,
        library: Optional[Library] = None,
        media_session: Optional[MediaSessionBridge] = None,
        notifier: Optional[NotificationCenter] = None,
        reporter: Optional[StateReporter] = None,
        rng: Optional[random.Random] = None,
    ):
        self._context = context
        self._engine = engine
        self._queue = queue
        self._history = history
        self._resolver = resolver or RepeatShuffleResolver()
        self._library = library
        self._media_session = media_session or MediaSessionBridge(context)
        self._notifier = notifier
        self._reporter = reporter
        self._rng = rng or random.Random()

        self.album: Optional[AlbumContext] = None
        self._generation = 0
        self._on_playback_finished: Optional[Callable[[], None]] = None
        self._tasks: set[asyncio.Task] = set()

        engine.set_listener(self)
        self._media_session.setup(self)

    @property
    def state(self) -> PlaybackState:
        return self._context.state

    @property
    def generation(self) -> int:
        return self._generation

    def on_playback_finished(self, callback: Optional[Callable[[], None]]) -> None:
        """Register callback for when next() finds nothing left to play."""
        self._on_playback_finished = callback

    def set_album(self, album: Optional[AlbumContext]) -> None:
        """Set the album context used for next/previous resolution."""
        self.album = album

    # =========================================================================
    # Loading
    # =========================================================================

    async def play_song(self, song: Song, album: Optional[AlbumContext] = None) -> bool:
        """
        Load and play song.

        Args:
            song: Song to play
            album: Album context for next/previous (default: looked up in
                   the library, or the current album if it contains song)

        Returns:
            True if song is now the current song
        """
        self._generation += 1
        generation = self._generation
        state = self.state

        if state.current_song is not None:
            self._history.add_to_recently_played(state.current_song)

        state.is_loading = True
        state.error_message = None
        logger.info(f'Loading "{song.title}"' + (f" by {song.artist}" if song.artist else ""))

        try:
            success = await self._engine.load(song)
        except Exception as e:
            logger.error(f'Unexpected error loading "{song.title}": {e}', exc_info=True)
            success = False

        if generation != self._generation:
            logger.debug(f'Discarding stale load of "{song.title}"')
            return False

        state.is_loading = False

        if not success:
            state.error_message = f'Could not play "{song.title}"'
            self._notify(state.error_message, NotificationType.ERROR)
            await self._report()
            return False

        state.current_song = song
        state.error_message = None
        state.duration = self._engine.duration or song.duration
        state.current_time = 0.0
        self.album = album or self._album_for(song)
        self._history.add_to_recently_played(song)
        self._media_session.update_metadata(song)
        self._media_session.update_playback_state(state.is_playing)
        await self._report()
        return True

    def _album_for(self, song: Song) -> Optional[AlbumContext]:
        if self.album is not None and self.album.index_of(song) >= 0:
            return self.album
        if self._library is not None:
            return self._library.album_context_for(song)
        return None

    # =========================================================================
    # Playback Commands
    # =========================================================================

    async def toggle(self) -> bool:
        """Play or pause. No-op without a current song."""
        if self.state.current_song is None:
            return False
        if self.state.is_playing:
            return await self.pause()
        return await self.play()

    async def play(self) -> bool:
        if self.state.current_song is None:
            logger.debug("Nothing to play")
            return False
        try:
            await self._engine.play()
        except Exception as e:
            logger.warning(f"Play failed: {e}")
            return False
        await self._report()
        return True

    async def pause(self) -> bool:
        if self.state.current_song is None:
            return False
        try:
            await self._engine.pause()
        except Exception as e:
            logger.warning(f"Pause failed: {e}")
            return False
        await self._report()
        return True

    async def stop(self) -> bool:
        try:
            await self._engine.stop()
        except Exception as e:
            logger.warning(f"Stop failed: {e}")
            return False
        self.state.is_playing = False
        self.state.current_time = 0.0
        self._media_session.update_playback_state(False)
        await self._report()
        return True

    async def next(self) -> bool:
        """
        Play the next song: queue head first, then the album.

        Stops and fires the playback-finished callback when there is none.
        """
        queued = self._queue.get_next()
        if queued is not None:
            return await self.play_song(queued)

        state = self.state
        index = self.album.index_of(state.current_song) if self.album else -1
        song = self._resolver.next(self.album, index, state.shuffle_mode, state.repeat_mode)
        if song is None:
            await self._finish()
            return False
        return await self.play_song(song, self.album)

    async def previous(self) -> bool:
        """
        Restart the current song if past 3 seconds, else go back.

        Going back prefers history over the album order.
        """
        state = self.state
        if state.current_song is not None and state.current_time > PREVIOUS_TRACK_THRESHOLD_SECONDS:
            return await self.seek_to(0)

        current_id = state.current_song.id if state.current_song else None
        song = self._history.shift_most_recent(skip_id=current_id)
        if song is not None:
            return await self.play_song(song)

        if self.album is None:
            return False
        index = max(self.album.index_of(state.current_song), 0)
        song = self._resolver.previous(self.album, index)
        if song is None:
            return False
        return await self.play_song(song, self.album)

    async def play_queue_item(self, index: int) -> bool:
        """Take the song at index out of the queue and play it."""
        song = self._queue.remove(index)
        if song is None:
            return False
        return await self.play_song(song)

    def add_to_queue(self, song: Song, position: Optional[int] = None) -> int:
        length = self._queue.add(song, position)
        self._notify(f'Added "{song.title}" to queue')
        return length

    async def _finish(self) -> None:
        try:
            await self._engine.stop()
        except Exception as e:
            logger.warning(f"Stop failed: {e}")
        state = self.state
        state.is_playing = False
        state.current_time = 0.0
        self._media_session.update_playback_state(False)
        logger.info("Playback finished")
        await self._report()

        if self._on_playback_finished:
            try:
                self._on_playback_finished()
            except Exception as e:
                logger.error(f"Playback finished callback error: {e}")

    # =========================================================================
    # Seeking
    # =========================================================================

    async def seek_to(self, time: Any) -> bool:
        """Seek within the current song. time is clamped to [0, duration]."""
        state = self.state
        if state.current_song is None:
            return False

        target = min(max(0.0, _finite_or_zero(time)), max(0.0, state.duration))
        try:
            await self._engine.seek(target)
        except Exception as e:
            logger.warning(f"Seek to {target:.1f}s failed: {e}")
            return False

        state.current_time = target
        self._media_session.update_playback_state(state.is_playing)
        await self._report()
        return True

    async def skip(self, delta: Any) -> bool:
        """Seek relative to the current position."""
        return await self.seek_to(self.state.current_time + _finite_or_zero(delta))

    # =========================================================================
    # Modes
    # =========================================================================

    async def toggle_shuffle(self) -> bool:
        """Flip shuffle mode. Returns the new mode."""
        return await self.set_shuffle(not self.state.shuffle_mode)

    async def set_shuffle(self, enabled: bool) -> bool:
        self.state.shuffle_mode = bool(enabled)
        self._notify(f"Shuffle {'enabled' if self.state.shuffle_mode else 'disabled'}")
        await self._report()
        return self.state.shuffle_mode

    async def cycle_repeat(self) -> RepeatMode:
        """Advance OFF -> ALL -> ONE -> OFF. Returns the new mode."""
        return await self.set_repeat_mode(self.state.repeat_mode.cycle())

    async def set_repeat_mode(self, mode: Any) -> RepeatMode:
        self.state.repeat_mode = RepeatMode.parse(mode)
        self._notify(REPEAT_MESSAGES[self.state.repeat_mode])
        await self._report()
        return self.state.repeat_mode

    async def shuffle_all(self) -> bool:
        """Queue the whole library in random order and play the first song."""
        if self._library is None:
            self._notify("No music library found", NotificationType.WARNING)
            return False
        songs = self._library.all_songs()
        if not songs:
            self._notify("No songs found", NotificationType.WARNING)
            return False

        self._rng.shuffle(songs)
        self._queue.clear()
        self._queue.extend(songs[1:])
        self.state.shuffle_mode = True
        self._notify("Playing all songs shuffled")
        return await self.play_song(songs[0])

    # =========================================================================
    # Display
    # =========================================================================

    @property
    def now_playing_label(self) -> str:
        state = self.state
        if state.is_loading:
            return LOADING_LABEL
        if state.current_song is not None:
            return state.current_song.title
        return state.error_message or ""

    # =========================================================================
    # Engine Events
    # =========================================================================

    def on_time_update(self, seconds: float) -> None:
        self.state.current_time = seconds

    def on_metadata_ready(self, duration: float) -> None:
        self.state.duration = duration

    def on_play(self) -> None:
        self.state.is_playing = True
        self._media_session.update_playback_state(True)

    def on_pause(self) -> None:
        self.state.is_playing = False
        self._media_session.update_playback_state(False)

    def on_error(self, message: str) -> None:
        if self.state.is_loading:
            # A failing candidate; play_song reports the load outcome
            logger.debug(f"Ignoring output error while loading: {message}")
            return
        self.state.is_playing = False
        self.state.error_message = message
        self._notify(f"Playback error: {message}", NotificationType.ERROR)

    def on_ended(self) -> None:
        self._spawn(self._handle_track_end())

    async def _handle_track_end(self) -> None:
        try:
            if self.state.repeat_mode == RepeatMode.ONE and self.state.current_song is not None:
                logger.debug(f'Repeating "{self.state.current_song.title}"')
                await self._engine.seek(0)
                await self._engine.play()
                self.state.current_time = 0.0
                return
            await self.next()
        except Exception as e:
            logger.error(f"Error advancing after track end: {e}", exc_info=True)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for background work started by engine events."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

    def _notify(self, message: str, type: NotificationType = NotificationType.INFO) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.show(message, type)
        except Exception as e:
            logger.warning(f"Notification failed: {e}")

    async def _report(self) -> None:
        if self._reporter is not None:
            await self._reporter.report_now()
