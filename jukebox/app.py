"""
Jukebox Application.

Wires the playback components together and manages their lifecycle.
"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

from jukebox.config import Config
from jukebox.errors import LibraryError, OutputError
from jukebox.library import Library
from jukebox.models import AlbumContext, RepeatMode
from jukebox.notifications import (
    AsyncioFrameClock,
    FrameClock,
    NotificationCenter,
    NotificationRenderer,
)
from jukebox.output import AudioOutput, LocalAudioOutput
from jukebox.playback import (
    FavoritesManager,
    HistoryManager,
    MediaSessionBridge,
    MediaSurface,
    PlaybackEngine,
    PlaybackState,
    PlayerContext,
    QueueManager,
    RepeatShuffleResolver,
    StateReporter,
    TransportController,
)
from jukebox.storage import JsonFileStore, MemoryStore, PersistenceGateway

logger = logging.getLogger(__name__)


class JukeboxApp:
    """
    Main Jukebox application.

    Orchestrates all components:
    - Storage (JsonFileStore) and library (Library)
    - Audio output (LocalAudioOutput) and PlaybackEngine
    - Queue, history, favorites and TransportController
    - Media session, notifications and state reporting

    Usage:
        config = load_config(...)
        app = JukeboxApp(config)
        await app.run(artist="...", album="...")
    """

    def __init__(
        self,
        config: Config,
        output: Optional[AudioOutput] = None,
        store: Optional[PersistenceGateway] = None,
        library: Optional[Library] = None,
        media_surface: Optional[MediaSurface] = None,
        renderer: Optional[NotificationRenderer] = None,
        clock: Optional[FrameClock] = None,
    ):
        """
        Initialize the application.

        Components passed in are used as-is; the rest are built from config
        in start().
        """
        self._config = config
        self._output = output
        self._store = store
        self._library = library
        self._media_surface = media_surface
        self._renderer = renderer
        self._clock = clock

        self._is_running = False
        self._shutdown_event = asyncio.Event()

        # Initialized in start()
        self.context: Optional[PlayerContext] = None
        self.queue: Optional[QueueManager] = None
        self.history: Optional[HistoryManager] = None
        self.favorites: Optional[FavoritesManager] = None
        self.notifications: Optional[NotificationCenter] = None
        self.engine: Optional[PlaybackEngine] = None
        self.media_session: Optional[MediaSessionBridge] = None
        self.reporter: Optional[StateReporter] = None
        self.transport: Optional[TransportController] = None

    async def start(self) -> None:
        """
        Start all components.

        Startup order:
        1. Storage
        2. Library
        3. Audio output
        4. Queue, history and favorites (restored from storage)
        5. Engine, media session, notifications, transport
        6. State reporter

        Raises:
            LibraryError: If the library file cannot be loaded
            OutputError: If the audio device cannot be opened
        """
        config = self._config
        logger.info("Starting Jukebox...")

        # 1. Storage
        if self._store is None:
            if config.storage.path:
                self._store = JsonFileStore(
                    Path(config.storage.path), debounce_seconds=config.storage.debounce_seconds
                )
                logger.info(f"Data directory: {self._store.directory}")
            else:
                self._store = MemoryStore()
                logger.info("No data directory, state is kept in memory")

        # 2. Library
        if self._library is None and config.library.path:
            self._library = Library.from_file(
                Path(config.library.path), artwork_base_url=config.library.artwork_base_url
            )

        # 3. Audio output
        if self._output is None:
            self._output = LocalAudioOutput(
                device=config.audio.device, buffer_size=config.audio.buffer_size
            )
        if not self._output.is_connected() and not await self._output.connect():
            raise OutputError(f"Cannot open audio device '{config.audio.device}'")
        logger.info(f"Audio output: {self._output.get_info()}")

        # 4. State and collections
        self.context = PlayerContext(
            config=config,
            store=self._store,
            state=PlaybackState(
                shuffle_mode=config.playback.shuffle,
                repeat_mode=RepeatMode.parse(config.playback.repeat),
            ),
        )
        self.notifications = NotificationCenter(
            renderer=self._renderer,
            clock=self._clock or AsyncioFrameClock(config.notifications.fps),
            default_duration_ms=config.notifications.duration_ms,
            min_duration_ms=config.notifications.min_duration_ms,
            dismiss_threshold=config.notifications.dismiss_threshold,
        )
        self.queue = QueueManager(self._store)
        self.history = HistoryManager(
            self._store,
            cap=config.playback.history_size,
            persisted_cap=config.playback.history_persisted,
        )
        self.favorites = FavoritesManager(self._store, notifier=self.notifications)
        self.queue.load()
        self.history.load()
        self.favorites.load()

        # 5. Playback
        self.engine = PlaybackEngine(
            self._output,
            base_url=config.audio.base_url,
            formats=config.audio.formats,
            load_timeout=config.audio.load_timeout,
        )
        self.media_session = MediaSessionBridge(
            self.context,
            surface=self._media_surface,
            artwork_base_url=config.library.artwork_base_url,
            seek_offset=config.playback.seek_offset,
        )
        self.reporter = StateReporter(self.context, queue_length=lambda: len(self.queue))
        self.transport = TransportController(
            self.context,
            self.engine,
            self.queue,
            self.history,
            resolver=RepeatShuffleResolver(),
            library=self._library,
            media_session=self.media_session,
            notifier=self.notifications,
            reporter=self.reporter,
        )
        self.transport.on_playback_finished(self._on_playback_finished)

        # 6. Reporting
        await self.reporter.start()

        self._is_running = True
        logger.info("Jukebox ready")

    async def play_initial(
        self,
        artist: Optional[str] = None,
        album: Optional[str] = None,
        shuffle_all: bool = False,
    ) -> bool:
        """
        Start playback from the command-line selection.

        Precedence: shuffle_all, then artist/album, then the restored queue.

        Raises:
            LibraryError: If the selection is not in the library
            RuntimeError: If start() has not been called
        """
        if self.transport is None or self.queue is None:
            raise RuntimeError("start() not called")

        if shuffle_all:
            return await self.transport.shuffle_all()

        if artist or album:
            context = self._select_album(artist, album)
            if not context.songs:
                raise LibraryError(f'Album "{context.album}" has no songs')
            logger.info(f"Playing {context.artist} - {context.album} ({len(context)} songs)")
            self.transport.set_album(context)
            return await self.transport.play_song(context.songs[0], context)

        if len(self.queue):
            logger.info(f"Resuming queue ({len(self.queue)} songs)")
            return await self.transport.next()

        return False

    def _select_album(self, artist: Optional[str], album: Optional[str]) -> AlbumContext:
        if self._library is None:
            raise LibraryError("No library configured (use --library)")

        if artist and album:
            context = self._library.find_album(artist, album)
            if context is None:
                raise LibraryError(f'Album "{album}" by {artist} not found in library')
            return context

        if artist:
            entry = self._library.find_artist(artist)
            if entry is None or not entry.albums:
                raise LibraryError(f"Artist {artist} not found in library")
            return entry.albums[0]

        matches = [c for c in self._library.albums() if c.album.lower() == album.strip().lower()]
        if not matches:
            raise LibraryError(f'Album "{album}" not found in library')
        return matches[0]

    def _on_playback_finished(self) -> None:
        if self._config.playback.exit_on_finish:
            logger.info("Nothing left to play, shutting down")
            self.request_shutdown()

    def request_shutdown(self) -> None:
        """Make run() return and shut the player down."""
        self._shutdown_event.set()

    async def stop(self) -> None:
        """
        Stop all components.

        Shutdown order (reverse of startup):
        1. Stop state reporter
        2. Stop transport and dismiss notifications
        3. Disconnect audio output
        4. Flush storage
        """
        if not self._is_running:
            return

        logger.info("Stopping Jukebox...")
        self._is_running = False

        # 1. Stop state reporter
        if self.reporter:
            try:
                await self.reporter.stop()
            except Exception as e:
                logger.warning(f"Error stopping state reporter: {e}")

        # 2. Stop transport
        if self.transport:
            try:
                await self.transport.close()
            except Exception as e:
                logger.warning(f"Error stopping transport: {e}")
        if self.notifications:
            self.notifications.dismiss_all()

        # 3. Disconnect audio output
        if self._output:
            try:
                await self._output.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting audio output: {e}")

        # 4. Flush storage
        if self._store:
            try:
                await self._store.close()
            except Exception as e:
                logger.warning(f"Error flushing storage: {e}")

        logger.info("Jukebox stopped")

    async def run(
        self,
        artist: Optional[str] = None,
        album: Optional[str] = None,
        shuffle_all: bool = False,
    ) -> None:
        """
        Run until interrupted, or until playback finishes with exit_on_finish.

        Sets up signal handlers for graceful shutdown on SIGINT/SIGTERM.
        """
        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Shutdown signal received")
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

        try:
            await self.start()

            started = await self.play_initial(artist, album, shuffle_all)
            if not started and self._config.playback.exit_on_finish:
                logger.warning("Nothing to play")
                return

            # Wait for shutdown signal
            await self._shutdown_event.wait()

        finally:
            await self.stop()

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def library(self) -> Optional[Library]:
        return self._library

    @property
    def output(self) -> Optional[AudioOutput]:
        return self._output
