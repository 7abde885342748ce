"""Shared fixtures: an in-memory audio output and a manually advanced frame clock."""

import asyncio
from typing import Any, Callable, Optional

import pytest

from jukebox.errors import OutputError
from jukebox.models import AlbumContext, Song
from jukebox.notifications import FrameClock
from jukebox.output import AudioOutput, AudioSource, OutputInfo, OutputState
from jukebox.storage import MemoryStore

BASE_URL = "https://audio.test/"


class FakeAudioOutput(AudioOutput):
    """
    Audio output that plays nothing.

    - failing_formats / failing_urls: prepare() raises OutputError for these
    - failing_start_formats: start() reports a playback error, then raises
    - gates: prepare(url) waits until gates[url] is set
    - finish(): simulate the current source playing to its end
    """

    def __init__(self, duration: float = 200.0):
        super().__init__("Fake Output")
        self.default_duration = duration
        self.failing_formats: set[str] = set()
        self.failing_urls: set[str] = set()
        self.failing_start_formats: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.prepared: list[str] = []
        self.started: list[str] = []
        self.seeks: list[float] = []
        self._source: Optional[AudioSource] = None
        self._position = 0.0

    def gate(self, url: str) -> asyncio.Event:
        """Hold prepare(url) until the returned event is set."""
        self.gates[url] = asyncio.Event()
        return self.gates[url]

    async def prepare(self, url: str) -> AudioSource:
        self.prepared.append(url)
        if url in self.gates:
            await self.gates[url].wait()
        if url in self.failing_urls or url.rsplit(".", 1)[-1] in self.failing_formats:
            raise OutputError(f"HTTP 404 for {url}")
        return AudioSource(url=url, duration=self.default_duration, sample_rate=44100)

    async def start(self, source: AudioSource) -> None:
        self._notify_state_change(OutputState.LOADING)
        if source.url.rsplit(".", 1)[-1] in self.failing_start_formats:
            self._notify_state_change(OutputState.ERROR)
            self._notify_playback_error("Cannot start output stream: device busy")
            raise OutputError("Cannot start output stream: device busy")
        self._source = source
        self._position = 0.0
        self.started.append(source.url)
        self._notify_state_change(OutputState.PLAYING)

    async def play(self) -> None:
        if self._source is None:
            raise OutputError("Nothing loaded")
        self._notify_state_change(OutputState.PLAYING)

    async def pause(self) -> None:
        if self._state == OutputState.PLAYING:
            self._notify_state_change(OutputState.PAUSED)

    async def stop(self) -> None:
        self._position = 0.0
        self._notify_state_change(OutputState.STOPPED)

    async def seek(self, position: float) -> None:
        if self._source is None:
            raise OutputError("Nothing loaded")
        self.seeks.append(position)
        self._position = position
        self._notify_position_update(position)

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self) -> float:
        return self._source.duration if self._source else 0.0

    async def connect(self) -> bool:
        self._is_connected = True
        return True

    async def disconnect(self) -> None:
        self._is_connected = False

    def get_info(self) -> OutputInfo:
        return OutputInfo(output_type="fake", name=self.name, device_id="fake")

    def tick(self, position: float) -> None:
        self._position = position
        self._notify_position_update(position)

    def finish(self) -> None:
        self._notify_state_change(OutputState.STOPPED)
        self._notify_track_ended()


class ManualFrameClock(FrameClock):
    """Frame clock driven by advance(); frames run every `frame_ms`."""

    def __init__(self, frame_ms: float = 16.0):
        self._now = 0.0
        self._frame_ms = frame_ms
        self._next_handle = 0
        self._pending: dict[int, Callable[[float], None]] = {}

    def now(self) -> float:
        return self._now

    def request_frame(self, callback: Callable[[float], None]) -> int:
        self._next_handle += 1
        self._pending[self._next_handle] = callback
        return self._next_handle

    def cancel_frame(self, handle: Any) -> None:
        self._pending.pop(handle, None)

    @property
    def pending_frames(self) -> int:
        return len(self._pending)

    def advance(self, ms: float) -> None:
        """Move time forward by ms, running a frame every frame_ms."""
        target = self._now + ms
        while self._now < target:
            self._now = min(self._now + self._frame_ms, target)
            due, self._pending = self._pending, {}
            for callback in due.values():
                callback(self._now)


def make_song(song_id: str, title: Optional[str] = None, **kwargs: Any) -> Song:
    return Song(id=song_id, title=title or f"Song {song_id}", **kwargs)


@pytest.fixture
def song() -> Callable[..., Song]:
    """Factory: song("a") -> Song(id="a", title="Song a")."""
    return make_song


@pytest.fixture
def album() -> AlbumContext:
    """Four-track album."""
    songs = tuple(
        make_song(str(i), f"Track {i}", artist="The Band", album="Record", duration=180.0)
        for i in range(4)
    )
    return AlbumContext(artist="The Band", album="Record", songs=songs, year=1999)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_output() -> FakeAudioOutput:
    return FakeAudioOutput()


@pytest.fixture
def frame_clock() -> ManualFrameClock:
    return ManualFrameClock()
