"""Tests for PlaybackEngine format fallback and event forwarding."""

import asyncio
import math
from unittest.mock import MagicMock

import pytest

from jukebox.errors import LoadError, SeekError
from jukebox.models import Song
from jukebox.output import OutputState
from jukebox.playback.engine import EngineListener, PlaybackEngine

BASE_URL = "https://audio.test/"


class RecordingListener(EngineListener):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def on_time_update(self, seconds: float) -> None:
        self.events.append(("time", seconds))

    def on_ended(self) -> None:
        self.events.append(("ended",))

    def on_metadata_ready(self, duration: float) -> None:
        self.events.append(("metadata", duration))

    def on_play(self) -> None:
        self.events.append(("play",))

    def on_pause(self) -> None:
        self.events.append(("pause",))

    def on_error(self, message: str) -> None:
        self.events.append(("error", message))

    def names(self) -> list[str]:
        return [e[0] for e in self.events]


@pytest.fixture
def engine(fake_output) -> PlaybackEngine:
    return PlaybackEngine(fake_output, base_url=BASE_URL, load_timeout=1.0)


@pytest.fixture
def listener(engine) -> RecordingListener:
    listener = RecordingListener()
    engine.set_listener(listener)
    return listener


SONG = Song(id="1", title="Don't Stop Me Now", artist="Queen")


class TestCandidates:
    """Candidate locators."""

    def test_candidate_order(self, engine: PlaybackEngine) -> None:
        assert engine.candidate_urls(SONG) == [
            f"{BASE_URL}dontstopmenow.mp3",
            f"{BASE_URL}dontstopmenow.ogg",
            f"{BASE_URL}dontstopmenow.m4a",
        ]

    def test_custom_formats(self, fake_output) -> None:
        engine = PlaybackEngine(fake_output, base_url=BASE_URL, formats=["flac"])
        assert engine.candidate_urls(SONG) == [f"{BASE_URL}dontstopmenow.flac"]


class TestLoad:
    """Loading with format fallback."""

    @pytest.mark.asyncio
    async def test_first_format_wins(self, engine, fake_output, listener) -> None:
        assert await engine.load(SONG) is True

        assert fake_output.prepared == [f"{BASE_URL}dontstopmenow.mp3"]
        assert fake_output.started == [f"{BASE_URL}dontstopmenow.mp3"]
        assert engine.current_url == f"{BASE_URL}dontstopmenow.mp3"
        assert engine.is_playing
        assert ("metadata", 200.0) in listener.events
        assert listener.names()[-2:] == ["play", "metadata"]

    @pytest.mark.asyncio
    async def test_falls_back_to_next_format(self, engine, fake_output) -> None:
        fake_output.failing_formats = {"mp3"}

        assert await engine.load(SONG) is True
        assert fake_output.prepared == [
            f"{BASE_URL}dontstopmenow.mp3",
            f"{BASE_URL}dontstopmenow.ogg",
        ]
        assert fake_output.started == [f"{BASE_URL}dontstopmenow.ogg"]

    @pytest.mark.asyncio
    async def test_all_formats_fail(self, engine, fake_output, listener) -> None:
        fake_output.failing_formats = {"mp3", "ogg", "m4a"}

        assert await engine.load(SONG) is False

        assert len(fake_output.prepared) == 3
        assert fake_output.started == []
        assert isinstance(engine.last_error, LoadError)
        assert engine.last_error.song == SONG
        assert [url for url, _ in engine.last_error.attempts] == fake_output.prepared
        assert "404" in engine.last_error.attempts[0][1]
        assert not engine.is_playing
        assert listener.names()[-1] == "pause"

    @pytest.mark.asyncio
    async def test_failed_load_after_playing_stops_output(self, engine, fake_output) -> None:
        await engine.load(SONG)
        assert engine.is_playing

        fake_output.failing_formats = {"mp3", "ogg", "m4a"}
        assert await engine.load(Song(id="2", title="Other")) is False

        assert fake_output.state == OutputState.STOPPED
        assert engine.current_url is None

    @pytest.mark.asyncio
    async def test_success_clears_last_error(self, engine, fake_output) -> None:
        fake_output.failing_formats = {"mp3", "ogg", "m4a"}
        await engine.load(SONG)
        assert engine.last_error is not None

        fake_output.failing_formats = set()
        assert await engine.load(SONG) is True
        assert engine.last_error is None

    @pytest.mark.asyncio
    async def test_timeout_moves_to_next_candidate(self, fake_output) -> None:
        engine = PlaybackEngine(fake_output, base_url=BASE_URL, load_timeout=0.01)
        fake_output.gate(f"{BASE_URL}dontstopmenow.mp3")  # never released

        assert await engine.load(SONG) is True
        assert fake_output.started == [f"{BASE_URL}dontstopmenow.ogg"]

    @pytest.mark.asyncio
    async def test_superseded_load_never_starts(self, engine, fake_output) -> None:
        gate = fake_output.gate(f"{BASE_URL}first.mp3")

        first = asyncio.create_task(engine.load(Song(id="1", title="First")))
        await asyncio.sleep(0)
        assert await engine.load(Song(id="2", title="Second")) is True

        gate.set()
        assert await first is False
        assert fake_output.started == [f"{BASE_URL}second.mp3"]
        # No further candidates tried for the superseded song
        assert f"{BASE_URL}first.ogg" not in fake_output.prepared

    @pytest.mark.asyncio
    async def test_superseded_failure_does_not_stop_output(self, engine, fake_output) -> None:
        gate = fake_output.gate(f"{BASE_URL}first.mp3")
        fake_output.failing_urls = {f"{BASE_URL}first.mp3"}

        first = asyncio.create_task(engine.load(Song(id="1", title="First")))
        await asyncio.sleep(0)
        assert await engine.load(Song(id="2", title="Second")) is True

        gate.set()
        assert await first is False
        assert engine.last_error is None
        assert fake_output.state == OutputState.PLAYING

    @pytest.mark.asyncio
    async def test_unexpected_prepare_error_is_a_failed_candidate(
        self, engine, fake_output
    ) -> None:
        original = fake_output.prepare

        async def flaky(url: str):
            if url.endswith(".mp3"):
                raise RuntimeError("boom")
            return await original(url)

        fake_output.prepare = flaky
        assert await engine.load(SONG) is True
        assert engine.current_url.endswith(".ogg")


class TestControls:
    """play/pause/seek passthrough."""

    @pytest.mark.asyncio
    async def test_pause_and_play(self, engine, fake_output, listener) -> None:
        await engine.load(SONG)
        await engine.pause()
        assert fake_output.state == OutputState.PAUSED
        assert listener.names()[-1] == "pause"

        await engine.play()
        assert fake_output.state == OutputState.PLAYING
        assert listener.names()[-1] == "play"

    @pytest.mark.asyncio
    async def test_seek(self, engine, fake_output, listener) -> None:
        await engine.load(SONG)
        await engine.seek(42.5)
        assert engine.current_time == 42.5
        assert ("time", 42.5) in listener.events

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [-1, math.nan, math.inf, "abc", None])
    async def test_seek_rejects_invalid_time(self, engine, value) -> None:
        await engine.load(SONG)
        with pytest.raises(SeekError):
            await engine.seek(value)

    @pytest.mark.asyncio
    async def test_duration(self, engine) -> None:
        assert engine.duration == 0.0
        await engine.load(SONG)
        assert engine.duration == 200.0


class TestEvents:
    """Output events forwarded to the listener."""

    @pytest.mark.asyncio
    async def test_ended_forwarded(self, engine, fake_output, listener) -> None:
        await engine.load(SONG)
        fake_output.finish()
        assert listener.names()[-2:] == ["pause", "ended"]

    def test_error_forwarded(self, engine, fake_output, listener) -> None:
        fake_output._notify_playback_error("device lost")
        assert listener.events[-1] == ("error", "device lost")

    def test_listener_exceptions_do_not_reach_output(self, engine, fake_output) -> None:
        listener = MagicMock(spec=EngineListener)
        listener.on_time_update.side_effect = RuntimeError("listener bug")
        engine.set_listener(listener)

        fake_output.tick(3.0)  # logged by the output, not raised
        listener.on_time_update.assert_called_once_with(3.0)

    def test_default_listener_ignores_events(self, engine, fake_output) -> None:
        engine.set_listener(None)
        fake_output.tick(1.0)
        fake_output.finish()
