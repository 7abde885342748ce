"""
Local audio output.

Downloads an audio resource, decodes it to float32 frames and plays it on
a local device through PortAudio.
"""

import asyncio
import io
import logging
from typing import Optional

import aiohttp
import numpy as np

from jukebox.errors import OutputError
from jukebox.output.base import AudioOutput
from jukebox.output.types import AudioSource, OutputInfo, OutputState
from .device import OutputDevice, resolve_device
from .ring_buffer import RingBuffer
from .stream import AudioOutputStream

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192  # Frames per feed iteration
BUFFER_SECONDS = 10  # Ring buffer capacity in seconds
BUFFER_HIGH_WATER = 0.8  # Stop feeding above this fill level


def _decode(data: bytes) -> tuple[np.ndarray, int]:
    """Decode an encoded file to a (frames, channels) float32 array."""
    import soundfile as sf

    frames, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    return frames, sample_rate


class LocalAudioOutput(AudioOutput):
    """Audio output on a local sound device via sounddevice/PortAudio."""

    def __init__(
        self,
        device: str = "default",
        buffer_size: int = 2048,
        name: str = "Local Audio",
    ):
        super().__init__(name)
        self._device_spec = device
        self._buffer_size = buffer_size

        # Initialized in connect()
        self._device: Optional[OutputDevice] = None
        self._stream: Optional[AudioOutputStream] = None
        self._ring_buffer: Optional[RingBuffer] = None

        # Current source
        self._source: Optional[AudioSource] = None
        self._frames_fed: int = 0
        self._feeding_task: Optional[asyncio.Task] = None
        self._seek_target: Optional[int] = None

    # =========================================================================
    # Loading
    # =========================================================================

    async def prepare(self, url: str) -> AudioSource:
        """Download and decode url. Raises OutputError on any failure."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise OutputError(f"HTTP {response.status} for {url}")
                    data = await response.read()
        except aiohttp.ClientError as e:
            raise OutputError(f"Download failed for {url}: {e}")

        logger.debug(f"Downloaded {len(data)} bytes from {url}, decoding...")

        loop = asyncio.get_running_loop()
        try:
            frames, sample_rate = await loop.run_in_executor(None, _decode, data)
        except Exception as e:
            # soundfile raises LibsndfileError/RuntimeError for unsupported data
            raise OutputError(f"Cannot decode {url}: {e}")

        if len(frames) == 0 or sample_rate <= 0:
            raise OutputError(f"Empty audio in {url}")

        return AudioSource(
            url=url,
            duration=len(frames) / sample_rate,
            sample_rate=sample_rate,
            frames=frames,
        )

    async def start(self, source: AudioSource) -> None:
        """Replace the current source and start playing from 0."""
        if self._stream is None:
            raise OutputError("Output not connected")

        await self._cancel_feeding()
        self._notify_state_change(OutputState.LOADING)

        self._source = source
        self._frames_fed = 0
        self._seek_target = None
        channels = source.frames.shape[1]
        self._ring_buffer = RingBuffer(int(source.sample_rate * BUFFER_SECONDS), channels)

        try:
            self._begin_feeding()
        except Exception as e:
            # Failure surfaces through the raised OutputError
            self._notify_state_change(OutputState.ERROR)
            raise OutputError(f"Cannot start output stream: {e}")

        logger.debug(
            f"Started {source.url} ({source.sample_rate}Hz, {channels}ch, "
            f"{source.duration:.1f}s)"
        )

    def _begin_feeding(self) -> None:
        self._stream.attach(self._ring_buffer, self._source.sample_rate)
        self._stream.start()
        self._feeding_task = asyncio.create_task(self._feeding_loop())
        self._notify_state_change(OutputState.PLAYING)

    async def _feeding_loop(self) -> None:
        """Feed decoded frames into the ring buffer in chunks."""
        source = self._source
        total = len(source.frames)
        try:
            while True:
                if self._seek_target is not None:
                    target, self._seek_target = self._seek_target, None
                    self._ring_buffer.clear()
                    self._frames_fed = min(target, total)
                    continue

                if self._frames_fed >= total:
                    # Let the device drain what is buffered
                    if self._ring_buffer.available() == 0:
                        break
                    await asyncio.sleep(0.1)
                    continue

                if self._ring_buffer.fill_level() > BUFFER_HIGH_WATER:
                    await asyncio.sleep(0.05)
                    continue

                end = min(self._frames_fed + CHUNK_SIZE, total)
                self._frames_fed += self._ring_buffer.write(source.frames[self._frames_fed : end])
                self._notify_position_update(self.position)
                await asyncio.sleep(0)

            self._notify_state_change(OutputState.STOPPED)
            self._notify_track_ended()

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Feeding loop error: {e}")
            self._notify_state_change(OutputState.ERROR)
            self._notify_playback_error(str(e))

    async def _cancel_feeding(self) -> None:
        if self._feeding_task and not self._feeding_task.done():
            self._feeding_task.cancel()
            try:
                await self._feeding_task
            except asyncio.CancelledError:
                pass
        self._feeding_task = None

    # =========================================================================
    # Playback Control
    # =========================================================================

    async def play(self) -> None:
        if self._source is None or self._stream is None:
            raise OutputError("Nothing loaded")

        if self._state == OutputState.PAUSED:
            self._stream.resume()
            self._notify_state_change(OutputState.PLAYING)
            return
        if self._state == OutputState.PLAYING:
            return

        # Stopped or finished: restart from the current (or seeked) frame
        await self._cancel_feeding()
        if self._frames_fed >= len(self._source.frames):
            self._frames_fed = 0
        self._ring_buffer.clear()
        self._begin_feeding()

    async def pause(self) -> None:
        if self._state != OutputState.PLAYING:
            return
        if self._stream:
            self._stream.pause()
        self._notify_state_change(OutputState.PAUSED)

    async def stop(self) -> None:
        await self._cancel_feeding()
        if self._ring_buffer:
            self._ring_buffer.clear()
        if self._stream:
            self._stream.stop()
        self._frames_fed = 0
        self._seek_target = None
        self._notify_state_change(OutputState.STOPPED)

    async def seek(self, position: float) -> None:
        if self._source is None:
            raise OutputError("Nothing loaded")
        target = max(0, min(int(position * self._source.sample_rate), len(self._source.frames)))
        if self._feeding_task and not self._feeding_task.done():
            self._seek_target = target
        else:
            self._frames_fed = target
        self._notify_position_update(target / self._source.sample_rate)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def position(self) -> float:
        if self._source is None:
            return 0.0
        if self._seek_target is not None:
            return self._seek_target / self._source.sample_rate
        buffered = self._ring_buffer.available() if self._ring_buffer else 0
        return max(0, self._frames_fed - buffered) / self._source.sample_rate

    @property
    def duration(self) -> float:
        return self._source.duration if self._source else 0.0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Resolve the device and create the (not yet opened) stream."""
        try:
            self._device = resolve_device(self._device_spec)
        except (ValueError, ImportError) as e:
            logger.error(f"Failed to initialize audio device: {e}")
            return False

        self.name = f"Local: {self._device.name}"
        self._stream = AudioOutputStream(self._device.index, blocksize=self._buffer_size)
        self._is_connected = True
        logger.info(
            f"Audio output device: {self._device.name} "
            f"({int(self._device.default_samplerate)} Hz, {self._device.channels}ch)"
        )
        return True

    async def disconnect(self) -> None:
        if self._stream is None:
            return
        await self.stop()
        self._stream.close()
        self._stream = None
        self._source = None
        self._is_connected = False

    def get_info(self) -> OutputInfo:
        return OutputInfo(
            output_type="local",
            name=self.name,
            device_id=f"local-{self._device_spec}",
            sample_rate=self._source.sample_rate if self._source else None,
            channels=self._device.channels if self._device else None,
        )
