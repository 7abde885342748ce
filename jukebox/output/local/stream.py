"""
PortAudio stream wrapper.

Owns a sounddevice.OutputStream whose callback drains a RingBuffer.
"""

import logging
from typing import Optional

import numpy as np

from .ring_buffer import RingBuffer

logger = logging.getLogger(__name__)


class AudioOutputStream:
    """
    sounddevice.OutputStream bound to a ring buffer.

    The stream is (re)opened per source when sample rate or channel count
    changes. While paused the callback writes silence and leaves the
    buffer untouched, so the position does not advance.
    """

    def __init__(self, device_index: int, blocksize: int = 2048):
        self._device_index = device_index
        self._blocksize = blocksize
        self._ring_buffer: Optional[RingBuffer] = None
        self._stream = None  # sd.OutputStream
        self._sample_rate = 0
        self._channels = 0
        self._paused = False
        self._underruns = 0

    def attach(self, ring_buffer: RingBuffer, sample_rate: int) -> None:
        """Bind a buffer and make sure the stream matches its format."""
        import sounddevice as sd

        self._ring_buffer = ring_buffer
        self._paused = False
        channels = ring_buffer.channels

        if self._stream is not None and (self._sample_rate, self._channels) == (
            sample_rate,
            channels,
        ):
            return

        self.close()
        self._sample_rate = sample_rate
        self._channels = channels
        self._underruns = 0
        self._stream = sd.OutputStream(
            device=self._device_index,
            samplerate=sample_rate,
            channels=channels,
            dtype="float32",
            blocksize=self._blocksize,
            callback=self._callback,
        )
        logger.debug(
            f"Output stream opened: {sample_rate}Hz, {channels}ch, blocksize={self._blocksize}"
        )

    def start(self) -> None:
        if self._stream is not None:
            self._stream.start()

    def stop(self) -> None:
        if self._stream is not None:
            self._stream.stop()

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            logger.warning(f"Error closing output stream: {e}")
        self._stream = None
        self._sample_rate = 0
        self._channels = 0

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def _callback(self, outdata: np.ndarray, frames: int, time_info, status) -> None:
        """Runs on the PortAudio thread."""
        if status:
            logger.warning(f"Output stream status: {status}")

        if self._paused or self._ring_buffer is None:
            outdata[:] = 0
            return

        starved = self._ring_buffer.available() < frames
        outdata[:] = self._ring_buffer.read(frames)
        if starved:
            self._underruns += 1
            if self._underruns % 10 == 1:
                logger.debug(f"Output buffer underrun (count: {self._underruns})")
