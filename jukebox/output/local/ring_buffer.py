"""
Sample FIFO shared between the asyncio feeder and the PortAudio callback.
"""

import threading

import numpy as np


class RingBuffer:
    """
    Fixed-capacity circular FIFO of float32 frames, shape (frames, channels).

    The PortAudio callback thread reads, the event loop writes; every
    access goes through one lock.
    """

    def __init__(self, capacity_frames: int, channels: int = 2):
        self._capacity = capacity_frames
        self._channels = channels
        self._data = np.zeros((capacity_frames, channels), dtype=np.float32)
        self._head = 0  # next frame to read
        self._size = 0  # frames currently stored
        self._lock = threading.Lock()

    def write(self, frames: np.ndarray) -> int:
        """Append as many frames as fit. Returns the number written."""
        with self._lock:
            count = min(len(frames), self._capacity - self._size)
            if count <= 0:
                return 0
            tail = (self._head + self._size) % self._capacity
            self._copy_in(tail, frames[:count])
            self._size += count
            return count

    def read(self, count: int) -> np.ndarray:
        """Pop exactly count frames, padding with silence on underrun."""
        out = np.zeros((count, self._channels), dtype=np.float32)
        with self._lock:
            n = min(count, self._size)
            if n:
                first = min(n, self._capacity - self._head)
                out[:first] = self._data[self._head : self._head + first]
                out[first:n] = self._data[: n - first]
                self._head = (self._head + n) % self._capacity
                self._size -= n
        return out

    def _copy_in(self, start: int, frames: np.ndarray) -> None:
        first = min(len(frames), self._capacity - start)
        self._data[start : start + first] = frames[:first]
        self._data[: len(frames) - first] = frames[first:]

    def clear(self) -> None:
        with self._lock:
            self._head = 0
            self._size = 0

    def available(self) -> int:
        """Frames waiting to be read."""
        with self._lock:
            return self._size

    def free_space(self) -> int:
        with self._lock:
            return self._capacity - self._size

    def fill_level(self) -> float:
        """Fill ratio between 0.0 and 1.0."""
        with self._lock:
            return self._size / self._capacity if self._capacity else 0.0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def channels(self) -> int:
        return self._channels
