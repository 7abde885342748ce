"""
Pause-aware countdown for transient notifications.

The countdown is sampled once per frame from a monotonic clock instead of
being a single wall-clock timeout, so pausing and resuming never drifts.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]  # frame time in ms
TickCallback = Callable[[float], None]  # ratio remaining, 1.0 -> 0.0
EndCallback = Callable[[], None]

DEFAULT_FPS = 60


class FrameClock(ABC):
    """Monotonic millisecond clock that can schedule a callback on the next frame."""

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""
        pass

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> Any:
        """Call callback(frame_time_ms) on the next frame. Returns a handle."""
        pass

    @abstractmethod
    def cancel_frame(self, handle: Any) -> None:
        """Cancel a pending frame request."""
        pass


class AsyncioFrameClock(FrameClock):
    """Frame clock on the running asyncio loop at a fixed frame rate."""

    def __init__(self, fps: int = DEFAULT_FPS):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self._interval = 1.0 / fps

    def now(self) -> float:
        return asyncio.get_running_loop().time() * 1000.0

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(self._interval, lambda: callback(loop.time() * 1000.0))

    def cancel_frame(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class NotificationTimerController:
    """
    Countdown with pause and resume.

    State machine: IDLE -> RUNNING <-> PAUSED, and RUNNING/PAUSED -> ENDED.
    ENDED is terminal: on_end fires at most once and no callback runs after
    stop().
    """

    def __init__(
        self,
        clock: FrameClock,
        on_tick: Optional[TickCallback] = None,
        on_end: Optional[EndCallback] = None,
    ):
        self._clock = clock
        self._on_tick = on_tick
        self._on_end = on_end
        self._state = TimerState.IDLE
        self._duration = 0.0
        self._remaining = 0.0  # at the start of the current running interval
        self._started_at = 0.0
        self._frame_handle: Any = None

    # =========================================================================
    # Control
    # =========================================================================

    def start(self, duration_ms: float) -> None:
        """Start counting down duration_ms."""
        if self._state != TimerState.IDLE:
            raise RuntimeError(f"Timer already started (state: {self._state.value})")
        if duration_ms <= 0:
            raise ValueError(f"Timer duration must be positive, got {duration_ms}")

        self._duration = float(duration_ms)
        self._remaining = self._duration
        self._started_at = self._clock.now()
        self._state = TimerState.RUNNING
        self._schedule()

    def pause(self) -> None:
        """Freeze the remaining time. No-op unless running."""
        if self._state != TimerState.RUNNING:
            return
        self._remaining = max(0.0, self._remaining - (self._clock.now() - self._started_at))
        self._cancel()
        self._state = TimerState.PAUSED

    def resume(self) -> None:
        """Continue counting down from the frozen remaining time. No-op unless paused."""
        if self._state != TimerState.PAUSED:
            return
        self._started_at = self._clock.now()
        self._state = TimerState.RUNNING
        self._schedule()

    def stop(self) -> None:
        """End the timer without calling on_end."""
        if self._state == TimerState.RUNNING:
            self._remaining = max(0.0, self._remaining - (self._clock.now() - self._started_at))
        self._cancel()
        self._state = TimerState.ENDED

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def remaining(self) -> float:
        """Milliseconds left. Only moves while running."""
        if self._state == TimerState.RUNNING:
            return max(0.0, self._remaining - (self._clock.now() - self._started_at))
        return self._remaining

    @property
    def ratio_remaining(self) -> float:
        if self._duration <= 0:
            return 0.0
        return self.remaining / self._duration

    # =========================================================================
    # Frame Loop
    # =========================================================================

    def _schedule(self) -> None:
        self._frame_handle = self._clock.request_frame(self._frame)

    def _cancel(self) -> None:
        if self._frame_handle is not None:
            self._clock.cancel_frame(self._frame_handle)
            self._frame_handle = None

    def _frame(self, now: float) -> None:
        self._frame_handle = None
        if self._state != TimerState.RUNNING:
            return

        left = max(0.0, self._remaining - (now - self._started_at))
        if self._on_tick:
            try:
                self._on_tick(left / self._duration)
            except Exception as e:
                logger.error(f"Timer tick callback error: {e}")

        if left <= 0:
            self._remaining = 0.0
            self._state = TimerState.ENDED
            if self._on_end:
                try:
                    self._on_end()
                except Exception as e:
                    logger.error(f"Timer end callback error: {e}")
            return

        self._schedule()
