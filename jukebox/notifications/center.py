"""
Transient user notifications (toasts).

Each notification owns a countdown timer. Hovering, holding or dragging a
notification pauses its countdown; a horizontal drag past the dismissal
threshold dismisses it immediately.
"""

import itertools
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .timer import AsyncioFrameClock, FrameClock, NotificationTimerController

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 5000
MIN_DURATION_MS = 1200
DISMISS_THRESHOLD_PX = 56.0

UndoCallback = Callable[[], None]


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class DismissReason(str, Enum):
    TIMEOUT = "timeout"
    SWIPE = "swipe"
    UNDO = "undo"
    CLOSED = "closed"


@dataclass(frozen=True)
class Notification:
    """What a renderer shows."""

    id: int
    message: str
    type: NotificationType = NotificationType.INFO
    title: Optional[str] = None
    duration_ms: float = DEFAULT_DURATION_MS
    has_undo: bool = False


class NotificationRenderer(ABC):
    """Surface that displays notifications."""

    @abstractmethod
    def show(self, notification: Notification) -> None:
        pass

    @abstractmethod
    def update_progress(self, notification: Notification, ratio_remaining: float) -> None:
        pass

    @abstractmethod
    def dismiss(self, notification: Notification, reason: DismissReason) -> None:
        pass


_LOG_LEVELS = {
    NotificationType.INFO: logging.INFO,
    NotificationType.SUCCESS: logging.INFO,
    NotificationType.WARNING: logging.WARNING,
    NotificationType.ERROR: logging.ERROR,
}


class LoggingNotificationRenderer(NotificationRenderer):
    """Writes notifications to the log."""

    def show(self, notification: Notification) -> None:
        text = notification.message
        if notification.title:
            text = f"{notification.title}: {text}"
        logger.log(_LOG_LEVELS[notification.type], f"[{notification.type.value}] {text}")

    def update_progress(self, notification: Notification, ratio_remaining: float) -> None:
        pass

    def dismiss(self, notification: Notification, reason: DismissReason) -> None:
        logger.debug(f"Notification {notification.id} dismissed ({reason.value})")


@dataclass
class _Drag:
    start_x: float
    last_x: float


class ActiveNotification:
    """A notification on screen and its interaction state."""

    def __init__(
        self,
        notification: Notification,
        clock: FrameClock,
        renderer: NotificationRenderer,
        undo: Optional[UndoCallback] = None,
        dismiss_threshold: float = DISMISS_THRESHOLD_PX,
        on_dismissed: Optional[Callable[["ActiveNotification"], None]] = None,
    ):
        self.notification = notification
        self._renderer = renderer
        self._undo = undo
        self._threshold = dismiss_threshold
        self._on_dismissed = on_dismissed
        self._drag: Optional[_Drag] = None
        self._dismissed: Optional[DismissReason] = None
        self.timer = NotificationTimerController(
            clock,
            on_tick=self._on_tick,
            on_end=lambda: self.dismiss(DismissReason.TIMEOUT),
        )

    def _start(self) -> None:
        self._renderer.show(self.notification)
        self.timer.start(self.notification.duration_ms)

    @property
    def is_dismissed(self) -> bool:
        return self._dismissed is not None

    @property
    def dismiss_reason(self) -> Optional[DismissReason]:
        return self._dismissed

    # =========================================================================
    # Pointer and Touch
    # =========================================================================

    def pointer_enter(self) -> None:
        self.timer.pause()

    def pointer_leave(self) -> None:
        self.timer.resume()

    def pointer_down(self, x: float) -> None:
        self.timer.pause()
        self._drag = _Drag(start_x=x, last_x=x)

    def pointer_move(self, x: float) -> None:
        if self._drag is not None:
            self._drag.last_x = x

    def pointer_up(self) -> None:
        self._end_drag()
        self.timer.resume()

    pointer_cancel = pointer_up

    def touch_start(self, x: float) -> None:
        self.pointer_down(x)

    def touch_end(self, x: float) -> None:
        self.pointer_move(x)
        self.pointer_up()

    touch_cancel = touch_end

    @property
    def drag_offset(self) -> float:
        """Horizontal displacement of the active drag, 0 when not dragging."""
        if self._drag is None:
            return 0.0
        return self._drag.last_x - self._drag.start_x

    def _end_drag(self) -> None:
        if self._drag is None:
            return
        offset = self.drag_offset
        self._drag = None
        if abs(offset) >= self._threshold:
            self.dismiss(DismissReason.SWIPE)

    # =========================================================================
    # Actions
    # =========================================================================

    def undo(self) -> None:
        """Run the undo callback, then dismiss."""
        if self.is_dismissed:
            return
        if self._undo is not None:
            try:
                self._undo()
            except Exception as e:
                logger.error(f"Undo callback error: {e}")
        self.dismiss(DismissReason.UNDO)

    def dismiss(self, reason: DismissReason = DismissReason.CLOSED) -> None:
        if self.is_dismissed:
            return
        self._dismissed = reason
        self.timer.stop()
        try:
            self._renderer.dismiss(self.notification, reason)
        except Exception as e:
            logger.error(f"Notification renderer error: {e}")
        if self._on_dismissed:
            self._on_dismissed(self)

    def _on_tick(self, ratio_remaining: float) -> None:
        self._renderer.update_progress(self.notification, ratio_remaining)


class NotificationCenter:
    """Creates notifications and keeps track of the ones on screen."""

    def __init__(
        self,
        renderer: Optional[NotificationRenderer] = None,
        clock: Optional[FrameClock] = None,
        default_duration_ms: float = DEFAULT_DURATION_MS,
        min_duration_ms: float = MIN_DURATION_MS,
        dismiss_threshold: float = DISMISS_THRESHOLD_PX,
    ):
        self._renderer = renderer or LoggingNotificationRenderer()
        self._clock = clock or AsyncioFrameClock()
        self._default_duration = default_duration_ms
        self._min_duration = min_duration_ms
        self._threshold = dismiss_threshold
        self._ids = itertools.count(1)
        self._active: list[ActiveNotification] = []

    def show(
        self,
        message: str,
        type: NotificationType = NotificationType.INFO,
        undo: Optional[UndoCallback] = None,
        duration: Optional[float] = None,
        title: Optional[str] = None,
    ) -> ActiveNotification:
        """Display a notification; newest first in `active`."""
        notification = Notification(
            id=next(self._ids),
            message=str(message),
            type=NotificationType(type),
            title=title,
            duration_ms=self._effective_duration(duration),
            has_undo=undo is not None,
        )
        active = ActiveNotification(
            notification,
            self._clock,
            self._renderer,
            undo=undo,
            dismiss_threshold=self._threshold,
            on_dismissed=self._forget,
        )
        self._active.insert(0, active)
        active._start()
        return active

    def _effective_duration(self, duration: Optional[float]) -> float:
        if isinstance(duration, (int, float)) and math.isfinite(duration):
            return max(self._min_duration, float(duration))
        return float(self._default_duration)

    def _forget(self, active: ActiveNotification) -> None:
        if active in self._active:
            self._active.remove(active)

    def dismiss_all(self) -> None:
        for active in list(self._active):
            active.dismiss(DismissReason.CLOSED)

    @property
    def active(self) -> tuple[ActiveNotification, ...]:
        return tuple(self._active)
