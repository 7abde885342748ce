"""Transient notifications and their pause-aware countdown."""

from .center import (
    ActiveNotification,
    DismissReason,
    LoggingNotificationRenderer,
    Notification,
    NotificationCenter,
    NotificationRenderer,
    NotificationType,
)
from .timer import (
    AsyncioFrameClock,
    FrameClock,
    NotificationTimerController,
    TimerState,
)

__all__ = [
    # Center
    "ActiveNotification",
    "DismissReason",
    "LoggingNotificationRenderer",
    "Notification",
    "NotificationCenter",
    "NotificationRenderer",
    "NotificationType",
    # Timer
    "AsyncioFrameClock",
    "FrameClock",
    "NotificationTimerController",
    "TimerState",
]
