"""Notification sub-package — multi-channel safety-alert delivery."""

from workout_monitor.notifications.handlers import (
    NotificationDispatcher,
    NotificationHandler,
    create_dispatcher,
)

__all__ = ["NotificationDispatcher", "NotificationHandler", "create_dispatcher"]
