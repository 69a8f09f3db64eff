"""Services: storage backends and user notifications."""

from family_budget.services.notifications import (
    LoggingNotifier,
    Notification,
    NotificationLevel,
    NotifierInterface,
    RecordingNotifier,
)

__all__ = [
    "LoggingNotifier",
    "Notification",
    "NotificationLevel",
    "NotifierInterface",
    "RecordingNotifier",
]
