"""
User-facing notifications.

Every failure the household should know about is reported through a
notifier as a short transient message (a toast in a UI). None of them
are fatal; the caller stays usable afterwards.
"""

from abc import ABC, abstractmethod
from enum import Enum

import structlog
from pydantic import BaseModel


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    level: NotificationLevel
    message: str


class NotifierInterface(ABC):
    """Where user-facing messages go."""

    @abstractmethod
    def error(self, message: str) -> None:
        pass

    @abstractmethod
    def success(self, message: str) -> None:
        pass


class LoggingNotifier(NotifierInterface):
    """Default notifier: writes messages to the structured log."""

    def __init__(self):
        self._logger = structlog.get_logger(__name__)

    def error(self, message: str) -> None:
        self._logger.warning("user_notification", level="error", message=message)

    def success(self, message: str) -> None:
        self._logger.info("user_notification", level="success", message=message)


class RecordingNotifier(NotifierInterface):
    """Keeps messages in memory so a front end can drain and display them."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def error(self, message: str) -> None:
        self.notifications.append(
            Notification(level=NotificationLevel.ERROR, message=message)
        )

    def success(self, message: str) -> None:
        self.notifications.append(
            Notification(level=NotificationLevel.SUCCESS, message=message)
        )

    @property
    def errors(self) -> list[str]:
        return [n.message for n in self.notifications if n.level == NotificationLevel.ERROR]

    def drain(self) -> list[Notification]:
        """Return and forget everything recorded so far."""
        drained, self.notifications = self.notifications, []
        return drained
