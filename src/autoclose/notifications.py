"""Fire-and-forget user notifications about close progress."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class NotificationSeverity(Enum):
    INFO = "info"
    ERROR = "error"


class NotificationSink(Protocol):
    def notify(self, notification_id: str, message: str, severity: NotificationSeverity) -> None: ...


class LoggingNotificationSink:
    """Default sink for hosts without a notification area."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def notify(self, notification_id: str, message: str, severity: NotificationSeverity) -> None:
        level = logging.ERROR if severity is NotificationSeverity.ERROR else logging.INFO
        self._log.log(level, "[%s] %s", notification_id, message)


class NotificationDispatcher:
    """Gates a sink on the ``show_notifications`` setting and never raises."""

    INFO_ID = "auto-close-info"
    SUCCESS_ID = "auto-close-success"
    FAILED_ID = "auto-close-failed"

    def __init__(self, sink: NotificationSink, *, enabled: bool = True, log: Optional[logging.Logger] = None) -> None:
        self._sink = sink
        self.enabled = enabled
        self._log = log or logger

    def _send(self, notification_id: str, message: str, severity: NotificationSeverity) -> bool:
        if not self.enabled:
            return False
        try:
            self._sink.notify(notification_id, message, severity)
        except Exception as exc:  # policy_guard: allow-broad-except
            self._log.warning("Notification %s could not be delivered: %s", notification_id, exc)
            return False
        return True

    def closing(self, count: int, new_entity_name: str) -> bool:
        return self._send(
            self.INFO_ID,
            f"Closing {count} running game(s) to start {new_entity_name}",
            NotificationSeverity.INFO,
        )

    def closed(self, entity_name: str) -> bool:
        return self._send(self.SUCCESS_ID, f"Closed {entity_name}", NotificationSeverity.INFO)

    def close_failed(self, entity_name: str) -> bool:
        return self._send(self.FAILED_ID, f"Failed to close {entity_name}", NotificationSeverity.ERROR)


__all__ = [
    "LoggingNotificationSink",
    "NotificationDispatcher",
    "NotificationSeverity",
    "NotificationSink",
]
