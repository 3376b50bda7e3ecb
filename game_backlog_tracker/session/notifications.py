"""
User-facing notifications for session events.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List


logger = logging.getLogger(__name__)


class NotificationVariant(Enum):
    """Visual severity of a notification."""
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    """A fire-and-forget message shown to the user."""
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'title': self.title,
            'description': self.description,
            'variant': self.variant.value,
            'created_at': self.created_at.isoformat()
        }


class NotificationSink(ABC):
    """Anything that can show a notification to the user."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Show a notification. Must not block on user interaction."""
        pass


class LoggingNotifier(NotificationSink):
    """Writes notifications to the application log."""

    def notify(self, notification: Notification) -> None:
        level = (logging.WARNING
                 if notification.variant == NotificationVariant.DESTRUCTIVE
                 else logging.INFO)
        logger.log(level, f"{notification.title}: {notification.description}")


class NotificationCenter(NotificationSink):
    """
    Fans a notification out to several sinks.

    A failing sink is logged and skipped; the remaining sinks still receive
    the notification.
    """

    def __init__(self, sinks: List[NotificationSink] = None):
        self._sinks: List[NotificationSink] = list(sinks or [])
        self._lock = threading.Lock()

    def add_sink(self, sink: NotificationSink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    def remove_sink(self, sink: NotificationSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def notify(self, notification: Notification) -> None:
        with self._lock:
            sinks = list(self._sinks)

        for sink in sinks:
            try:
                sink.notify(notification)
            except Exception as e:
                logger.error(f"Notification sink {type(sink).__name__} failed: {e}")
