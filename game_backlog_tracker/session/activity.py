"""
User activity event dispatch.

The UI layer (web endpoint, CLI, desktop shell) reports input events here by
name; session monitors subscribe to the event names they count as activity.
"""

import logging
import threading
from typing import Callable, Dict, List


logger = logging.getLogger(__name__)

ActivityHandler = Callable[[], None]


class ActivityEventSource:
    """
    Registry of activity listeners keyed by input event name.

    Registering the same handler twice for one event is a no-op, so repeated
    attach/detach cycles never accumulate duplicate handlers.
    """

    def __init__(self):
        self._listeners: Dict[str, List[ActivityHandler]] = {}
        self._lock = threading.Lock()

    def add_listener(self, event: str, handler: ActivityHandler) -> None:
        with self._lock:
            handlers = self._listeners.setdefault(event, [])
            if handler not in handlers:
                handlers.append(handler)

    def remove_listener(self, event: str, handler: ActivityHandler) -> None:
        with self._lock:
            handlers = self._listeners.get(event)
            if handlers and handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def dispatch(self, event: str) -> int:
        """
        Deliver an input event to its listeners.

        Args:
            event: Input event name, e.g. "click" or "keypress"

        Returns:
            Number of handlers invoked
        """
        with self._lock:
            handlers = list(self._listeners.get(event, []))

        for handler in handlers:
            try:
                handler()
            except Exception as e:
                logger.error(f"Activity handler failed for '{event}': {e}")

        return len(handlers)
