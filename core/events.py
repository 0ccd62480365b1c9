"""
Process-wide event bus for session notifications.

The session publishes status, clone-count and lifecycle events here;
main.py and any outside listener subscribe by name.
Handlers run synchronously on the emitting thread in subscription order.

Usage:
    bus = EventBus()
    bus.subscribe(Events.STATUS_CHANGED, on_status)
    bus.emit(Events.STATUS_CHANGED, status=GestureStatus.NEAR, previous=GestureStatus.FAR)
"""

import time
import logging
import threading
from collections import defaultdict, deque
from typing import Callable, List

logger = logging.getLogger(__name__)

HISTORY_SIZE = 100


class EventBus:
    """Single shared bus; every EventBus() call returns the same instance."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._handlers = defaultdict(list)
            instance._lock = threading.Lock()
            instance._history = deque(maxlen=HISTORY_SIZE)
            cls._instance = instance
        return cls._instance

    def subscribe(self, event_name: str, callback: Callable):
        """Call `callback(**payload)` whenever `event_name` is emitted."""
        with self._lock:
            self._handlers[event_name].append(callback)
        logger.debug("Subscribed %s to '%s'", getattr(callback, "__name__", callback), event_name)

    def unsubscribe(self, event_name: str, callback: Callable):
        with self._lock:
            handlers = self._handlers.get(event_name)
            if handlers and callback in handlers:
                handlers.remove(callback)

    def emit(self, event_name: str, **payload):
        """Deliver an event. A failing handler is logged and skipped."""
        with self._lock:
            handlers = tuple(self._handlers.get(event_name, ()))
            self._history.append((time.monotonic(), event_name, tuple(payload)))

        for callback in handlers:
            try:
                callback(**payload)
            except Exception:
                logger.exception("Handler %s failed on '%s'",
                                  getattr(callback, "__name__", callback), event_name)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(handlers) for handlers in self._handlers.values())

    def get_history(self, last_n: int = 10) -> List[str]:
        """Names of the most recent events, oldest first."""
        with self._lock:
            names = [name for _, name, _ in self._history]
        return names[-last_n:]

    def reset(self):
        """Drop all handlers and history (used between tests)."""
        with self._lock:
            self._handlers.clear()
            self._history.clear()


class Events:
    """Event names published by the session and the app."""

    STATUS_CHANGED = "status_changed"

    SESSION_ACTIVATED = "session_activated"
    SESSION_DEACTIVATED = "session_deactivated"
    CLONE_COUNT_CHANGED = "clone_count_changed"

    MODEL_LOAD_FAILED = "model_load_failed"
    CAMERA_ERROR = "camera_error"
    VIEWPORT_RESIZED = "viewport_resized"

    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
