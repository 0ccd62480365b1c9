"""
Logging setup and a status-event logger for the clone session.
"""

import os
import logging
import logging.handlers
import time


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class StatusLogger:
    """Records gesture status transitions and clone-session events.

    Subscribed to the event bus by the session; keeps a bounded history.
    """

    def __init__(self, max_history: int = 500):
        self.logger = logging.getLogger("status_events")
        self._history = []
        self._max_history = max_history

    def _record(self, kind: str, **data):
        entry = {"timestamp": time.time(), "kind": kind}
        entry.update(data)
        self._history.append(entry)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def log_status(self, status, previous=None, **_):
        """STATUS_CHANGED handler."""
        self._record("status", status=status.value,
                     previous=previous.value if previous is not None else None)
        self.logger.info(
            "Status: %-7s (was %s)",
            status.value, previous.value if previous is not None else "-",
        )

    def log_clone_count(self, count, **_):
        """CLONE_COUNT_CHANGED handler."""
        self._record("clone_count", count=count)
        self.logger.info("Clones: %d", count)

    def log_session(self, active, **_):
        """SESSION_ACTIVATED / SESSION_DEACTIVATED handler."""
        self._record("session", active=active)
        self.logger.info("Session %s", "ACTIVATED" if active else "released")

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def status_changes(self) -> int:
        return sum(1 for e in self._history if e["kind"] == "status")
