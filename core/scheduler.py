"""
Cooperative timer scheduler driven by the display loop.

Timers never run on their own thread: the owner calls run_pending(now)
once per tick and every due callback fires on the caller's thread. This
keeps the sequencer and the compositor on the same logical thread.

Usage:
    scheduler = Scheduler()
    handle = scheduler.call_every(0.4, on_step)
    ...
    scheduler.run_pending(time.monotonic())
    scheduler.cancel(handle)
"""

import time
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# k * interval can round a hair past the exact tick (3 * 0.4 > 1.2)
_DUE_TOLERANCE = 1e-9


class TimerHandle:
    """Opaque handle returned by Scheduler.call_* methods.

    The k-th due time is start + k * interval, computed fresh each time so
    rounding error never accumulates across firings.
    """

    __slots__ = ("callback", "interval", "start", "fired", "repeat", "cancelled")

    def __init__(self, callback: Callable, interval: float, start: float, repeat: bool):
        self.callback = callback
        self.interval = interval
        self.start = start
        self.fired = 0
        self.repeat = repeat
        self.cancelled = False

    @property
    def due(self) -> float:
        return self.start + (self.fired + 1) * self.interval

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """Fixed-interval and one-shot timers polled from the main loop."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._timers = []

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable) -> TimerHandle:
        """Run callback once, `delay` seconds from now."""
        handle = TimerHandle(callback, delay, self.now(), repeat=False)
        self._timers.append(handle)
        return handle

    def call_every(self, interval: float, callback: Callable) -> TimerHandle:
        """Run callback every `interval` seconds, first call one interval from now."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TimerHandle(callback, interval, self.now(), repeat=True)
        self._timers.append(handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]):
        if handle is not None:
            handle.cancel()

    def cancel_all(self):
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()

    def run_pending(self, now: Optional[float] = None) -> int:
        """Fire every due timer. Returns the number of callbacks run.

        A repeating timer that fell several intervals behind fires once
        per missed interval, so step counts stay consistent with
        wall-clock time after a slow frame.
        """
        now = self.now() if now is None else now
        fired = 0
        # Callbacks may add or cancel timers; iterate over a copy
        for handle in list(self._timers):
            while not handle.cancelled and handle.due <= now + _DUE_TOLERANCE:
                try:
                    handle.callback()
                except Exception:
                    logger.exception("Timer callback %r failed", handle.callback)
                fired += 1
                if handle.repeat:
                    handle.fired += 1
                else:
                    handle.cancelled = True
        self._timers = [h for h in self._timers if not h.cancelled]
        return fired

    @property
    def pending_count(self) -> int:
        return sum(1 for h in self._timers if not h.cancelled)
