"""
Activation sequencer: turns status edges into a growing clone count.

Lifecycle:
    inactive --(edge to ACTIVE)--> running
        count = 0, then +step every interval until max_clones
    running --(edge to FIST, or deactivate())--> inactive
        count = 0 immediately, timer cancelled

While running, further ACTIVE edges (and idle/far/near) do not restart
the sequence. The count is only ever a whole multiple of the step,
clamped to max_clones.
"""

import logging
from typing import Callable, List, Optional

from core.scheduler import Scheduler, TimerHandle
from core.types import GestureStatus

logger = logging.getLogger(__name__)


class ActivationSequencer:
    """Owns the clone count and its step timer."""

    def __init__(self, scheduler: Scheduler, config: dict = None):
        config = config or {}
        self._scheduler = scheduler
        self._step = int(config.get("step", 2))
        self._interval_s = config.get("interval_ms", 400) / 1000.0
        self._max_clones = int(config.get("max_clones", 4))
        if self._step <= 0:
            raise ValueError("sequencer.step must be positive")
        if self._max_clones < 0:
            raise ValueError("sequencer.max_clones must be non-negative")

        self._active = False
        self._count = 0
        self._timer: Optional[TimerHandle] = None

        self._count_listeners: List[Callable[[int], None]] = []
        self._active_listeners: List[Callable[[bool], None]] = []

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on_count_change(self, callback: Callable[[int], None]):
        """Register callback(count) fired whenever the count changes."""
        self._count_listeners.append(callback)

    def on_active_change(self, callback: Callable[[bool], None]):
        """Register callback(active) fired on activation/deactivation."""
        self._active_listeners.append(callback)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def on_status(self, status: GestureStatus):
        """Consume a status edge from the classifier."""
        if status is GestureStatus.ACTIVE and not self._active:
            self.activate()
        elif status is GestureStatus.FIST and self._active:
            self.deactivate()

    def activate(self):
        """Start a clone sequence. No-op if already running."""
        if self._active:
            return
        self._active = True
        self._set_count(0)
        self._notify_active(True)
        if self._max_clones > 0:
            self._timer = self._scheduler.call_every(self._interval_s, self._advance)
        logger.info("Clone sequence started (step=%d, interval=%.0fms, max=%d)",
                    self._step, self._interval_s * 1000, self._max_clones)

    def deactivate(self):
        """Stop the sequence and drop the count to zero. No-op if inactive."""
        if not self._active:
            return
        self._cancel_timer()
        self._active = False
        self._set_count(0)
        self._notify_active(False)
        logger.info("Clone sequence released")

    def cancel(self):
        """Cancel the step timer without changing the count (teardown)."""
        self._cancel_timer()

    def _advance(self):
        count = min(self._count + self._step, self._max_clones)
        self._set_count(count)
        if count >= self._max_clones:
            self._cancel_timer()
            logger.debug("Clone count reached max (%d)", count)

    def _cancel_timer(self):
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None

    def _set_count(self, count: int):
        if count == self._count:
            return
        self._count = count
        for callback in list(self._count_listeners):
            callback(count)

    def _notify_active(self, active: bool):
        for callback in list(self._active_listeners):
            callback(active)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def count(self) -> int:
        return self._count

    @property
    def active(self) -> bool:
        return self._active

    @property
    def max_clones(self) -> int:
        return self._max_clones

    @property
    def is_stepping(self) -> bool:
        """True while the step timer is still scheduled."""
        return self._timer is not None
