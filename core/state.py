"""
Latest-value cells and the per-tick snapshot read by the compositor.

Inference results are written from the worker thread and read from the
display loop. Each cell is single-writer / single-reader with
last-write-wins semantics; readers never assume a fresh value per tick.
"""

import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from core.types import GestureStatus, HandLandmarks


class LatestValue:
    """Lock-protected holder for the most recent value of a producer."""

    def __init__(self, initial=None):
        self._lock = threading.Lock()
        self._value = initial
        self._version = 0

    def set(self, value):
        with self._lock:
            self._value = value
            self._version += 1

    def get(self):
        with self._lock:
            return self._value

    def get_versioned(self):
        """Return (version, value); version increments on every set()."""
        with self._lock:
            return self._version, self._value

    def clear(self):
        self.set(None)

    @property
    def version(self) -> int:
        with self._lock:
            return self._version


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything the compositor needs for one tick."""
    status: GestureStatus = GestureStatus.IDLE
    hands: Tuple[HandLandmarks, ...] = ()
    mask: Optional[np.ndarray] = None
    active: bool = False
    count: int = 0

    @property
    def mask_available(self) -> bool:
        return self.mask is not None
