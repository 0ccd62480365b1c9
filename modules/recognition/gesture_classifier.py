"""
Two-hand gesture classifier for the clone sequence.

Maps a Frame Result to one GestureStatus with a fixed precedence:

    < 2 hands            -> idle
    both hands curled    -> fist    (checked before distance)
    wrist distance > far -> far
    close and both ready -> active
    otherwise            -> near

The fist check runs before the distance check, so two fists register as
`fist` from any distance without passing through near/active first. The
release gesture relies on this ordering.

GestureClassifier wraps the pure classify() with edge-triggered emission:
update() only reports a status when it differs from the previous one.
"""

import logging
from typing import Optional

from core.types import FrameResult, GestureStatus
from modules.detection.landmarks import is_curled, is_ready, wrist_distance

logger = logging.getLogger(__name__)

DEFAULT_FAR_DISTANCE = 0.3
DEFAULT_ACTIVE_DISTANCE = 0.15


def classify(result: FrameResult,
             far_distance: float = DEFAULT_FAR_DISTANCE,
             active_distance: float = DEFAULT_ACTIVE_DISTANCE) -> GestureStatus:
    """Classify a frame result. Pure: no state, no side effects."""
    if result is None or result.hand_count < 2:
        return GestureStatus.IDLE

    h1, h2 = result.hands[0], result.hands[1]

    if is_curled(h1) and is_curled(h2):
        return GestureStatus.FIST

    dist = wrist_distance(h1, h2)
    if dist > far_distance:
        return GestureStatus.FAR

    if dist <= active_distance and is_ready(h1) and is_ready(h2):
        return GestureStatus.ACTIVE

    return GestureStatus.NEAR


class GestureClassifier:
    """Stateful, edge-triggered wrapper around classify()."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._far_distance = config.get("far_distance", DEFAULT_FAR_DISTANCE)
        self._active_distance = config.get("active_distance", DEFAULT_ACTIVE_DISTANCE)
        if self._active_distance > self._far_distance:
            logger.warning(
                "active_distance (%.2f) exceeds far_distance (%.2f); "
                "'active' is only reachable below far_distance",
                self._active_distance, self._far_distance,
            )
        self._status = GestureStatus.IDLE

    def update(self, result: FrameResult) -> Optional[GestureStatus]:
        """Classify and return the new status only if it changed."""
        status = classify(result, self._far_distance, self._active_distance)
        if status is self._status:
            return None
        logger.debug("Status %s -> %s", self._status.value, status.value)
        self._status = status
        return status

    def reset(self):
        """Forget the last emitted status (next non-idle result will emit)."""
        self._status = GestureStatus.IDLE

    @property
    def status(self) -> GestureStatus:
        return self._status

    @property
    def far_distance(self) -> float:
        return self._far_distance

    @property
    def active_distance(self) -> float:
        return self._active_distance
