"""
Shared domain types for the Shadow Clone Camera.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

import time
from enum import Enum
from typing import Optional, Sequence, Tuple
import numpy as np


# =============================================================================
# Gesture Status
# =============================================================================

class GestureStatus(Enum):
    """Two-hand gesture status driving the clone sequence."""
    IDLE = "idle"
    FAR = "far"
    NEAR = "near"
    ACTIVE = "active"
    FIST = "fist"

    @classmethod
    def from_string(cls, name: str) -> 'GestureStatus':
        """Convert a string status name to GestureStatus, safely."""
        try:
            return cls(name)
        except ValueError:
            return cls.IDLE


# Status -> skeleton colour (BGR)
STATUS_COLORS = {
    GestureStatus.IDLE: (51, 51, 255),      # #ff3333
    GestureStatus.FAR: (51, 51, 255),       # #ff3333
    GestureStatus.NEAR: (0, 221, 255),      # #ffdd00
    GestureStatus.ACTIVE: (102, 255, 0),    # #00ff66
    GestureStatus.FIST: (255, 153, 51),     # #3399ff
}

# Status -> HUD prompt
STATUS_LABELS = {
    GestureStatus.IDLE: "Show both hands",
    GestureStatus.FAR: "Closer!",
    GestureStatus.NEAR: "Almost...",
    GestureStatus.ACTIVE: "JUTSU!",
    GestureStatus.FIST: "Releasing...",
}


class RenderMode(Enum):
    """Compositor mode, derived fresh every tick."""
    IDLE = "idle"
    PANEL = "panel"
    SEGMENTATION = "segmentation"


class PanelRole(Enum):
    MAIN = "main"
    CLONE = "clone"


class PanelSide(Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


# =============================================================================
# Data Containers
# =============================================================================

class HandLandmarks:
    """A single detected hand: 21 normalized (x, y, z) landmarks.

    Uses __slots__ since a new instance is built for every inference result.
    """

    __slots__ = ("points", "handedness", "score")

    def __init__(self, points, handedness: str = "unknown", score: float = 0.0):
        points = np.asarray(points, dtype=np.float32)
        if points.shape != (21, 3):
            raise ValueError(f"expected (21, 3) landmarks, got {points.shape}")
        self.points = points
        self.handedness = handedness
        self.score = score

    def __repr__(self):
        return f"HandLandmarks({self.handedness}, score={self.score:.2f})"

    def __len__(self):
        return len(self.points)

    def x(self, idx: int) -> float:
        return float(self.points[idx, 0])

    def y(self, idx: int) -> float:
        return float(self.points[idx, 1])


class FrameResult:
    """Output of one hand-landmark inference cycle (0-2 hands)."""

    __slots__ = ("hands", "timestamp")

    def __init__(self, hands: Sequence[HandLandmarks] = (), timestamp: Optional[float] = None):
        self.hands: Tuple[HandLandmarks, ...] = tuple(hands)
        self.timestamp = timestamp if timestamp is not None else time.time()

    def __repr__(self):
        return f"FrameResult(hands={len(self.hands)})"

    @property
    def hand_count(self) -> int:
        return len(self.hands)


class Panel:
    """Transient per-frame rectangle for panel mode."""

    __slots__ = ("x", "width", "height", "role", "side")

    def __init__(self, x: int, width: int, height: int,
                 role: PanelRole, side: PanelSide):
        self.x = x
        self.width = width
        self.height = height
        self.role = role
        self.side = side

    def __repr__(self):
        return (f"Panel({self.role.value}/{self.side.value}, "
                f"x={self.x}, w={self.width}, h={self.height})")

    @property
    def is_main(self) -> bool:
        return self.role is PanelRole.MAIN
