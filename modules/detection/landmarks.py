"""
21-point hand landmark indices and the geometric predicates used by the
two-hand gesture classifier.

All predicates work in normalized camera space where larger y is lower on
screen, so "tip above pip" means tip.y < pip.y.
"""

import math
import logging
import numpy as np

from core.types import HandLandmarks

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

NUM_LANDMARKS = 21

# (tip, pip) pairs for the four non-thumb fingers
FINGER_TIP_PIP = {
    "index":  (INDEX_TIP, INDEX_PIP),
    "middle": (MIDDLE_TIP, MIDDLE_PIP),
    "ring":   (RING_TIP, RING_PIP),
    "pinky":  (PINKY_TIP, PINKY_PIP),
}

# Skeleton drawn over the idle view: five finger chains from the wrist
# plus three palm cross-links (23 edges)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),          # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),          # Index
    (0, 9), (9, 10), (10, 11), (11, 12),     # Middle
    (0, 13), (13, 14), (14, 15), (15, 16),   # Ring
    (0, 17), (17, 18), (18, 19), (19, 20),   # Pinky
    (5, 9), (9, 13), (13, 17),               # Palm
]


def extract_landmarks(hand_landmarks) -> np.ndarray:
    """Convert a MediaPipe NormalizedLandmarkList to a (21, 3) array."""
    landmarks = np.zeros((NUM_LANDMARKS, 3), dtype=np.float32)
    for i, lm in enumerate(hand_landmarks.landmark):
        landmarks[i] = [lm.x, lm.y, lm.z]
    return landmarks


def to_pixel_coords(points: np.ndarray, width: int, height: int) -> np.ndarray:
    """Normalized (21, 3) landmarks -> (21, 2) int32 pixel coordinates."""
    pixels = np.zeros((len(points), 2), dtype=np.int32)
    pixels[:, 0] = np.round(points[:, 0] * width).astype(np.int32)
    pixels[:, 1] = np.round(points[:, 1] * height).astype(np.int32)
    return pixels


def tip_above(hand: HandLandmarks, tip: int, pip: int) -> bool:
    return hand.y(tip) < hand.y(pip)


def tip_below(hand: HandLandmarks, tip: int, pip: int) -> bool:
    return hand.y(tip) > hand.y(pip)


def is_curled(hand: HandLandmarks) -> bool:
    """All four non-thumb fingers folded (tip lower than pip)."""
    return all(tip_below(hand, tip, pip) for tip, pip in FINGER_TIP_PIP.values())


def is_ready(hand: HandLandmarks) -> bool:
    """Index and middle fingers extended upward (the seal pose)."""
    return (tip_above(hand, INDEX_TIP, INDEX_PIP)
            and tip_above(hand, MIDDLE_TIP, MIDDLE_PIP))


def wrist_distance(a: HandLandmarks, b: HandLandmarks) -> float:
    """Euclidean distance between two wrists in normalized x/y."""
    dx = a.x(WRIST) - b.x(WRIST)
    dy = a.y(WRIST) - b.y(WRIST)
    return math.sqrt(dx * dx + dy * dy)
