"""
Hand skeleton overlay for the idle view: alpha-blended bones and
glow-blurred joint dots, coloured by the current gesture status.
"""

import logging
from typing import Sequence

import cv2
import numpy as np

from core.types import GestureStatus, HandLandmarks, STATUS_COLORS
from modules.detection.landmarks import HAND_CONNECTIONS, to_pixel_coords

logger = logging.getLogger(__name__)


class SkeletonRenderer:
    """Draws every detected hand on a BGR canvas."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._line_alpha = config.get("line_alpha", 0.5)
        self._line_width = config.get("line_width", 2)
        self._dot_alpha = config.get("dot_alpha", 0.9)
        self._dot_radius = config.get("dot_radius", 4)
        self._glow_blur = config.get("glow_blur", 8)

    def draw(self, canvas: np.ndarray, hands: Sequence[HandLandmarks],
             status: GestureStatus) -> np.ndarray:
        if not hands:
            return canvas

        h, w = canvas.shape[:2]
        color = STATUS_COLORS.get(status, STATUS_COLORS[GestureStatus.IDLE])
        pixel_hands = [to_pixel_coords(hand.points, w, h) for hand in hands]

        # Bones
        bones = canvas.copy()
        for pts in pixel_hands:
            for a, b in HAND_CONNECTIONS:
                cv2.line(bones, tuple(map(int, pts[a])), tuple(map(int, pts[b])),
                         color, self._line_width, cv2.LINE_AA)
        cv2.addWeighted(bones, self._line_alpha, canvas, 1 - self._line_alpha, 0, canvas)

        # Glow under the joints
        glow = np.zeros_like(canvas)
        for pts in pixel_hands:
            for x, y in pts:
                cv2.circle(glow, (int(x), int(y)), self._dot_radius * 2, color, -1, cv2.LINE_AA)
        ksize = self._glow_blur * 2 + 1
        glow = cv2.GaussianBlur(glow, (ksize, ksize), 0)
        cv2.add(canvas, glow, dst=canvas)

        # Joints
        dots = canvas.copy()
        for pts in pixel_hands:
            for x, y in pts:
                cv2.circle(dots, (int(x), int(y)), self._dot_radius, color, -1, cv2.LINE_AA)
        cv2.addWeighted(dots, self._dot_alpha, canvas, 1 - self._dot_alpha, 0, canvas)

        return canvas
