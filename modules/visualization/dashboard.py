"""
Status HUD drawn over the composite: gesture prompt, body counter and
frame rate.
"""

import logging
import cv2
import numpy as np

from core.types import GestureStatus, STATUS_COLORS, STATUS_LABELS

logger = logging.getLogger(__name__)


class Dashboard:
    """Renders the heads-up overlay for the clone session."""

    def __init__(self, config: dict):
        self._show_status = config.get("show_status", True)
        self._show_counter = config.get("show_counter", True)
        self._show_fps = config.get("show_fps", True)
        self._opacity = config.get("opacity", 0.6)

        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_hint = tuple(colors.get("hint", [170, 170, 170]))
        self._color_jutsu = tuple(colors.get("jutsu", [0, 110, 255]))

    def render(self, frame: np.ndarray, state: dict) -> np.ndarray:
        """Render the HUD.

        Args:
            frame: BGR canvas to draw on
            state: dict with
                - status: GestureStatus
                - active: bool
                - clone_count: int
                - fps: float
        """
        h, w = frame.shape[:2]
        status = state.get("status", GestureStatus.IDLE)
        active = state.get("active", False)
        count = state.get("clone_count", 0)

        if self._show_status:
            if active:
                self._draw_banner(frame, w, "SHADOW CLONE JUTSU!", self._color_jutsu,
                                  "Make fists to release")
            else:
                self._draw_banner(frame, w, STATUS_LABELS[status], STATUS_COLORS[status],
                                  "Seal: index+middle up, hands together")

        if self._show_counter and active and count > 0:
            self._draw_counter(frame, w, h, count)

        if self._show_fps:
            cv2.putText(frame, f"FPS: {state.get('fps', 0.0):.1f}", (12, h - 14),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, self._color_hint, 1, cv2.LINE_AA)

        return frame

    def _draw_backplate(self, frame, x0, y0, x1, y1):
        x0, y0 = max(x0, 0), max(y0, 0)
        x1, y1 = min(x1, frame.shape[1]), min(y1, frame.shape[0])
        if x1 <= x0 or y1 <= y0:
            return
        roi = frame[y0:y1, x0:x1]
        dark = np.zeros_like(roi)
        frame[y0:y1, x0:x1] = cv2.addWeighted(dark, self._opacity, roi, 1 - self._opacity, 0)

    def _draw_banner(self, frame, w, title, color, hint):
        title_size = cv2.getTextSize(title, cv2.FONT_HERSHEY_SIMPLEX, 1.1, 3)[0]
        hint_size = cv2.getTextSize(hint, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)[0]
        box_w = max(title_size[0], hint_size[0]) + 40
        x0 = (w - box_w) // 2
        self._draw_backplate(frame, x0, 16, x0 + box_w, 100)

        cv2.putText(frame, title, ((w - title_size[0]) // 2, 58),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.1, color, 3, cv2.LINE_AA)
        cv2.putText(frame, hint, ((w - hint_size[0]) // 2, 86),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, self._color_hint, 1, cv2.LINE_AA)

    def _draw_counter(self, frame, w, h, count):
        text = f"x{count + 1} bodies"
        size = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 1.2, 3)[0]
        x = (w - size[0]) // 2
        y = h - 40
        self._draw_backplate(frame, x - 20, y - size[1] - 16, x + size[0] + 20, y + 16)
        cv2.putText(frame, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 1.2,
                    self._color_jutsu, 3, cv2.LINE_AA)
