"""
Frame compositor: one call per display tick turns the latest camera frame
and session snapshot into the final canvas.

Per tick:
    1. clear to the background colour
    2. pick a render mode from (active, count, mask_available)
         IDLE          full cover-fit frame + hand skeleton
         PANEL         main panel between tinted clone panels
         SEGMENTATION  backdrop + person cutout stamped at fixed offsets
    3. smoke (active sessions only), then the one-shot flash

When no decodable frame is available the tick draws nothing and returns
None; the caller just tries again on the next tick.
"""

import logging
from typing import List, Optional, Tuple

import cv2
import numpy as np

from core.state import FrameSnapshot
from core.types import Panel, PanelSide, RenderMode
from modules.effects.particles import FlashEffect, SmokeSystem
from modules.rendering.cover_fit import blit, cover_resize, draw_cover
from modules.rendering.layout import compute_panel_layout, select_render_mode
from modules.rendering.skeleton import SkeletonRenderer

logger = logging.getLogger(__name__)

DEFAULT_CLONE_OFFSETS = [-0.22, 0.22, -0.42, 0.42, -0.6, 0.6]


class FrameCompositor:
    """Composites camera frames into the clone effect."""

    def __init__(self, config: dict = None, width: int = 1280, height: int = 720,
                 rng: Optional[np.random.Generator] = None):
        config = config or {}
        self._background = tuple(config.get("background", [10, 10, 10]))

        # Panel mode
        panels = config.get("panels", {})
        self._panel_cap = panels.get("cap", 6)
        self._max_visible = panels.get("max_visible", 5)
        self._main_ratio = panels.get("main_width_ratio", 0.42)
        self._gap = panels.get("gap", 4)
        self._clone_saturation = panels.get("clone_saturation", 0.8)
        self._clone_brightness = panels.get("clone_brightness", 0.9)
        self._clone_hue_shift = panels.get("clone_hue_shift_deg", 10)
        self._clone_border = self._border_style(
            panels.get("clone_border", {}), (255, 180, 0), 0.6, 3, 15)
        self._main_border = self._border_style(
            panels.get("main_border", {}), (0, 120, 255), 0.8, 4, 20)

        # Segmentation mode
        seg = config.get("segmentation", {})
        self._clone_offsets = list(seg.get("clone_offsets", DEFAULT_CLONE_OFFSETS))
        self._clone_opacity = seg.get("clone_opacity", 0.85)
        self._mask_threshold = seg.get("mask_threshold", 0.5)
        self._mask_softness = seg.get("mask_softness", 0.1)

        self._skeleton = SkeletonRenderer(config.get("skeleton", {}))
        effects = config.get("effects", {})
        self._flash = FlashEffect(effects.get("flash", {}))
        self._smoke = SmokeSystem(effects.get("smoke", {}), rng=rng)

        self._width = int(width)
        self._height = int(height)
        self._canvas = self._new_canvas()

        self._prev_count = 0
        self._mode = RenderMode.IDLE
        self._running = True

    @staticmethod
    def _border_style(cfg: dict, color, alpha, thickness, blur) -> dict:
        return {
            "color": tuple(cfg.get("color", color)),
            "alpha": cfg.get("alpha", alpha),
            "thickness": cfg.get("thickness", thickness),
            "blur": cfg.get("blur", blur),
        }

    def _new_canvas(self) -> np.ndarray:
        return np.zeros((self._height, self._width, 3), dtype=np.uint8)

    # =========================================================================
    # Surface
    # =========================================================================

    def resize(self, width: int, height: int) -> bool:
        """Resize the drawing surface. Returns True if the size changed."""
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            logger.debug("Ignoring degenerate surface size %dx%d", width, height)
            return False
        if (width, height) == (self._width, self._height):
            return False
        self._width, self._height = width, height
        self._canvas = self._new_canvas()
        logger.info("Surface resized to %dx%d", width, height)
        return True

    def stop(self):
        """Stop drawing; later render() calls return None."""
        self._running = False
        self._smoke.clear()
        self._flash.reset()

    # =========================================================================
    # Tick
    # =========================================================================

    def render(self, frame: Optional[np.ndarray], snapshot: FrameSnapshot) -> Optional[np.ndarray]:
        """Draw one tick. Returns the canvas, or None if nothing was drawn."""
        if not self._running or frame is None or frame.size == 0:
            return None

        canvas = self._canvas
        canvas[:] = self._background

        mode = select_render_mode(snapshot.active, snapshot.count, snapshot.mask_available)
        if mode is not self._mode:
            logger.debug("Render mode %s -> %s", self._mode.value, mode.value)
            self._mode = mode

        clone_centres = []
        if mode is RenderMode.IDLE:
            self._draw_idle(canvas, frame, snapshot)
        elif mode is RenderMode.PANEL:
            clone_centres = self._draw_panels(canvas, frame, snapshot.count)
        else:
            clone_centres = self._draw_segmentation(canvas, frame, snapshot.mask, snapshot.count)

        self._observe_count(snapshot, clone_centres)

        if snapshot.active:
            self._smoke.update()
            self._smoke.render(canvas)
        self._flash.render(canvas)

        return canvas

    def _observe_count(self, snapshot: FrameSnapshot, clone_centres: List[Tuple[int, int]]):
        """Trigger flash and smoke on count edges."""
        if not snapshot.active:
            if self._prev_count or self._smoke.count:
                self._smoke.clear()
                self._flash.reset()
            self._prev_count = 0
            return

        count = snapshot.count
        if count > 0 and self._prev_count == 0:
            self._flash.trigger()
        if count > self._prev_count:
            start = min(self._prev_count, len(clone_centres))
            for cx, cy in clone_centres[start:count]:
                self._smoke.emit_puff(cx, cy)
        self._prev_count = count

    # =========================================================================
    # Modes
    # =========================================================================

    def _draw_idle(self, canvas, frame, snapshot: FrameSnapshot):
        draw_cover(canvas, frame, 0, 0, self._width, self._height)
        if snapshot.hands:
            self._skeleton.draw(canvas, snapshot.hands, snapshot.status)

    def _draw_panels(self, canvas, frame, count: int) -> List[Tuple[int, int]]:
        panels = compute_panel_layout(
            count, self._width, self._height,
            cap=self._panel_cap, max_visible=self._max_visible,
            main_ratio=self._main_ratio, gap=self._gap,
        )
        main = panels[-1]
        main_cx = main.x + main.width // 2
        cy = int(self._height * 0.55)
        sides = {PanelSide.LEFT: [], PanelSide.RIGHT: []}
        # Clones first, main last: panels may overlap at the seams
        for panel in panels:
            if panel.width <= 0:
                continue
            if panel.is_main:
                draw_cover(canvas, frame, panel.x, 0, panel.width, panel.height)
                self._draw_glow_rect(canvas, panel, self._main_border)
            else:
                self._draw_clone_panel(canvas, frame, panel)
                self._draw_glow_rect(canvas, panel, self._clone_border)
                sides[panel.side].append(panel.x + panel.width // 2)
        return self._clone_order(sides[PanelSide.LEFT], sides[PanelSide.RIGHT], main_cx, cy)

    @staticmethod
    def _clone_order(left_xs, right_xs, main_cx: int, cy: int) -> List[Tuple[int, int]]:
        """Clone centres in the order clones appear: inner pair first, left before right."""
        left_xs = sorted(left_xs, key=lambda x: abs(x - main_cx))
        right_xs = sorted(right_xs, key=lambda x: abs(x - main_cx))
        centres = []
        for ring in range(max(len(left_xs), len(right_xs))):
            for xs in (left_xs, right_xs):
                if ring < len(xs):
                    centres.append((xs[ring], cy))
        return centres

    def _draw_clone_panel(self, canvas, frame, panel: Panel):
        fitted = cover_resize(frame, panel.width, panel.height)
        if fitted is None:
            return
        blit(canvas, self.tint_clone(fitted), panel.x, 0)

    def tint_clone(self, image: np.ndarray) -> np.ndarray:
        """Desaturate, dim and hue-shift a BGR image for clone panels."""
        hsv = cv2.cvtColor(image, cv2.COLOR_BGR2HSV).astype(np.float32)
        # OpenCV hue is 0-180 for 8-bit images
        hsv[:, :, 0] = (hsv[:, :, 0] + self._clone_hue_shift / 2.0) % 180.0
        hsv[:, :, 1] *= self._clone_saturation
        hsv[:, :, 2] *= self._clone_brightness
        hsv = np.clip(hsv, 0, 255).astype(np.uint8)
        return cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)

    def _draw_glow_rect(self, canvas, panel: Panel, style: dict):
        """Blurred halo plus a translucent crisp border around a panel."""
        thickness = style["thickness"]
        blur = style["blur"]
        pad = blur * 2

        x0 = max(panel.x - pad, 0)
        y0 = 0
        x1 = min(panel.x + panel.width + pad, self._width)
        y1 = min(panel.height, self._height)
        if x1 <= x0 or y1 <= y0:
            return

        top_left = (panel.x + 1 - x0, 1 - y0)
        bottom_right = (panel.x + panel.width - 2 - x0, panel.height - 2 - y0)

        roi = canvas[y0:y1, x0:x1]
        halo = np.zeros_like(roi)
        cv2.rectangle(halo, top_left, bottom_right, style["color"], thickness)
        ksize = blur * 2 + 1
        halo = cv2.GaussianBlur(halo, (ksize, ksize), 0)
        roi = cv2.add(roi, halo)

        crisp = roi.copy()
        cv2.rectangle(crisp, top_left, bottom_right, style["color"], thickness)
        canvas[y0:y1, x0:x1] = cv2.addWeighted(crisp, style["alpha"], roi, 1 - style["alpha"], 0)

    def _draw_segmentation(self, canvas, frame, mask, count: int) -> List[Tuple[int, int]]:
        backdrop = cover_resize(frame, self._width, self._height)
        fitted_mask = cover_resize(self._normalize_mask(mask), self._width, self._height)
        if backdrop is None or fitted_mask is None:
            return []
        canvas[:] = backdrop

        # Person-only cutout: colour premultiplied by the mask
        lo = self._mask_threshold - self._mask_softness
        alpha = np.clip((fitted_mask - lo) / max(2 * self._mask_softness, 1e-6), 0.0, 1.0)
        alpha = alpha[:, :, None].astype(np.float32)
        cutout = backdrop.astype(np.float32) * alpha

        offsets = self._clone_offsets[:max(0, count)]
        out = canvas.astype(np.float32)
        # Farthest clones first so nearer ones overlap them
        for frac in sorted(offsets, key=abs, reverse=True):
            dx = int(round(frac * self._width))
            self._stamp(out, cutout, alpha, dx, self._clone_opacity)
        canvas[:] = np.clip(out, 0, 255).astype(np.uint8)

        return [(self._width // 2 + int(round(f * self._width)), int(self._height * 0.55))
                for f in offsets]

    @staticmethod
    def _stamp(out: np.ndarray, cutout: np.ndarray, alpha: np.ndarray, dx: int, opacity: float):
        """out = out * (1 - a) + cutout, with both shifted horizontally by dx."""
        w = out.shape[1]
        if abs(dx) >= w:
            return
        if dx >= 0:
            dst, src = slice(dx, w), slice(0, w - dx)
        else:
            dst, src = slice(0, w + dx), slice(-dx, w)
        a = alpha[:, src] * opacity
        out[:, dst] = out[:, dst] * (1.0 - a) + cutout[:, src] * opacity

    @staticmethod
    def _normalize_mask(mask: np.ndarray) -> np.ndarray:
        """Any mask dtype/shape -> float32 HxW in [0, 1]."""
        mask = np.asarray(mask)
        if mask.ndim == 3:
            mask = mask[:, :, 0]
        if mask.dtype == np.uint8:
            return mask.astype(np.float32) / 255.0
        return np.clip(mask.astype(np.float32), 0.0, 1.0)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def mode(self) -> RenderMode:
        """Mode used by the most recent tick."""
        return self._mode

    @property
    def size(self) -> Tuple[int, int]:
        return (self._width, self._height)

    @property
    def flash(self) -> FlashEffect:
        return self._flash

    @property
    def smoke(self) -> SmokeSystem:
        return self._smoke

    @property
    def is_running(self) -> bool:
        return self._running
