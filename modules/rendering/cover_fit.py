"""
Cover-fit scaling: fill a destination rectangle while keeping the source
aspect ratio, cropping the overflow (never letterboxing).
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def cover_fit_crop(src_w: float, src_h: float,
                   dst_w: float, dst_h: float) -> Tuple[float, float, float, float]:
    """Source crop (sx, sy, sw, sh) whose aspect equals the destination's.

    Wider destination: keep full width, crop height centred vertically.
    Otherwise: keep full height, crop width centred horizontally.
    """
    if src_w <= 0 or src_h <= 0 or dst_w <= 0 or dst_h <= 0:
        raise ValueError(
            f"cover_fit_crop needs positive sizes, got src={src_w}x{src_h} dst={dst_w}x{dst_h}"
        )
    dst_aspect = dst_w / dst_h
    src_aspect = src_w / src_h

    if dst_aspect > src_aspect:
        sw = float(src_w)
        sh = src_w / dst_aspect
        sx = 0.0
        sy = (src_h - sh) / 2.0
    else:
        sh = float(src_h)
        sw = src_h * dst_aspect
        sx = (src_w - sw) / 2.0
        sy = 0.0
    return sx, sy, sw, sh


def cover_resize(image: np.ndarray, dst_w: int, dst_h: int,
                 interpolation: int = cv2.INTER_LINEAR) -> Optional[np.ndarray]:
    """Crop `image` with cover_fit_crop and resize it to dst_w x dst_h.

    Works for colour frames and single-channel masks alike. Returns None
    for degenerate sizes.
    """
    if image is None or dst_w <= 0 or dst_h <= 0:
        return None
    src_h, src_w = image.shape[:2]
    if src_w == 0 or src_h == 0:
        return None

    sx, sy, sw, sh = cover_fit_crop(src_w, src_h, dst_w, dst_h)
    x0 = int(round(sx))
    y0 = int(round(sy))
    x1 = max(x0 + 1, min(src_w, int(round(sx + sw))))
    y1 = max(y0 + 1, min(src_h, int(round(sy + sh))))
    crop = image[y0:y1, x0:x1]
    return cv2.resize(crop, (dst_w, dst_h), interpolation=interpolation)


def draw_cover(canvas: np.ndarray, image: np.ndarray,
               dx: int, dy: int, dw: int, dh: int) -> np.ndarray:
    """Draw `image` cover-fitted into canvas[dy:dy+dh, dx:dx+dw].

    The destination is clipped to the canvas; the clipped-away part of the
    fitted image is discarded.
    """
    fitted = cover_resize(image, dw, dh)
    if fitted is None:
        return canvas
    return blit(canvas, fitted, dx, dy)


def blit(canvas: np.ndarray, image: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Copy `image` into the canvas at (dx, dy), clipped to the canvas."""
    ch, cw = canvas.shape[:2]
    ih, iw = image.shape[:2]
    x0, y0 = max(dx, 0), max(dy, 0)
    x1, y1 = min(dx + iw, cw), min(dy + ih, ch)
    if x1 <= x0 or y1 <= y0:
        return canvas

    canvas[y0:y1, x0:x1] = image[y0 - dy:y1 - dy, x0 - dx:x1 - dx]
    return canvas
