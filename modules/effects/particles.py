"""
Transient particle effects layered over the composite: a one-shot white
flash when clones first appear, and smoke puffs where clones pop in.

Both integrate once per display tick (not per second), so their speed is
tied to the display refresh rate.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class FlashEffect:
    """Full-surface white flash with geometric decay."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._decay = config.get("decay", 0.85)
        self._threshold = config.get("threshold", 0.02)
        self._color = tuple(config.get("color", [255, 255, 255]))
        if not 0.0 < self._decay < 1.0:
            raise ValueError("flash decay must be in (0, 1)")
        self._alpha = 0.0

    def trigger(self):
        self._alpha = 1.0

    def reset(self):
        self._alpha = 0.0

    def render(self, canvas: np.ndarray) -> np.ndarray:
        """Blend the flash over the canvas and decay it by one tick."""
        if not self.visible:
            return canvas
        overlay = np.empty_like(canvas)
        overlay[:] = self._color
        cv2.addWeighted(overlay, self._alpha, canvas, 1.0 - self._alpha, 0, canvas)
        self._alpha *= self._decay
        return canvas

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def visible(self) -> bool:
        return self._alpha >= self._threshold


@dataclass
class SmokeParticle:
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    life: float = 1.0
    initial_life: float = 1.0

    @property
    def opacity(self) -> float:
        return max(0.0, self.life / self.initial_life)


class SmokeSystem:
    """Expanding, fading smoke puffs drawn as one blurred layer."""

    def __init__(self, config: dict = None, rng: Optional[np.random.Generator] = None):
        config = config or {}
        self._puff_size = config.get("puff_size", 14)
        self._radius_range = tuple(config.get("radius_range", [18, 36]))
        self._speed = config.get("speed", 2.5)
        self._rise = config.get("rise", 1.2)
        self._growth = config.get("growth", 0.8)
        self._decay = config.get("decay", 0.02)
        self._max_opacity = config.get("max_opacity", 0.6)
        self._blur = config.get("blur", 15)
        self._color = np.array(config.get("color", [215, 210, 205]), dtype=np.float32)
        self._max_particles = config.get("max_particles", 300)
        self._rng = rng or np.random.default_rng()
        self.particles: List[SmokeParticle] = []

    def emit_puff(self, x: float, y: float, count: Optional[int] = None):
        """Spawn a burst of particles centred on (x, y) in canvas pixels."""
        count = self._puff_size if count is None else count
        lo, hi = self._radius_range
        for _ in range(count):
            angle = self._rng.uniform(0, 2 * np.pi)
            speed = self._rng.uniform(0.3, 1.0) * self._speed
            self.particles.append(SmokeParticle(
                x=x + self._rng.uniform(-lo, lo),
                y=y + self._rng.uniform(-lo, lo),
                vx=float(np.cos(angle) * speed),
                vy=float(np.sin(angle) * speed - self._rise),
                radius=float(self._rng.uniform(lo, hi)),
            ))
        overflow = len(self.particles) - self._max_particles
        if overflow > 0:
            del self.particles[:overflow]

    def update(self):
        """Integrate one tick and drop dead particles."""
        alive = []
        for p in self.particles:
            p.x += p.vx
            p.y += p.vy
            p.radius += self._growth
            p.life -= self._decay
            if p.life > 0:
                alive.append(p)
        self.particles = alive

    def render(self, canvas: np.ndarray) -> np.ndarray:
        if not self.particles:
            return canvas
        h, w = canvas.shape[:2]

        alpha = np.zeros((h, w), dtype=np.float32)
        # Draw faintest first so overlapping puffs keep the strongest value
        for p in sorted(self.particles, key=lambda q: q.opacity):
            cv2.circle(alpha, (int(p.x), int(p.y)), max(1, int(p.radius)),
                       float(p.opacity), -1, cv2.LINE_AA)
        ksize = self._blur * 2 + 1
        alpha = cv2.GaussianBlur(alpha, (ksize, ksize), 0) * self._max_opacity
        alpha = alpha[:, :, None]

        blended = canvas.astype(np.float32) * (1.0 - alpha) + self._color * alpha
        canvas[:] = np.clip(blended, 0, 255).astype(np.uint8)
        return canvas

    def clear(self):
        self.particles.clear()

    @property
    def count(self) -> int:
        return len(self.particles)
