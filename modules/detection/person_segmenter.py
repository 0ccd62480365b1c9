"""
MediaPipe Selfie Segmentation wrapper producing a person mask aligned to
the input frame.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


class PersonSegmenter:
    """Optional person segmentation; disabled or failed => no mask."""

    def __init__(self, config: dict):
        self._enabled = config.get("enabled", True)
        self._model_selection = config.get("model_selection", 1)
        self._segmenter = None
        self._initialized = False
        self._available = False

    def initialize(self) -> bool:
        if self._initialized:
            return self._available
        self._initialized = True
        if not self._enabled:
            logger.info("Person segmentation disabled by config")
            return False
        try:
            import mediapipe as mp
            self._segmenter = mp.solutions.selfie_segmentation.SelfieSegmentation(
                model_selection=self._model_selection,
            )
        except (ImportError, AttributeError, RuntimeError, OSError) as e:
            self._available = False
            logger.error("Selfie segmentation unavailable, using panel layout: %s", e)
            return False

        self._available = True
        logger.info("Selfie segmentation initialized (model=%d)", self._model_selection)
        return True

    def segment(self, rgb_frame: np.ndarray) -> Optional[np.ndarray]:
        """Float32 HxW mask in [0, 1] (1 = person), or None."""
        if not self._initialized:
            self.initialize()
        if not self._available:
            return None

        rgb_frame.flags.writeable = False
        try:
            results = self._segmenter.process(rgb_frame)
        finally:
            rgb_frame.flags.writeable = True

        mask = getattr(results, "segmentation_mask", None)
        if mask is None:
            return None
        return np.asarray(mask, dtype=np.float32)

    def close(self):
        if self._segmenter is not None:
            self._segmenter.close()
            self._segmenter = None
            logger.info("Selfie segmentation closed")
        self._initialized = False
        self._available = False

    @property
    def available(self) -> bool:
        return self._available

    @property
    def enabled(self) -> bool:
        return self._enabled
