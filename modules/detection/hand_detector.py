"""
MediaPipe hand landmark detection wrapper.

MediaPipe is imported lazily in initialize() so that a missing or broken
install is a logged, recoverable condition: the detector reports
available=False and the session keeps rendering the plain camera view.
"""

import logging
import numpy as np

from core.types import FrameResult, HandLandmarks
from modules.detection.landmarks import extract_landmarks

logger = logging.getLogger(__name__)


class HandDetector:
    """MediaPipe Hands wrapper returning FrameResult objects."""

    def __init__(self, config: dict):
        self._model_complexity = config.get("model_complexity", 1)
        self._max_hands = config.get("max_num_hands", 2)
        self._min_detect_conf = config.get("min_detection_confidence", 0.5)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)

        self._hands = None
        self._initialized = False
        self._available = False
        self._load_error = None

    def initialize(self) -> bool:
        """Load MediaPipe Hands. Returns False (and logs) on failure."""
        if self._initialized:
            return self._available
        self._initialized = True
        try:
            import mediapipe as mp
            self._hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                model_complexity=self._model_complexity,
                max_num_hands=self._max_hands,
                min_detection_confidence=self._min_detect_conf,
                min_tracking_confidence=self._min_track_conf,
            )
        except (ImportError, AttributeError, RuntimeError, OSError) as e:
            self._load_error = e
            self._available = False
            logger.error("MediaPipe Hands unavailable, continuing without hand tracking: %s", e)
            return False

        self._available = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, max_hands=%d, "
            "detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._max_hands,
            self._min_detect_conf, self._min_track_conf,
        )
        return True

    def detect(self, rgb_frame: np.ndarray) -> FrameResult:
        """Run hand detection on an RGB frame.

        Returns an empty FrameResult when the model is unavailable or no
        hands are visible.
        """
        if not self._initialized:
            self.initialize()
        if not self._available:
            return FrameResult()

        # Set frame as non-writable for performance
        rgb_frame.flags.writeable = False
        try:
            results = self._hands.process(rgb_frame)
        finally:
            rgb_frame.flags.writeable = True

        return self.to_frame_result(results)

    @staticmethod
    def to_frame_result(results) -> FrameResult:
        """Convert a MediaPipe Hands results object to a FrameResult."""
        if results is None or not results.multi_hand_landmarks:
            return FrameResult()

        handedness_list = results.multi_handedness or []
        hands = []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            label, score = "unknown", 0.0
            if i < len(handedness_list) and handedness_list[i].classification:
                c = handedness_list[i].classification[0]
                label = getattr(c, "label", label)
                score = float(getattr(c, "score", score))
            hands.append(HandLandmarks(extract_landmarks(hand_landmarks), label, score))
        return FrameResult(hands)

    def close(self):
        """Release MediaPipe resources."""
        if self._hands is not None:
            self._hands.close()
            self._hands = None
            logger.info("MediaPipe Hands closed")
        self._initialized = False
        self._available = False

    @property
    def available(self) -> bool:
        return self._available

    @property
    def load_error(self):
        return self._load_error

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
