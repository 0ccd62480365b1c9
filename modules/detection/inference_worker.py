"""
Single-slot inference worker.

Frames are handed to the hand detector (and the optional segmenter) on a
one-thread executor. At most one inference is in flight: a frame offered
while the worker is busy is dropped, never queued, so results can lag the
display by at most one inference.

Results land in LatestValue cells that the display loop reads once per
tick. In non-threaded mode submit() runs inline, which keeps tests and
benchmarks deterministic.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import cv2
import numpy as np

from core.state import LatestValue

logger = logging.getLogger(__name__)


class InferenceWorker:
    """Runs landmark/segmentation inference with an in-flight gate."""

    def __init__(self, detector, segmenter=None, performance_monitor=None,
                 threaded: bool = True):
        self._detector = detector
        self._segmenter = segmenter
        self._perf = performance_monitor
        self._threaded = threaded

        self.hands = LatestValue()   # FrameResult
        self.mask = LatestValue()    # float32 HxW or None

        self._busy = False
        self._busy_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._running = False
        self._submitted = 0
        self._dropped = 0

    def start(self):
        if self._running:
            return
        if self._threaded:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")
        self._running = True
        logger.info("Inference worker started (%s)", "threaded" if self._threaded else "inline")

    def submit(self, frame_bgr: np.ndarray) -> Optional[Future]:
        """Offer a frame. Returns the Future, or None if the frame was dropped."""
        if not self._running or frame_bgr is None:
            return None

        with self._busy_lock:
            if self._busy:
                self._dropped += 1
                if self._perf is not None:
                    self._perf.record_drop()
                return None
            self._busy = True
        self._submitted += 1

        if self._threaded:
            try:
                return self._executor.submit(self._run, frame_bgr)
            except RuntimeError as e:
                # Executor already shut down
                logger.debug("Inference submit rejected: %s", e)
                self._release()
                return None

        future = Future()
        future.set_result(self._run(frame_bgr))
        return future

    def _run(self, frame_bgr: np.ndarray) -> bool:
        try:
            rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
            if self._perf is not None:
                with self._perf.measure("inference"):
                    self._infer(rgb)
            else:
                self._infer(rgb)
            return True
        except Exception:
            logger.exception("Inference failed; keeping previous results")
            return False
        finally:
            self._release()

    def _infer(self, rgb: np.ndarray):
        self.hands.set(self._detector.detect(rgb))
        if self._segmenter is not None and self._segmenter.available:
            mask = self._segmenter.segment(rgb)
            if mask is not None:
                self.mask.set(mask)

    def _release(self):
        with self._busy_lock:
            self._busy = False

    def stop(self):
        """Stop accepting frames and wait for the in-flight job, if any."""
        if not self._running:
            return
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        logger.info("Inference worker stopped (submitted=%d, dropped=%d)",
                    self._submitted, self._dropped)

    @property
    def busy(self) -> bool:
        with self._busy_lock:
            return self._busy

    @property
    def submitted(self) -> int:
        return self._submitted

    @property
    def dropped(self) -> int:
        return self._dropped

    @property
    def is_running(self) -> bool:
        return self._running
