"""
Threaded camera capture that always holds the most recent frame.

Readiness is polled, not pushed: read() returns (None, None) until the
first decodable frame arrives, and the display loop simply skips drawing
for that tick.
"""

import time
import threading
import logging
import cv2

logger = logging.getLogger(__name__)

_BACKENDS = {
    "v4l2": "CAP_V4L2",
    "gstreamer": "CAP_GSTREAMER",
    "avfoundation": "CAP_AVFOUNDATION",
    "dshow": "CAP_DSHOW",
    "auto": "CAP_ANY",
}


class CameraManager:
    """Selfie-view camera with a background capture thread."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 1280)
        self._height = config.get("height", 720)
        self._fps = config.get("fps", 30)
        self._backend = config.get("backend", "auto")
        self._buffer_size = config.get("buffer_size", 1)
        self._flip_h = config.get("flip_horizontal", True)
        self._warmup_frames = config.get("warmup_frames", 5)

        self._cap = None
        self._frame = None
        self._frame_id = 0
        self._lock = threading.Lock()
        self._running = False
        self._thread = None
        self._failed_reads = 0

    def open(self) -> bool:
        """Open the device and request the nominal resolution."""
        backend = getattr(cv2, _BACKENDS.get(self._backend, "CAP_ANY"), cv2.CAP_ANY)

        self._cap = cv2.VideoCapture(self._device_id, backend)
        if not self._cap.isOpened():
            logger.error("Failed to open camera %d with backend %s", self._device_id, self._backend)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._buffer_size)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logger.info(
            "Camera opened: %dx%d @ %.0f FPS (requested %dx%d @ %d)",
            actual_w, actual_h, actual_fps,
            self._width, self._height, self._fps,
        )

        # Let auto-exposure settle
        for _ in range(self._warmup_frames):
            self._cap.read()

        return True

    def start_async(self):
        """Start threaded frame capture."""
        if self._running or self._cap is None:
            return
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, name="camera", daemon=True)
        self._thread.start()
        logger.info("Async capture started")

    def _capture_loop(self):
        while self._running:
            ret, frame = self._cap.read()
            if ret and frame is not None:
                if self._flip_h:
                    frame = cv2.flip(frame, 1)
                with self._lock:
                    self._frame = frame
                    self._frame_id += 1
            else:
                self._failed_reads += 1
                if self._failed_reads % 100 == 1:
                    logger.warning("Camera read failed (%d so far)", self._failed_reads)
                time.sleep(0.005)

    def read(self):
        """Latest frame without blocking.

        Returns:
            tuple: (frame_id, frame copy) or (None, None) if not ready
        """
        if not self._running:
            return self.read_sync()
        with self._lock:
            if self._frame is not None:
                return self._frame_id, self._frame.copy()
            return None, None

    def read_sync(self):
        """Blocking read straight from the device (non-threaded mode)."""
        if self._cap is None:
            return None, None
        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None, None
        if self._flip_h:
            frame = cv2.flip(frame, 1)
        with self._lock:
            self._frame = frame
            self._frame_id += 1
            return self._frame_id, frame

    @property
    def is_ready(self) -> bool:
        """True once at least one decodable frame has been captured."""
        with self._lock:
            return self._frame is not None

    @property
    def resolution(self) -> tuple:
        return (self._width, self._height)

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def stop(self):
        """Stop async capture and release the device."""
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        if self._cap:
            self._cap.release()
            self._cap = None
        with self._lock:
            self._frame = None
        logger.info("Camera stopped")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
