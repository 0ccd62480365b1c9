"""
Tests for Camera Module
========================
"""

import pytest
import numpy as np
import sys
import time
from pathlib import Path
from unittest.mock import patch, MagicMock

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modules.capture.camera_manager import CameraManager


class TestCameraManager:
    """Test suite for CameraManager with a mocked VideoCapture."""

    @pytest.fixture
    def mock_cv2(self):
        """Mock OpenCV VideoCapture."""
        with patch("modules.capture.camera_manager.cv2") as mock:
            frame = np.zeros((720, 1280, 3), dtype=np.uint8)
            frame[:, :10] = 255  # left edge marker
            mock_cap = MagicMock()
            mock_cap.isOpened.return_value = True
            mock_cap.read.return_value = (True, frame)
            mock_cap.get.return_value = 30.0
            mock.VideoCapture.return_value = mock_cap
            mock.flip.side_effect = lambda img, code: img[:, ::-1]
            yield mock

    def test_defaults(self):
        """Test default camera settings."""
        camera = CameraManager({})
        assert camera.resolution == (1280, 720)
        assert not camera.is_open
        assert not camera.is_ready

    def test_open_success(self, mock_cv2):
        """Test opening a mocked capture device."""
        camera = CameraManager({"warmup_frames": 0})
        assert camera.open() is True
        assert camera.is_open
        camera.stop()

    def test_open_failure(self, mock_cv2):
        """Test open returns False when the device is unavailable."""
        mock_cv2.VideoCapture.return_value.isOpened.return_value = False
        camera = CameraManager({})
        assert camera.open() is False
        assert not camera.is_open

    def test_read_before_open(self):
        """Reading before open yields no frame."""
        camera = CameraManager({})
        assert camera.read() == (None, None)

    def test_sync_read_is_mirrored(self, mock_cv2):
        """Synchronous reads come back mirrored."""
        camera = CameraManager({"warmup_frames": 0, "flip_horizontal": True})
        camera.open()
        frame_id, frame = camera.read()
        assert frame_id == 1
        assert frame[0, -1, 0] == 255
        assert frame[0, 0, 0] == 0
        assert camera.is_ready
        camera.stop()

    def test_failed_read(self, mock_cv2):
        """Failed read yields no frame."""
        mock_cv2.VideoCapture.return_value.read.return_value = (False, None)
        camera = CameraManager({"warmup_frames": 0})
        camera.open()
        assert camera.read() == (None, None)
        camera.stop()

    def test_async_capture(self, mock_cv2):
        """Test the background capture thread."""
        camera = CameraManager({"warmup_frames": 0})
        camera.open()
        camera.start_async()
        deadline = time.time() + 2.0
        while not camera.is_ready and time.time() < deadline:
            time.sleep(0.01)
        frame_id, frame = camera.read()
        assert frame_id is not None and frame_id >= 1
        assert frame.shape == (720, 1280, 3)
        camera.stop()
        assert camera.read() == (None, None)

    def test_context_manager(self, mock_cv2):
        """Test camera as context manager."""
        with CameraManager({"warmup_frames": 0}) as camera:
            assert camera.is_open
        assert not camera.is_open


class TestCameraIntegration:
    """Integration tests requiring real camera (marked as slow)."""

    @pytest.mark.skip(reason="Requires physical camera")
    def test_real_camera_capture(self):
        """Test with a real camera if one is attached."""
        camera = CameraManager({"warmup_frames": 5})
        try:
            if camera.open():
                frame_id, frame = camera.read()
                assert frame is not None
                assert frame.shape[0] > 0
        finally:
            camera.stop()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
