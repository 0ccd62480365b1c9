#!/usr/bin/env python3
"""
Shadow Clone Camera
Webcam toy: hold the hand seal, bring the hands together and the camera
multiplies you into a row of clones.

Usage:
    python main.py                       # Default camera, config/config.yaml
    python main.py --camera 1            # Other capture device
    python main.py --max-clones 6        # Seven bodies instead of five
    python main.py --no-segmentation     # Panel layout only
    python main.py --log-level DEBUG

Keys:
    q / Esc   quit
    r         release the clones
    p         print performance report
"""

import sys
import os
import time
import signal
import argparse
import logging

import cv2

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from modules.utils.config import Config
from modules.utils.logger import setup_logging
from modules.capture.camera_manager import CameraManager

from core.events import EventBus, Events
from core.session import CloneSession

logger = logging.getLogger(__name__)

_KEY_ESC = 27


class ShadowCloneApp:
    """Window, keyboard and signal handling around a CloneSession."""

    def __init__(self, config: Config):
        self._config = config
        self._running = False
        self._window_name = config.get("display.window_name", "Shadow Clone Camera")
        self._fullscreen = config.get("display.fullscreen", False)

        self._bus = EventBus()
        self._camera = CameraManager(config.camera)
        self._session = CloneSession.from_config(config, self._camera, event_bus=self._bus)

        self._bus.subscribe(Events.MODEL_LOAD_FAILED, self._on_model_load_failed)

    def _on_model_load_failed(self, model=None, error=None, **_):
        logger.warning("%s model unavailable (%s); continuing without it", model, error)

    def start(self) -> bool:
        """Open the camera and run the display loop until quit."""
        if not self._camera.open():
            logger.error("Failed to open camera. Check connection and permissions.")
            self._bus.emit(Events.CAMERA_ERROR, device=self._config.get("camera.device_id", 0))
            return False

        if self._config.get("performance.enable_threading", True):
            self._camera.start_async()

        self._session.start()
        self._open_window()
        self._running = True
        logger.info("Starting main loop")

        try:
            self._run_main_loop()
        finally:
            self._shutdown()
        return True

    def _open_window(self):
        flags = cv2.WINDOW_NORMAL
        cv2.namedWindow(self._window_name, flags)
        if self._fullscreen:
            cv2.setWindowProperty(self._window_name, cv2.WND_PROP_FULLSCREEN, cv2.WINDOW_FULLSCREEN)
        else:
            width, height = self._session.surface_size
            cv2.resizeWindow(self._window_name, width, height)

    def _poll_viewport(self):
        """Follow window resizes; getWindowImageRect is unsupported on some backends."""
        try:
            _, _, width, height = cv2.getWindowImageRect(self._window_name)
        except cv2.error:
            return
        if width > 0 and height > 0:
            self._session.resize(width, height)

    def _run_main_loop(self):
        while self._running:
            canvas = self._session.tick()
            if canvas is not None:
                cv2.imshow(self._window_name, canvas)
            else:
                # No frame yet; avoid spinning
                time.sleep(0.002)

            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), _KEY_ESC):
                self._running = False
            elif key == ord("r"):
                logger.info("Manual release")
                self._session.deactivate()
            elif key == ord("p"):
                self._session.performance.print_report()

            self._poll_viewport()

    def _shutdown(self):
        logger.info("Shutting down...")
        self._running = False
        self._session.close()
        cv2.destroyAllWindows()
        self._session.performance.print_report()
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Shadow Clone Camera - hand-seal triggered clone effect"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--max-clones", type=int, default=None,
        help="Clones at full activation (4 or 6)"
    )
    parser.add_argument(
        "--no-segmentation", action="store_true",
        help="Disable person segmentation (panel layout only)"
    )
    parser.add_argument(
        "--no-hud", action="store_true",
        help="Hide the status overlay"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override logging.level"
    )
    return parser.parse_args(argv)


def build_overrides(args) -> dict:
    """Translate CLI flags into a config overlay."""
    overrides = {}
    if args.camera is not None:
        overrides["camera"] = {"device_id": args.camera}
    if args.max_clones is not None:
        overrides["sequencer"] = {"max_clones": args.max_clones}
    if args.no_segmentation:
        overrides["segmentation"] = {"enabled": False}
    if args.no_hud:
        overrides["display"] = {"hud": {"enabled": False}}
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    return overrides


def main(argv=None) -> int:
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)
    config.update(build_overrides(args))

    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 60)
    logger.info("  SHADOW CLONE CAMERA")
    logger.info("  Version: %s", config.get("system.version", "1.0.0"))
    logger.info("  Max clones: %d", config.get("sequencer.max_clones", 4))
    logger.info("=" * 60)

    app = ShadowCloneApp(config)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return 0 if app.start() else 1


if __name__ == "__main__":
    sys.exit(main())
