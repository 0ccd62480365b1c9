"""
Clone session: owns every component for one run and drives the
capture -> inference -> classify -> sequence -> composite cycle.

Architecture:
    Camera -> InferenceWorker (one in flight) -> LatestValue cells
    -> GestureClassifier (edge-triggered) -> ActivationSequencer
    -> FrameSnapshot -> FrameCompositor -> Dashboard -> canvas

tick() is called once per display refresh from the main loop. It never
blocks: timers are polled, inference runs on the worker thread, and a
tick with no decodable frame draws nothing and returns None.
"""

import logging
from typing import Callable, Optional

import numpy as np

from core.events import EventBus, Events
from core.scheduler import Scheduler
from core.state import FrameSnapshot
from core.types import FrameResult, GestureStatus
from modules.detection.hand_detector import HandDetector
from modules.detection.inference_worker import InferenceWorker
from modules.detection.person_segmenter import PersonSegmenter
from modules.recognition.activation_sequencer import ActivationSequencer
from modules.recognition.gesture_classifier import GestureClassifier
from modules.rendering.compositor import FrameCompositor
from modules.utils.logger import StatusLogger
from modules.utils.performance_monitor import PerformanceMonitor
from modules.visualization.dashboard import Dashboard

logger = logging.getLogger(__name__)


class CloneSession:
    """One shadow-clone session bound to a camera and a drawing surface."""

    def __init__(
        self,
        camera,
        detector,
        classifier: GestureClassifier,
        sequencer: ActivationSequencer,
        compositor: FrameCompositor,
        scheduler: Scheduler,
        segmenter=None,
        dashboard: Optional[Dashboard] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
        event_bus: Optional[EventBus] = None,
        threaded: bool = True,
    ):
        self._camera = camera
        self._detector = detector
        self._segmenter = segmenter
        self._classifier = classifier
        self._sequencer = sequencer
        self._compositor = compositor
        self._scheduler = scheduler
        self._dashboard = dashboard
        self._perf = performance_monitor or PerformanceMonitor()
        self._bus = event_bus or EventBus()

        self._worker = InferenceWorker(
            detector, segmenter, performance_monitor=self._perf, threaded=threaded,
        )

        self._running = False
        self._last_frame_id = None
        self._result_version = 0
        self._latest_result = FrameResult()

        # Forward sequencer changes to the bus
        self._sequencer.on_count_change(
            lambda count: self._bus.emit(Events.CLONE_COUNT_CHANGED, count=count))
        self._sequencer.on_active_change(self._on_active_change)

        self._status_logger = StatusLogger()
        self._subscriptions = [
            (Events.STATUS_CHANGED, self._status_logger.log_status),
            (Events.CLONE_COUNT_CHANGED, self._status_logger.log_clone_count),
            (Events.SESSION_ACTIVATED, self._status_logger.log_session),
            (Events.SESSION_DEACTIVATED, self._status_logger.log_session),
        ]
        for event_name, handler in self._subscriptions:
            self._bus.subscribe(event_name, handler)

    @classmethod
    def from_config(cls, config, camera, clock=None, event_bus=None, rng=None):
        """Build a session with every component configured from `config`."""
        scheduler = Scheduler(clock)
        hud_cfg = config.get("display.hud", {}) or {}
        dashboard = Dashboard(hud_cfg) if hud_cfg.get("enabled", True) else None
        segmenter = None
        if config.get("segmentation.enabled", True):
            segmenter = PersonSegmenter(config.segmentation)

        return cls(
            camera=camera,
            detector=HandDetector(config.mediapipe),
            classifier=GestureClassifier(config.recognition),
            sequencer=ActivationSequencer(scheduler, config.sequencer),
            compositor=FrameCompositor(
                config.compositor,
                width=config.get("display.width", 1280),
                height=config.get("display.height", 720),
                rng=rng,
            ),
            scheduler=scheduler,
            segmenter=segmenter,
            dashboard=dashboard,
            performance_monitor=PerformanceMonitor(
                window_size=config.get("performance.metrics_window", 100)),
            event_bus=event_bus,
            threaded=config.get("performance.enable_threading", True),
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        """Load models and start the inference worker.

        Model failures are logged and published, never raised: the session
        then shows the plain camera view.
        """
        if self._running:
            return
        if not self._detector.initialize():
            self._bus.emit(Events.MODEL_LOAD_FAILED, model="hands",
                           error=getattr(self._detector, "load_error", None))
        if self._segmenter is not None and not self._segmenter.initialize():
            if self._segmenter.enabled:
                self._bus.emit(Events.MODEL_LOAD_FAILED, model="segmentation", error=None)

        self._worker.start()
        self._running = True
        self._bus.emit(Events.SYSTEM_STARTED)
        logger.info("Clone session started (hands=%s, segmentation=%s)",
                    self._detector.available, self.segmentation_available)

    def close(self):
        """Tear down: inference first, then the sequence timer, compositor last."""
        if not self._running:
            return
        self._running = False
        self._worker.stop()
        self._sequencer.cancel()
        self._scheduler.cancel_all()
        self._compositor.stop()

        self._detector.close()
        if self._segmenter is not None:
            self._segmenter.close()
        self._camera.stop()

        self._bus.emit(Events.SYSTEM_SHUTDOWN)
        for event_name, handler in self._subscriptions:
            self._bus.unsubscribe(event_name, handler)
        logger.info("Clone session closed")

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self) -> Optional[np.ndarray]:
        """Run one display refresh. Returns the canvas, or None if not drawn."""
        if not self._running:
            return None

        self._scheduler.run_pending()

        frame_id, frame = self._camera.read()
        if frame is None:
            self._perf.record_skip()
            return None

        with self._perf.measure("total"):
            if frame_id != self._last_frame_id:
                self._last_frame_id = frame_id
                self._worker.submit(frame)

            self._consume_inference()
            snapshot = self.snapshot()

            with self._perf.measure("compose"):
                canvas = self._compositor.render(frame, snapshot)

            if canvas is not None and self._dashboard is not None:
                with self._perf.measure("hud"):
                    self._dashboard.render(canvas, {
                        "status": snapshot.status,
                        "active": snapshot.active,
                        "clone_count": snapshot.count,
                        "fps": self._perf.fps,
                    })

        if canvas is not None:
            self._perf.tick()
        return canvas

    def _consume_inference(self):
        version, result = self._worker.hands.get_versioned()
        if version == self._result_version:
            return
        self._result_version = version
        self._latest_result = result if result is not None else FrameResult()

        with self._perf.measure("classify"):
            previous = self._classifier.status
            status = self._classifier.update(self._latest_result)
        if status is not None:
            self._bus.emit(Events.STATUS_CHANGED, status=status, previous=previous)
            self._sequencer.on_status(status)

    def snapshot(self) -> FrameSnapshot:
        """Immutable view of everything the compositor reads this tick."""
        mask = self._worker.mask.get() if self.segmentation_available else None
        return FrameSnapshot(
            status=self._classifier.status,
            hands=self._latest_result.hands,
            mask=mask,
            active=self._sequencer.active,
            count=self._sequencer.count,
        )

    # =========================================================================
    # Outward interface
    # =========================================================================

    def on_status_change(self, callback: Callable[[GestureStatus], None]):
        """Register callback(status), fired only when the status changes."""
        def _handler(status, **_):
            callback(status)
        self._bus.subscribe(Events.STATUS_CHANGED, _handler)
        self._subscriptions.append((Events.STATUS_CHANGED, _handler))
        return _handler

    def deactivate(self):
        """External reset: release the clones immediately."""
        self._sequencer.deactivate()

    def resize(self, width: int, height: int):
        """Match the drawing surface to the viewport."""
        if self._compositor.resize(width, height):
            self._bus.emit(Events.VIEWPORT_RESIZED, width=width, height=height)

    def _on_active_change(self, active: bool):
        event = Events.SESSION_ACTIVATED if active else Events.SESSION_DEACTIVATED
        self._bus.emit(event, active=active)

    @property
    def clone_count(self) -> int:
        return self._sequencer.count

    @property
    def active(self) -> bool:
        return self._sequencer.active

    @property
    def status(self) -> GestureStatus:
        return self._classifier.status

    @property
    def segmentation_available(self) -> bool:
        return self._segmenter is not None and self._segmenter.available

    @property
    def surface_size(self):
        return self._compositor.size

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def status_logger(self) -> StatusLogger:
        return self._status_logger

    @property
    def is_running(self) -> bool:
        return self._running
