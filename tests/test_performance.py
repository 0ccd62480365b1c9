"""
Tests for Performance Monitoring
=================================
"""

import pytest
import time
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modules.utils.performance_monitor import PerformanceMonitor, STAGES


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor class."""

    @pytest.fixture
    def monitor(self):
        return PerformanceMonitor(window_size=5)

    def test_fps_calculation(self, monitor):
        """Simulate frames at ~30 FPS."""
        for _ in range(10):
            monitor.tick()
            time.sleep(0.033)
        monitor.tick()
        assert 20 < monitor.fps < 35

    def test_fps_zero_without_frames(self, monitor):
        """FPS is zero before any frame."""
        assert monitor.fps == 0.0

    def test_stage_timing(self, monitor):
        """Test per-stage timing."""
        for _ in range(3):
            with monitor.measure("compose"):
                time.sleep(0.005)
            with monitor.measure("inference"):
                time.sleep(0.010)

        assert monitor.get_stage_latency("compose") >= 4
        assert monitor.get_stage_latency("inference") > monitor.get_stage_latency("compose")

    def test_measure_records_on_error(self, monitor):
        """measure records the time even when the block raises."""
        with pytest.raises(RuntimeError):
            with monitor.measure("classify"):
                raise RuntimeError("boom")
        assert monitor.get_stage_latency("classify") >= 0.0
        assert len(monitor._stage_times["classify"]) == 1

    def test_unknown_stage(self, monitor):
        """Unknown stages report zero."""
        assert monitor.get_stage_latency("nope") == 0.0

    def test_counters(self, monitor):
        """Test frame and drop counters."""
        monitor.tick()
        monitor.record_skip()
        monitor.record_drop()
        monitor.record_drop()
        report = monitor.get_report()
        assert report["total_frames"] == 1
        assert report["skipped_ticks"] == 1
        assert report["dropped_frames"] == 2
        assert monitor.dropped_frames == 2

    def test_report_lists_all_stages(self, monitor):
        """Report lists every stage."""
        report = monitor.get_report()
        assert set(STAGES) <= set(report["latencies_ms"])

    def test_reset(self, monitor):
        """Test monitor reset."""
        monitor.tick()
        monitor.record_drop()
        with monitor.measure("total"):
            pass
        monitor.reset()
        assert monitor.get_report()["total_frames"] == 0
        assert monitor.dropped_frames == 0
        assert monitor.total_latency_ms == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
