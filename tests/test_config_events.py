"""
Tests for configuration loading and the event bus
=================================================
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.events import HISTORY_SIZE, EventBus, Events
from core.state import FrameSnapshot, LatestValue
from core.types import GestureStatus
from modules.utils.config import Config
from modules.utils.logger import StatusLogger

import main


@pytest.fixture
def config():
    Config.reset()
    yield Config()
    Config.reset()


@pytest.fixture
def bus():
    bus = EventBus()
    bus.reset()
    yield bus
    bus.reset()


class TestConfig:

    def test_bundled_config(self, config):
        """Test loading the bundled config file."""
        config.load()
        assert config.get("sequencer.max_clones") == 4
        assert config.get("recognition.far_distance") == 0.3
        assert config.get("compositor.segmentation.clone_opacity") == 0.85
        assert config._validate() == []

    def test_missing_file_uses_defaults(self, config, tmp_path):
        """Missing file falls back to defaults."""
        config.load(str(tmp_path / "nope.yaml"))
        assert config.get("camera.device_id", 0) == 0
        assert config.camera == {}

    def test_type_warnings(self, config, tmp_path):
        """Test schema type warnings."""
        path = tmp_path / "config.yaml"
        path.write_text("sequencer:\n  max_clones: lots\nrecognition:\n  far_distance: 1\n")
        config.load(str(path))
        warnings = config._validate()
        assert any("sequencer.max_clones" in w for w in warnings)
        assert not any("far_distance" in w for w in warnings)

    def test_non_mapping_root(self, config, tmp_path):
        """Non-mapping YAML root is treated as empty."""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        config.load(str(path))
        assert config.get_section("camera") == {}

    def test_update_deep_merges(self, config):
        """update merges nested sections."""
        config.load()
        config.update({"sequencer": {"max_clones": 6}})
        assert config.get("sequencer.max_clones") == 6
        assert config.get("sequencer.step") == 2

    def test_singleton(self, config):
        """Test Config is a singleton."""
        assert Config() is config


class TestCommandLine:

    def test_flags_to_overrides(self):
        """Command-line flags map to config overrides."""
        args = main.parse_args(["--camera", "2", "--max-clones", "6",
                                "--no-segmentation", "--no-hud", "--log-level", "DEBUG"])
        assert main.build_overrides(args) == {
            "camera": {"device_id": 2},
            "sequencer": {"max_clones": 6},
            "segmentation": {"enabled": False},
            "display": {"hud": {"enabled": False}},
            "logging": {"level": "DEBUG"},
        }

    def test_no_flags_no_overrides(self):
        """No flags means no overrides."""
        assert main.build_overrides(main.parse_args([])) == {}


class TestEventBus:

    def test_emit_reaches_subscribers(self, bus):
        """Test payload delivery to a subscriber."""
        received = []
        bus.subscribe(Events.CLONE_COUNT_CHANGED, lambda count: received.append(count))
        bus.emit(Events.CLONE_COUNT_CHANGED, count=2)
        assert received == [2]

    def test_subscription_order(self, bus):
        """Handlers run in the order they subscribed."""
        order = []
        bus.subscribe("evt", lambda: order.append("first"))
        bus.subscribe("evt", lambda: order.append("second"))
        bus.emit("evt")
        assert order == ["first", "second"]

    def test_handler_error_isolated(self, bus):
        """A raising handler does not stop later handlers."""
        received = []

        def broken(**_):
            raise ValueError("bad handler")

        bus.subscribe("evt", broken)
        bus.subscribe("evt", lambda **kw: received.append(kw))
        bus.emit("evt", x=1)
        assert received == [{"x": 1}]

    def test_unsubscribe(self, bus):
        """Unsubscribed handlers are no longer called."""
        calls = []
        handler = lambda **_: calls.append(1)
        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.emit("evt")
        assert bus.listener_count == 0
        assert calls == []

    def test_history(self, bus):
        """History keeps the most recent event names, oldest first."""
        bus.emit(Events.SYSTEM_STARTED)
        bus.emit(Events.SYSTEM_SHUTDOWN)
        assert bus.get_history(1) == [Events.SYSTEM_SHUTDOWN]
        assert bus.get_history() == [Events.SYSTEM_STARTED, Events.SYSTEM_SHUTDOWN]

    def test_history_is_bounded(self, bus):
        """Only the last HISTORY_SIZE events are kept."""
        for _ in range(HISTORY_SIZE + 5):
            bus.emit("evt")
        assert len(bus.get_history(HISTORY_SIZE * 2)) == HISTORY_SIZE

    def test_shared_instance(self, bus):
        """Every EventBus() call returns the same bus."""
        assert EventBus() is bus


class TestState:

    def test_latest_value_versions(self):
        """Each set bumps the version."""
        cell = LatestValue()
        assert cell.get_versioned() == (0, None)
        cell.set("a")
        cell.set("b")
        assert cell.get_versioned() == (2, "b")
        cell.clear()
        assert cell.get() is None and cell.version == 3

    def test_snapshot_is_frozen(self):
        """Snapshots are immutable."""
        snapshot = FrameSnapshot(count=2, active=True)
        with pytest.raises(Exception):
            snapshot.count = 4
        assert not snapshot.mask_available


class TestStatusLogger:

    def test_records_transitions(self):
        """Test status transition logging."""
        status_logger = StatusLogger(max_history=3)
        status_logger.log_status(GestureStatus.FAR, previous=GestureStatus.IDLE)
        status_logger.log_clone_count(2)
        status_logger.log_session(True)
        status_logger.log_status(GestureStatus.FIST, previous=GestureStatus.FAR)
        history = status_logger.get_history()
        assert len(history) == 3
        assert history[-1]["status"] == "fist"
        assert status_logger.status_changes == 1


class TestGestureStatus:

    def test_from_string(self):
        """Test parsing statuses from strings."""
        assert GestureStatus.from_string("active") is GestureStatus.ACTIVE
        assert GestureStatus.from_string("bogus") is GestureStatus.IDLE


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
