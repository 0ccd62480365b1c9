"""
Tests for the clone activation sequencer and the cooperative scheduler
======================================================================
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.scheduler import Scheduler
from core.types import GestureStatus
from modules.recognition.activation_sequencer import ActivationSequencer

EPS = 1e-3


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float):
        self.t += dt


@pytest.fixture
def clock():
    return FakeClock(100.0)


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


def run_until(clock, scheduler, t):
    clock.t = t
    scheduler.run_pending()


class TestScheduler:

    def test_call_later_fires_once(self, clock, scheduler):
        """One-shot timer fires once after its delay."""
        calls = []
        scheduler.call_later(0.5, lambda: calls.append(clock()))
        run_until(clock, scheduler, 100.4)
        assert calls == []
        run_until(clock, scheduler, 100.5 + EPS)
        run_until(clock, scheduler, 102.0)
        assert len(calls) == 1
        assert scheduler.pending_count == 0

    def test_call_every_catches_up(self, clock, scheduler):
        """A late poll fires once per missed interval."""
        calls = []
        scheduler.call_every(0.25, lambda: calls.append(1))
        run_until(clock, scheduler, 101.0 + EPS)
        assert len(calls) == 4

    def test_repeating_due_times_do_not_drift(self, clock, scheduler):
        """After many firings the next due time is still start + k * interval."""
        calls = []
        handle = scheduler.call_every(0.1, lambda: calls.append(1))
        run_until(clock, scheduler, 110.0)
        assert len(calls) == 100
        assert handle.due == pytest.approx(110.1, abs=1e-12)

    def test_cancel(self, clock, scheduler):
        """Cancelled timers stop firing."""
        calls = []
        handle = scheduler.call_every(0.1, lambda: calls.append(1))
        run_until(clock, scheduler, 100.1 + EPS)
        scheduler.cancel(handle)
        run_until(clock, scheduler, 101.0)
        assert len(calls) == 1
        assert scheduler.pending_count == 0

    def test_cancel_all(self, clock, scheduler):
        """cancel_all drops every pending timer."""
        scheduler.call_every(0.1, lambda: None)
        scheduler.call_later(0.1, lambda: None)
        scheduler.cancel_all()
        assert scheduler.pending_count == 0
        assert scheduler.run_pending(200.0) == 0

    def test_failing_callback_does_not_stop_others(self, clock, scheduler):
        """Test that a raising callback is logged and the rest still run."""
        calls = []

        def boom():
            raise RuntimeError("boom")

        scheduler.call_later(0.1, boom)
        scheduler.call_later(0.1, lambda: calls.append(1))
        fired = scheduler.run_pending(100.2)
        assert fired == 2
        assert calls == [1]

    def test_non_positive_interval_rejected(self, scheduler):
        """Zero interval raises ValueError."""
        with pytest.raises(ValueError):
            scheduler.call_every(0, lambda: None)

    def test_explicit_now(self, scheduler):
        """run_pending accepts an explicit time."""
        calls = []
        scheduler.call_later(1.0, lambda: calls.append(1))
        scheduler.run_pending(101.0 + EPS)
        assert calls == [1]


class TestActivationSequencer:

    @pytest.fixture
    def sequencer(self, scheduler):
        return ActivationSequencer(scheduler, {"step": 2, "interval_ms": 400, "max_clones": 4})

    def test_initial_state(self, sequencer):
        """Sequencer starts inactive at zero clones."""
        assert sequencer.count == 0
        assert not sequencer.active
        assert not sequencer.is_stepping

    def test_count_samples(self, clock, scheduler, sequencer):
        """Counts at 0, 400, 800 and 1200 ms after activation."""
        sequencer.on_status(GestureStatus.ACTIVE)
        samples = [sequencer.count]
        for t in (0.4, 0.8, 1.2):
            run_until(clock, scheduler, 100.0 + t + EPS)
            samples.append(sequencer.count)
        assert samples == [0, 2, 4, 4]
        assert not sequencer.is_stepping

    def test_count_samples_at_exact_ticks(self, clock, scheduler, sequencer):
        """Sampling exactly on each interval boundary sees every step."""
        sequencer.on_status(GestureStatus.ACTIVE)
        samples = [sequencer.count]
        for t in (100.4, 100.8, 101.2):
            run_until(clock, scheduler, t)
            samples.append(sequencer.count)
        assert samples == [0, 2, 4, 4]

    def test_max_six_at_exact_ticks(self, clock, scheduler):
        """Third step lands on time even though 3 * 0.4 rounds above 1.2."""
        sequencer = ActivationSequencer(scheduler, {"max_clones": 6})
        sequencer.activate()
        samples = []
        for t in (100.4, 100.8, 101.2):
            run_until(clock, scheduler, t)
            samples.append(sequencer.count)
        assert samples == [2, 4, 6]

    def test_count_listener(self, clock, scheduler, sequencer):
        """Listener sees each count step."""
        counts = []
        sequencer.on_count_change(counts.append)
        sequencer.activate()
        run_until(clock, scheduler, 102.0)
        assert counts == [2, 4]

    def test_max_six(self, clock, scheduler):
        """Six-clone cap steps 2, 4, 6."""
        sequencer = ActivationSequencer(scheduler, {"max_clones": 6})
        counts = []
        sequencer.on_count_change(counts.append)
        sequencer.activate()
        run_until(clock, scheduler, 105.0)
        assert counts == [2, 4, 6]
        assert sequencer.count == 6

    def test_count_clamped_to_max(self, clock, scheduler):
        """Count never overshoots max_clones."""
        sequencer = ActivationSequencer(scheduler, {"step": 4, "max_clones": 6})
        sequencer.activate()
        run_until(clock, scheduler, 105.0)
        assert sequencer.count == 6

    def test_fist_resets(self, clock, scheduler, sequencer):
        """Fist clears the count and cancels the timer."""
        active_changes = []
        sequencer.on_active_change(active_changes.append)
        sequencer.on_status(GestureStatus.ACTIVE)
        run_until(clock, scheduler, 100.4 + EPS)
        assert sequencer.count == 2

        sequencer.on_status(GestureStatus.FIST)
        assert sequencer.count == 0
        assert not sequencer.active
        assert scheduler.pending_count == 0
        assert active_changes == [True, False]

        run_until(clock, scheduler, 105.0)
        assert sequencer.count == 0

    def test_deactivate_mid_sequence(self, clock, scheduler, sequencer):
        """Deactivating mid-sequence resets to zero."""
        sequencer.activate()
        run_until(clock, scheduler, 100.4 + EPS)
        sequencer.deactivate()
        assert sequencer.count == 0
        assert not sequencer.is_stepping

    def test_repeat_active_does_not_restart(self, clock, scheduler, sequencer):
        """Repeated ACTIVE keeps the running sequence."""
        sequencer.on_status(GestureStatus.ACTIVE)
        run_until(clock, scheduler, 100.4 + EPS)
        sequencer.on_status(GestureStatus.NEAR)
        sequencer.on_status(GestureStatus.ACTIVE)
        assert sequencer.count == 2
        assert scheduler.pending_count == 1

    def test_non_trigger_statuses_ignored(self, sequencer):
        """Only ACTIVE and FIST change the sequencer."""
        for status in (GestureStatus.IDLE, GestureStatus.FAR, GestureStatus.NEAR, GestureStatus.FIST):
            sequencer.on_status(status)
        assert not sequencer.active

    def test_reactivation_starts_from_zero(self, clock, scheduler, sequencer):
        """Test reactivation after a reset."""
        sequencer.activate()
        run_until(clock, scheduler, 101.0)
        sequencer.deactivate()
        sequencer.activate()
        assert sequencer.count == 0
        run_until(clock, scheduler, 101.4 + EPS)
        assert sequencer.count == 2

    def test_cancel_keeps_count(self, clock, scheduler, sequencer):
        """cancel stops stepping but keeps the count."""
        sequencer.activate()
        run_until(clock, scheduler, 100.4 + EPS)
        sequencer.cancel()
        run_until(clock, scheduler, 103.0)
        assert sequencer.count == 2
        assert sequencer.active

    def test_invalid_step(self, scheduler):
        """Non-positive step raises ValueError."""
        with pytest.raises(ValueError):
            ActivationSequencer(scheduler, {"step": 0})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
