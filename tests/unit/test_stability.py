"""
Unit tests for StabilityGate.
"""

import pytest

from livescan.core.stability import (
    STABILITY_THRESHOLD,
    WINDOW_SIZE,
    DisplacementSample,
    StabilityGate,
)


def fill(gate, sample, count):
    for _ in range(count):
        gate.record(sample)


class TestStabilityGate:
    """Tests for the moving-average stability test."""

    @pytest.fixture
    def gate(self):
        return StabilityGate()

    def test_defaults(self, gate):
        assert WINDOW_SIZE == 15
        assert STABILITY_THRESHOLD == 20.0
        assert gate.window_size == 15
        assert gate.threshold == 20.0
        assert len(gate) == 0

    def test_empty_gate_not_stable(self, gate):
        assert not gate.is_stable()
        assert gate.mean() is None
        assert gate.motion() is None

    def test_partial_window_never_stable(self, gate):
        """Fewer than 15 zero samples is still not stable."""
        for count in range(1, WINDOW_SIZE):
            gate.record(DisplacementSample(0.0, 0.0))
            assert len(gate) == count
            assert not gate.is_stable()

    def test_full_window_of_still_frames_is_stable(self, gate):
        fill(gate, DisplacementSample(0.0, 0.0), WINDOW_SIZE)
        assert gate.is_full
        assert gate.is_stable()

    def test_window_is_bounded(self, gate):
        fill(gate, DisplacementSample(1.0, 2.0), 100)
        assert len(gate) == WINDOW_SIZE

    def test_oldest_samples_evicted(self, gate):
        """Large early motion stops counting once 15 newer samples arrive."""
        fill(gate, DisplacementSample(500.0, -500.0), WINDOW_SIZE)
        assert not gate.is_stable()

        fill(gate, DisplacementSample(0.5, 0.5), WINDOW_SIZE - 1)
        assert not gate.is_stable()

        gate.record(DisplacementSample(0.5, 0.5))
        assert gate.is_stable()
        assert all(sample == DisplacementSample(0.5, 0.5) for sample in gate.history)

    def test_history_is_fifo(self, gate):
        for i in range(WINDOW_SIZE + 3):
            gate.record(DisplacementSample(float(i), 0.0))
        xs = [sample.x for sample in gate.history]
        assert xs == [float(i) for i in range(3, WINDOW_SIZE + 3)]

    def test_threshold_is_strict(self, gate):
        """Mean L1 norm exactly equal to the threshold is not stable."""
        fill(gate, DisplacementSample(10.0, 10.0), WINDOW_SIZE)
        assert gate.motion() == pytest.approx(20.0)
        assert not gate.is_stable()

    def test_just_below_threshold_is_stable(self, gate):
        fill(gate, DisplacementSample(10.0, 9.9), WINDOW_SIZE)
        assert gate.is_stable()

    def test_uses_mean_not_sum(self, gate):
        """Summed displacement of 30px still averages to 2px per frame."""
        fill(gate, DisplacementSample(1.0, 1.0), WINDOW_SIZE)
        assert gate.mean() == (pytest.approx(1.0), pytest.approx(1.0))
        assert gate.motion() == pytest.approx(2.0)
        assert gate.is_stable()

    def test_negative_components_use_absolute_value(self, gate):
        fill(gate, DisplacementSample(-15.0, -10.0), WINDOW_SIZE)
        assert gate.motion() == pytest.approx(25.0)
        assert not gate.is_stable()

    def test_opposite_motion_cancels_out(self, gate):
        """Back-and-forth shake averages out over the window."""
        for i in range(WINDOW_SIZE):
            gate.record(DisplacementSample(50.0 if i % 2 == 0 else -50.0, 0.0))
        assert gate.motion() == pytest.approx(50.0 / WINDOW_SIZE)
        assert gate.is_stable()

    def test_reset_clears_history(self, gate):
        fill(gate, DisplacementSample(0.0, 0.0), WINDOW_SIZE)
        assert gate.is_stable()

        gate.reset()

        assert len(gate) == 0
        assert not gate.is_stable()

    def test_reset_then_partial_refill_not_stable(self, gate):
        fill(gate, DisplacementSample(0.0, 0.0), WINDOW_SIZE)
        gate.reset()
        fill(gate, DisplacementSample(0.0, 0.0), WINDOW_SIZE - 1)
        assert not gate.is_stable()

    def test_record_accepts_plain_tuples(self, gate):
        gate.record((3, 4))
        assert gate.history == (DisplacementSample(3.0, 4.0),)
        assert isinstance(gate.history[0].x, float)

    def test_custom_window_and_threshold(self):
        gate = StabilityGate(window_size=3, threshold=5.0)
        fill(gate, DisplacementSample(2.0, 2.0), 3)
        assert gate.is_stable()

        gate.record(DisplacementSample(10.0, 10.0))
        assert not gate.is_stable()

    def test_invalid_window_size(self):
        with pytest.raises(ValueError):
            StabilityGate(window_size=0)

    def test_small_steady_drift_is_stable(self, gate):
        """Fifteen (2, 2) steps average to 4px of motion."""
        fill(gate, DisplacementSample(2.0, 2.0), WINDOW_SIZE)
        assert gate.motion() == pytest.approx(4.0)
        assert gate.is_stable()

    def test_fast_steady_pan_is_not_stable(self, gate):
        """Fifteen (15, 15) steps average to 30px, above the threshold."""
        fill(gate, DisplacementSample(15.0, 15.0), WINDOW_SIZE)
        assert gate.is_full
        assert gate.motion() == pytest.approx(30.0)
        assert not gate.is_stable()

    def test_twenty_samples_keep_last_fifteen(self, gate):
        samples = [DisplacementSample(float(i), float(-i)) for i in range(20)]
        for sample in samples:
            gate.record(sample)

        assert len(gate) == WINDOW_SIZE
        assert gate.history == tuple(samples[5:])

    @pytest.mark.parametrize(
        "sample, count, expected",
        [
            (DisplacementSample(0.0, 0.0), WINDOW_SIZE, True),
            (DisplacementSample(15.0, 15.0), WINDOW_SIZE, False),
            (DisplacementSample(0.0, 0.0), WINDOW_SIZE - 1, False),
        ],
    )
    def test_is_stable_is_idempotent(self, gate, sample, count, expected):
        """Asking repeatedly changes neither the answer nor the window."""
        fill(gate, sample, count)
        history = gate.history

        answers = [gate.is_stable() for _ in range(5)]

        assert answers == [expected] * 5
        assert gate.history == history
        assert len(gate) == count
