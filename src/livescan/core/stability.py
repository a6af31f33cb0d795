"""
Motion-stability gate for the live scanner.

Consumes frame-to-frame displacement samples and reports whether the scene
has been stationary long enough to justify running the classifier.

The test averages the most recent WINDOW_SIZE samples and compares the L1
norm of that mean against STABILITY_THRESHOLD. A partially filled window is
never stable, so a freshly reset gate cannot trigger classification.
"""

from collections import deque
from typing import NamedTuple

WINDOW_SIZE = 15
STABILITY_THRESHOLD = 20.0


class DisplacementSample(NamedTuple):
    """Estimated translation (pixels) between two consecutive frames."""

    x: float
    y: float


class StabilityGate:
    """
    Bounded moving-average stability test.

    Not thread-safe: record() and is_stable() must be called from a single
    sequential context, one record() per processed frame.

    Usage:
        gate = StabilityGate()
        gate.record(DisplacementSample(dx, dy))
        if gate.is_stable():
            classify(frame)
    """

    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        threshold: float = STABILITY_THRESHOLD,
    ):
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window_size = window_size
        self.threshold = float(threshold)
        self._history: deque[DisplacementSample] = deque(maxlen=window_size)

    def record(self, sample: DisplacementSample) -> None:
        """Append a sample, evicting the oldest once the window is full."""
        self._history.append(DisplacementSample(float(sample[0]), float(sample[1])))

    def reset(self) -> None:
        """Clear the history (no valid previous-frame reference)."""
        self._history.clear()

    def mean(self) -> DisplacementSample | None:
        """Component-wise mean of the history, or None when empty."""
        if not self._history:
            return None
        count = len(self._history)
        sum_x = sum(sample.x for sample in self._history)
        sum_y = sum(sample.y for sample in self._history)
        return DisplacementSample(sum_x / count, sum_y / count)

    def motion(self) -> float | None:
        """L1 norm of the mean displacement, or None when empty."""
        average = self.mean()
        if average is None:
            return None
        return abs(average.x) + abs(average.y)

    def is_stable(self) -> bool:
        """True only for a full window whose mean L1 norm is below threshold."""
        if not self.is_full:
            return False
        return self.motion() < self.threshold  # type: ignore[operator]

    @property
    def is_full(self) -> bool:
        return len(self._history) == self.window_size

    @property
    def history(self) -> tuple[DisplacementSample, ...]:
        """Snapshot of recorded samples, oldest first."""
        return tuple(self._history)

    def __len__(self) -> int:
        return len(self._history)
