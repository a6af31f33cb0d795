"""
Unit tests for photo classification request ordering.
"""

from livescan.mobile.request_tracker import LatestRequestTracker


class TestLatestRequestTracker:
    """Tests for dropping results of superseded photo picks."""

    def test_single_request_is_current(self):
        tracker = LatestRequestTracker()
        request_id = tracker.begin()
        assert tracker.is_current(request_id)

    def test_slow_first_result_is_stale(self):
        """A second pick arrives while the first photo is still classifying."""
        tracker = LatestRequestTracker()
        first = tracker.begin()
        second = tracker.begin()

        # The second result comes back first, then the slow first one
        assert tracker.is_current(second)
        assert not tracker.is_current(first)

    def test_ids_increase(self):
        tracker = LatestRequestTracker()
        ids = [tracker.begin() for _ in range(3)]
        assert ids == [1, 2, 3]
        assert tracker.latest == 3
