"""
Unit tests for the background ScanWorker.
"""

import threading

import numpy as np
import pytest

from livescan.core.errors import AlignmentError
from livescan.core.scanner import LiveScanner
from livescan.core.stability import WINDOW_SIZE, DisplacementSample
from livescan.mobile.scan_worker import ScanWorker

STILL = DisplacementSample(0.0, 0.0)


def tagged_frame(tag: int) -> np.ndarray:
    return np.full((4, 4, 3), tag, dtype=np.uint8)


class GatedScanner:
    """
    Scanner double whose first process_frame() blocks until released.

    Records how many process_frame() calls overlap and how many were in
    flight whenever invalidate() ran. Outcomes are the frame tags.
    """

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.active = 0
        self.max_active = 0
        self.active_at_invalidate = []
        self._calls = 0
        self._lock = threading.Lock()

    def process_frame(self, frame):
        with self._lock:
            self._calls += 1
            first = self._calls == 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        if first:
            self.entered.set()
            self.release.wait(timeout=5.0)
        with self._lock:
            self.active -= 1
        return int(frame[0, 0, 0])

    def invalidate(self):
        with self._lock:
            self.active_at_invalidate.append(self.active)


class TestScanWorker:
    """Tests for the threaded producer-consumer scan loop."""

    @pytest.fixture
    def scanner(self, make_aligner, fake_classifier):
        return LiveScanner(make_aligner(default=STILL), fake_classifier)

    def test_submit_before_start_is_rejected(self, scanner, textured_frame):
        worker = ScanWorker(scanner, on_outcome=lambda outcome: None)
        assert worker.submit_frame(textured_frame) is False

    def test_processes_frames_in_background(self, scanner, textured_frame):
        outcomes = []
        classified = threading.Event()

        def on_outcome(outcome):
            outcomes.append(outcome)
            if outcome.classified:
                classified.set()

        worker = ScanWorker(scanner, on_outcome=on_outcome, max_queue_size=64)
        worker.start()
        try:
            for _ in range(WINDOW_SIZE + 1):
                assert worker.submit_frame(textured_frame)
            assert classified.wait(timeout=5.0)
        finally:
            worker.stop()

        assert not worker.is_running
        assert outcomes[0].displacement is None
        assert outcomes[-1].result.top.identifier == "golden retriever"

    def test_alignment_errors_reported(self, make_aligner, fake_classifier, textured_frame):
        scanner = LiveScanner(make_aligner([AlignmentError("lost")]), fake_classifier)
        errors = []
        reported = threading.Event()

        def on_error(error):
            errors.append(error)
            reported.set()

        worker = ScanWorker(
            scanner, on_outcome=lambda outcome: None, on_error=on_error, max_queue_size=8
        )
        worker.start()
        try:
            # Reference frame, then a frame the aligner fails on
            worker.submit_frame(textured_frame)
            worker.submit_frame(textured_frame)
            assert reported.wait(timeout=5.0)
        finally:
            worker.stop()

        assert isinstance(errors[0], AlignmentError)

    def test_full_queue_drops_frames_and_resets(self, scanner, textured_frame):
        worker = ScanWorker(scanner, on_outcome=lambda outcome: None, max_queue_size=2)
        # Accept frames without a consumer thread
        worker._stop_event = threading.Event()

        assert worker.submit_frame(textured_frame)
        assert worker.submit_frame(textured_frame)
        assert worker.submit_frame(textured_frame)

        assert worker.frames_dropped == 2
        assert worker.queue_size == 2

    def test_reset_while_stopped_invalidates_directly(self, scanner, textured_frame):
        scanner.process_frame(textured_frame)
        worker = ScanWorker(scanner, on_outcome=lambda outcome: None)

        worker.request_reset()

        assert not scanner.has_reference

    def test_start_discards_previous_reference(self, scanner, textured_frame):
        scanner.process_frame(textured_frame)
        assert scanner.has_reference

        outcomes = []
        received = threading.Event()

        def on_outcome(outcome):
            outcomes.append(outcome)
            received.set()

        worker = ScanWorker(scanner, on_outcome=on_outcome, max_queue_size=8)
        worker.start()
        try:
            worker.submit_frame(textured_frame)
            assert received.wait(timeout=5.0)
        finally:
            worker.stop()

        # The first frame of the new session is a reference, not a comparison
        assert outcomes[0].displacement is None

    def test_restart_during_slow_frame_keeps_one_scanner_thread(self):
        scanner = GatedScanner()
        outcomes = []
        both_reported = threading.Event()

        def on_outcome(outcome):
            outcomes.append(outcome)
            if len(outcomes) >= 2:
                both_reported.set()

        worker = ScanWorker(scanner, on_outcome=on_outcome, max_queue_size=8)
        worker.start()
        old_thread = worker._worker_thread
        try:
            worker.submit_frame(tagged_frame(1))
            assert scanner.entered.wait(timeout=5.0)

            # The old thread is still inside process_frame() when the new run starts
            worker.stop(timeout=0.1)
            assert old_thread.is_alive()
            worker.start()
            worker.submit_frame(tagged_frame(2))
            worker.submit_frame(tagged_frame(3))

            scanner.release.set()
            assert both_reported.wait(timeout=5.0)
            old_thread.join(timeout=5.0)
        finally:
            scanner.release.set()
            worker.stop()

        assert not old_thread.is_alive()
        assert scanner.max_active == 1
        assert all(active == 0 for active in scanner.active_at_invalidate)
        # Frame 1 finished after its session was stopped, so it is not reported
        assert outcomes == [2, 3]
