"""
Threaded scan worker for LiveScan.

Runs LiveScanner.process_frame() in a background thread so alignment and
classification never block the UI thread. Every scanner call is made under
one lock, which keeps stability-window updates in frame order even when a
thread from an earlier run is still finishing a slow frame.
"""

import logging
import queue
import threading
from typing import Callable

import numpy as np

from ..core.errors import AlignmentError, LiveScanError
from ..core.scanner import FrameOutcome, LiveScanner

logger = logging.getLogger(__name__)

_RESET = object()


class ScanWorker:
    """
    Background worker feeding camera frames to a LiveScanner.

    Uses a producer-consumer pattern:
    - Main thread submits frames to input queue
    - Worker thread processes frames and calls result callbacks

    Each start() creates a fresh queue and stop event for that run. A thread
    that outlives stop() only finishes its current frame, then exits without
    reporting it.
    """

    def __init__(
        self,
        scanner: LiveScanner,
        on_outcome: Callable[[FrameOutcome], None],
        on_error: Callable[[LiveScanError], None] | None = None,
        max_queue_size: int = 2,
    ):
        """
        Initialize the scan worker.

        Args:
            scanner: LiveScanner owned by this worker.
            on_outcome: Callback called with each FrameOutcome.
            on_error: Callback called with classification/alignment errors.
            max_queue_size: Maximum frames to queue (oldest dropped if full).
        """
        self.scanner = scanner
        self.on_outcome = on_outcome
        self.on_error = on_error
        self.max_queue_size = max_queue_size

        self._scanner_lock = threading.Lock()
        self._frame_queue = self._new_queue()
        self._stop_event: threading.Event | None = None
        self._worker_thread: threading.Thread | None = None

        # Statistics
        self.frames_processed = 0
        self.frames_dropped = 0

    def _new_queue(self) -> queue.Queue:
        # Room for a reset marker plus the newest frame
        return queue.Queue(maxsize=max(2, self.max_queue_size))

    def start(self) -> None:
        """Start a worker thread for a new scanning session."""
        if self.is_running:
            logger.warning("ScanWorker already running")
            return

        self._frame_queue = self._new_queue()
        # The new session never aligns against a frame from the previous one
        self._frame_queue.put_nowait(_RESET)
        self._stop_event = threading.Event()

        self._worker_thread = threading.Thread(
            target=self._worker_loop,
            args=(self._frame_queue, self._stop_event),
            name="ScanWorker",
            daemon=True,
        )
        self._worker_thread.start()
        logger.info("ScanWorker started")

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the worker thread, waiting up to `timeout` seconds for it."""
        if not self.is_running:
            return

        stop_event = self._stop_event
        thread = self._worker_thread
        self._stop_event = None
        self._worker_thread = None

        stop_event.set()  # type: ignore[union-attr]
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("ScanWorker thread busy with a frame; it exits once done")

        self.frames_dropped += self._drain()

        logger.info(
            f"ScanWorker stopped: "
            f"processed={self.frames_processed}, "
            f"dropped={self.frames_dropped}"
        )

    def submit_frame(self, frame: np.ndarray) -> bool:
        """
        Submit a frame for scanning.

        If the queue is full, queued frames are dropped (non-blocking).
        Dropped frames break frame-to-frame continuity, so the scanner
        reference is invalidated before the new frame is processed.

        Args:
            frame: BGR numpy array.

        Returns:
            True if frame was queued, False if dropped.
        """
        if not self.is_running:
            return False

        try:
            self._frame_queue.put_nowait(frame.copy())
            return True
        except queue.Full:
            self.frames_dropped += self._drain()
            try:
                self._frame_queue.put_nowait(_RESET)
                self._frame_queue.put_nowait(frame.copy())
                return True
            except queue.Full:
                return False

    def request_reset(self) -> None:
        """Invalidate the scanner reference, in frame order with queued frames."""
        if not self.is_running:
            with self._scanner_lock:
                self.scanner.invalidate()
            return
        self.frames_dropped += self._drain()
        try:
            self._frame_queue.put_nowait(_RESET)
        except queue.Full:
            pass

    def _worker_loop(self, frames: queue.Queue, stop_event: threading.Event) -> None:
        """Main worker loop - processes frames from this run's queue."""
        logger.debug("ScanWorker loop started")

        while not stop_event.is_set():
            try:
                item = frames.get(timeout=0.1)
            except queue.Empty:
                continue

            outcome = None
            error: LiveScanError | None = None
            with self._scanner_lock:
                if stop_event.is_set():
                    break
                if item is _RESET:
                    self.scanner.invalidate()
                    continue
                try:
                    outcome = self.scanner.process_frame(item)
                except AlignmentError as e:
                    logger.warning(f"Alignment failed, restarting stability window: {e}")
                    error = e
                except LiveScanError as e:
                    logger.error(f"Scan error: {e}")
                    error = e

            # Results finished after stop() belong to a closed session
            if stop_event.is_set():
                break

            if error is not None:
                self._report_error(error)
                continue

            self.frames_processed += 1
            if self.on_outcome is not None:
                self.on_outcome(outcome)  # type: ignore[arg-type]

        logger.debug("ScanWorker loop exited")

    def _report_error(self, error: LiveScanError) -> None:
        if self.on_error is not None:
            self.on_error(error)

    def _drain(self) -> int:
        """Discard queued items; returns the number of frames discarded."""
        dropped = 0
        while True:
            try:
                item = self._frame_queue.get_nowait()
            except queue.Empty:
                return dropped
            if item is not _RESET:
                dropped += 1

    @property
    def is_running(self) -> bool:
        """Check if worker is running."""
        return self._stop_event is not None

    @property
    def queue_size(self) -> int:
        """Get current queue size."""
        return self._frame_queue.qsize()
