"""
Video streaming routes for LiveScan.

Provides an MJPEG stream of the live scanner: every frame feeds the
stability gate, and the classification label is drawn over the video.
"""

import logging
import threading
import time
from typing import Generator

import cv2
from flask import Blueprint, Response, current_app, stream_with_context

from ...core.camera import MAX_READ_FAILURES, READ_RETRY_DELAY
from ...core.errors import AlignmentError, ClassificationError
from ...core.result import ClassificationResult
from ...core.scanner import FrameOutcome
from ...utils.visualization import draw_scan_overlay

logger = logging.getLogger(__name__)

bp = Blueprint("stream", __name__)


class LiveState:
    """Latest live outcome and classification of one app, read by the API."""

    def __init__(self):
        self._lock = threading.Lock()
        self.outcome: FrameOutcome | None = None
        self.result: ClassificationResult | None = None

    def update(self, outcome: FrameOutcome | None) -> None:
        if outcome is None:
            return
        with self._lock:
            self.outcome = outcome
            if outcome.result is not None:
                self.result = outcome.result

    def snapshot(self) -> tuple[FrameOutcome | None, ClassificationResult | None]:
        with self._lock:
            return self.outcome, self.result

    def reset(self) -> None:
        with self._lock:
            self.outcome = None
            self.result = None


def generate_scan_frames() -> Generator[bytes, None, None]:
    """
    Generator that yields MJPEG frames with the scanner overlay.

    Ends when the camera cannot be opened or stops delivering frames.

    Yields:
        MJPEG frame bytes
    """
    camera = current_app.config["camera"]
    scanner = current_app.config["scanner"]
    lock = current_app.config["SCANNER_LOCK"]
    live_state: LiveState = current_app.config["LIVE_STATE"]
    quality = current_app.config.get("STREAM_QUALITY", 85)
    max_fps = current_app.config.get("MAX_STREAM_FPS", 15)

    min_frame_time = 1.0 / max_fps

    if not camera.is_open:
        if not camera.open():
            logger.error("Failed to open camera for streaming")
            return

    while True:
        start_time = time.time()

        # One lock for read + process keeps frames in camera order across clients
        with lock:
            frame = camera.read()
            if frame is not None:
                # Frames were lost or the video rewound: align from scratch
                if camera.consume_break() and scanner is not None:
                    scanner.invalidate()

                outcome = None
                if scanner is not None:
                    try:
                        outcome = scanner.process_frame(frame)
                    except AlignmentError as e:
                        logger.warning(f"Alignment failed, restarting stability window: {e}")
                    except ClassificationError as e:
                        logger.error(f"Classification failed: {e}")

                live_state.update(outcome)
                output_frame = draw_scan_overlay(frame, outcome, live_state.result)
            failures = camera.consecutive_failures

        if frame is None:
            if failures >= MAX_READ_FAILURES:
                logger.error(f"Camera stopped delivering frames after {failures} failed reads")
                return
            time.sleep(READ_RETRY_DELAY)
            continue

        encode_params = [cv2.IMWRITE_JPEG_QUALITY, quality]
        _, buffer = cv2.imencode(".jpg", output_frame, encode_params)

        yield (
            b"--frame\r\n"
            b"Content-Type: image/jpeg\r\n\r\n" + buffer.tobytes() + b"\r\n"
        )

        # Rate limiting
        elapsed = time.time() - start_time
        if elapsed < min_frame_time:
            time.sleep(min_frame_time - elapsed)


@bp.route("/video_feed")
def video_feed() -> Response:
    """Video streaming route with scanner overlay."""
    return Response(
        stream_with_context(generate_scan_frames()),
        mimetype="multipart/x-mixed-replace; boundary=frame",
    )
