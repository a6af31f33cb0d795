"""
OpenCV frame source for the live scanner.

Wraps cv2.VideoCapture for device indices, video files and stream URLs.
Alignment compares each frame with the one before it, so the source also
records every break in the frame sequence (reopen, failed read, video
rewind). Callers check consume_break() and drop the scanner reference.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Consumers give up after this many failed reads in a row, pausing between tries
MAX_READ_FAILURES = 30
READ_RETRY_DELAY = 0.05

CAPTURE_BACKENDS = {
    "CAP_ANY": cv2.CAP_ANY,
    "CAP_MSMF": cv2.CAP_MSMF,
    "CAP_DSHOW": cv2.CAP_DSHOW,
    "CAP_V4L2": cv2.CAP_V4L2,
    "CAP_AVFOUNDATION": cv2.CAP_AVFOUNDATION,
}


@dataclass
class CaptureSettings:
    """
    Capture parameters from the `camera` config section.

    Attributes:
        source: Device index, or path/URL of a video
        backend: Name from CAPTURE_BACKENDS, ignored for files and URLs
        width / height / fps: Requested device mode (VGA suits the scanner)
        buffer_size: Driver frame buffer; 1 keeps latency low
        loop_video: Rewind video files instead of ending the stream
    """

    source: int | str = 0
    backend: str = "CAP_ANY"
    width: int = 640
    height: int = 480
    fps: float = 30
    buffer_size: int = 1
    loop_video: bool = True

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CaptureSettings":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in config.items() if key in known})

    @property
    def is_device(self) -> bool:
        return isinstance(self.source, int)


class Camera:
    """
    Frame source feeding LiveScanner.

    Usage:
        camera = Camera(config["camera"])
        if camera.open():
            frame = camera.read()
            if camera.consume_break():
                scanner.invalidate()
            outcome = scanner.process_frame(frame)
        camera.release()
    """

    def __init__(self, config: dict[str, Any]):
        self.settings = CaptureSettings.from_config(config)
        self._cap: cv2.VideoCapture | None = None

        # The first frame after open() never continues an earlier sequence
        self._sequence_broken = True

        self.frames_read = 0
        self.consecutive_failures = 0

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def open(self) -> bool:
        """Start capturing. Returns False if the source cannot be opened."""
        if self.is_open:
            return True

        settings = self.settings
        if settings.is_device:
            backend = CAPTURE_BACKENDS.get(settings.backend, cv2.CAP_ANY)
            cap = cv2.VideoCapture(settings.source, backend)
        else:
            cap = cv2.VideoCapture(settings.source)

        if not cap.isOpened():
            cap.release()
            logger.error(f"Cannot open capture source {settings.source!r}")
            return False

        if settings.is_device:
            self._request_mode(cap)

        self._cap = cap
        self._sequence_broken = True
        self.consecutive_failures = 0
        logger.info(f"Capturing from {settings.source!r} at {self.frame_size[0]}x{self.frame_size[1]}")
        return True

    def _request_mode(self, cap: cv2.VideoCapture) -> None:
        """Ask the device for the configured mode; drivers may pick another."""
        settings = self.settings
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, settings.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, settings.height)
        cap.set(cv2.CAP_PROP_FPS, settings.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, settings.buffer_size)

        granted = (int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        if granted != (settings.width, settings.height):
            logger.warning(
                f"Device granted {granted[0]}x{granted[1]} "
                f"instead of {settings.width}x{settings.height}"
            )

    def read(self) -> np.ndarray | None:
        """
        Grab the next BGR frame.

        Returns:
            The frame, or None when the source is closed or the read failed.
            Either way the next frame starts a new sequence.
        """
        if self._cap is None:
            return None

        ok, frame = self._cap.read()
        if not ok and not self.settings.is_device and self.settings.loop_video:
            # End of file: start over, the jump back is a break in the sequence
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            self._sequence_broken = True
            ok, frame = self._cap.read()

        if not ok:
            self.consecutive_failures += 1
            self._sequence_broken = True
            logger.debug(f"Frame read failed ({self.consecutive_failures} in a row)")
            return None

        self.consecutive_failures = 0
        self.frames_read += 1
        return frame

    def consume_break(self) -> bool:
        """True once after each break in the frame sequence, then False."""
        broken = self._sequence_broken
        self._sequence_broken = False
        return broken

    @property
    def frame_size(self) -> tuple[int, int]:
        """(width, height) delivered by the source, or the requested size when closed."""
        if self._cap is None:
            return (self.settings.width, self.settings.height)
        return (
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Capture stopped after {self.frames_read} frames")
        self._sequence_broken = True


def available_devices(max_index: int = 5) -> list[int]:
    """Device indices below max_index that can be opened."""
    found = []
    for index in range(max_index):
        cap = cv2.VideoCapture(index)
        if cap.isOpened():
            found.append(index)
        cap.release()
    return found
