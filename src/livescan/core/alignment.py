"""
Translational frame registration.

Estimates the (x, y) shift between two consecutive frames using OpenCV
phase correlation. Frames are converted to grayscale and optionally
downscaled before correlation; the shift is reported in full-resolution
pixels.
"""

import logging
from typing import Any

import cv2
import numpy as np

from .errors import AlignmentError
from .stability import DisplacementSample

logger = logging.getLogger(__name__)

MIN_FRAME_SIZE = 8


class FrameAligner:
    """
    Phase-correlation aligner producing DisplacementSample values.

    Usage:
        aligner = FrameAligner(config["alignment"])
        sample = aligner.align(previous_frame, current_frame)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize aligner with configuration.

        Args:
            config: Alignment configuration dictionary with keys:
                - downscale: float in (0, 1], resize factor applied before correlation
                - use_window: bool, apply a Hanning window to reduce edge effects
        """
        config = config or {}
        self.downscale = float(np.clip(config.get("downscale", 0.5), 0.1, 1.0))
        self.use_window = config.get("use_window", True)

        # Last correlation peak response, useful for diagnostics
        self.last_response = 0.0

        self._window: np.ndarray | None = None

    def align(self, previous: np.ndarray, current: np.ndarray) -> DisplacementSample:
        """
        Estimate translation of `current` relative to `previous`.

        Args:
            previous: Reference frame (BGR or grayscale)
            current: New frame, same shape as previous

        Returns:
            DisplacementSample in pixels

        Raises:
            AlignmentError: Frames are empty, too small, mismatched or
                correlation failed.
        """
        if previous is None or current is None or previous.size == 0 or current.size == 0:
            raise AlignmentError("Cannot align empty frames")
        if previous.shape != current.shape:
            raise AlignmentError(
                f"Frame shape mismatch: {previous.shape} vs {current.shape}"
            )

        height, width = previous.shape[:2]
        if height < MIN_FRAME_SIZE or width < MIN_FRAME_SIZE:
            raise AlignmentError(f"Frame too small to align: {width}x{height}")

        prev_gray = self._prepare(previous)
        curr_gray = self._prepare(current)
        height, width = prev_gray.shape[:2]

        try:
            if self.use_window:
                window = self._get_window(width, height)
                (dx, dy), response = cv2.phaseCorrelate(prev_gray, curr_gray, window)
            else:
                (dx, dy), response = cv2.phaseCorrelate(prev_gray, curr_gray)
        except cv2.error as e:
            raise AlignmentError(f"Phase correlation failed: {e}") from e

        if not (np.isfinite(dx) and np.isfinite(dy)):
            raise AlignmentError("Phase correlation returned a non-finite shift")

        self.last_response = float(response)

        # Back to full-resolution pixel units
        return DisplacementSample(float(dx) / self.downscale, float(dy) / self.downscale)

    def _prepare(self, frame: np.ndarray) -> np.ndarray:
        """Grayscale, downscale and convert to float32."""
        if frame.ndim == 3:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        else:
            gray = frame

        if self.downscale != 1.0:
            height, width = gray.shape[:2]
            size = (
                max(MIN_FRAME_SIZE, int(round(width * self.downscale))),
                max(MIN_FRAME_SIZE, int(round(height * self.downscale))),
            )
            gray = cv2.resize(gray, size, interpolation=cv2.INTER_AREA)

        return gray.astype(np.float32)

    def _get_window(self, width: int, height: int) -> np.ndarray:
        """Cached Hanning window matching the prepared frame size."""
        if self._window is None or self._window.shape != (height, width):
            self._window = cv2.createHanningWindow((width, height), cv2.CV_32F)
            logger.debug(f"Created {width}x{height} Hanning window")
        return self._window
