"""
Live scanner orchestrator.

Drives the per-frame pipeline of the live screen:
1. Keep the previous frame as alignment reference
2. Estimate frame-to-frame displacement
3. Feed the stability gate
4. Classify only while the gate reports a stationary scene

Also provides the one-shot still-image path used by the static screen.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import cv2
import numpy as np

from .errors import AlignmentError, ImageLoadError
from .result import ClassificationResult
from .stability import STABILITY_THRESHOLD, WINDOW_SIZE, DisplacementSample, StabilityGate

logger = logging.getLogger(__name__)


class Aligner(Protocol):
    def align(self, previous: np.ndarray, current: np.ndarray) -> DisplacementSample:
        ...


class Classifier(Protocol):
    def classify(self, image: np.ndarray, source: str = "live") -> ClassificationResult:
        ...


@dataclass
class FrameOutcome:
    """
    Result of processing one live frame.

    Attributes:
        frame_index: Sequence number of the frame in the session
        displacement: Estimated shift from the previous frame, None for a reference frame
        stable: Whether the stability gate reported a stationary scene
        motion: L1 norm of the mean displacement over the window so far
        result: Classification, present only when the classifier ran
    """

    frame_index: int
    displacement: DisplacementSample | None
    stable: bool
    motion: float | None = None
    result: ClassificationResult | None = None

    @property
    def classified(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "frame_index": self.frame_index,
            "displacement": (
                [round(self.displacement.x, 2), round(self.displacement.y, 2)]
                if self.displacement is not None
                else None
            ),
            "stable": self.stable,
            "motion": round(self.motion, 2) if self.motion is not None else None,
            "result": self.result.to_dict() if self.result is not None else None,
        }


class LiveScanner:
    """
    Stateful frame loop for the live scanner.

    Owns the previous-frame reference and a StabilityGate. Calls must come
    from one sequential context (camera worker thread).

    Usage:
        scanner = LiveScanner(FrameAligner(), ImageClassifier(cfg))
        outcome = scanner.process_frame(frame)
        if outcome.classified:
            show(outcome.result.label_text())
    """

    def __init__(
        self,
        aligner: Aligner,
        classifier: Classifier,
        gate: StabilityGate | None = None,
        config: dict[str, Any] | None = None,
    ):
        """
        Args:
            aligner: Frame registration estimator
            classifier: Image classifier invoked on stable frames
            gate: Stability gate; built from config["stability"] if omitted
            config: Full configuration dictionary (stability, scanner sections)
        """
        config = config or {}
        if gate is None:
            stability_config = config.get("stability", {})
            gate = StabilityGate(
                window_size=stability_config.get("window_size", WINDOW_SIZE),
                threshold=stability_config.get("threshold", STABILITY_THRESHOLD),
            )
        self.aligner = aligner
        self.classifier = classifier
        self.gate = gate

        # Frames to skip after a classification; 0 reclassifies every stable frame
        scanner_config = config.get("scanner", {})
        self.classify_cooldown_frames = int(scanner_config.get("classify_cooldown_frames", 0))

        self._previous: np.ndarray | None = None
        self._frame_index = 0
        self._last_classified_index: int | None = None

        self.frames_processed = 0
        self.classifications_run = 0

    def process_frame(self, frame: np.ndarray) -> FrameOutcome:
        """
        Process one camera frame.

        Args:
            frame: BGR image

        Returns:
            FrameOutcome for this frame

        Raises:
            AlignmentError: Registration failed; the frame becomes the new
                reference and the stability window is cleared.
            ClassificationError: The classifier failed on a stable frame.
        """
        index = self._frame_index
        self._frame_index += 1
        self.frames_processed += 1

        if self._previous is None:
            self._previous = frame
            self.gate.reset()
            logger.debug(f"Frame {index}: new alignment reference")
            return FrameOutcome(frame_index=index, displacement=None, stable=False)

        try:
            sample = self.aligner.align(self._previous, frame)
        except AlignmentError:
            self._previous = frame
            self.gate.reset()
            raise

        self._previous = frame
        self.gate.record(sample)

        stable = self.gate.is_stable()
        outcome = FrameOutcome(
            frame_index=index,
            displacement=sample,
            stable=stable,
            motion=self.gate.motion(),
        )

        if stable and self._cooldown_elapsed(index):
            outcome.result = self.classifier.classify(frame, source="live")
            self._last_classified_index = index
            self.classifications_run += 1

        return outcome

    def invalidate(self) -> None:
        """Drop the reference frame and clear the stability window."""
        self._previous = None
        self._last_classified_index = None
        self.gate.reset()
        logger.debug("Scanner reference invalidated")

    def _cooldown_elapsed(self, index: int) -> bool:
        if self.classify_cooldown_frames <= 0 or self._last_classified_index is None:
            return True
        return index - self._last_classified_index > self.classify_cooldown_frames

    @property
    def has_reference(self) -> bool:
        return self._previous is not None


def read_image(path: str | Path) -> np.ndarray:
    """
    Read an image file as BGR.

    Raises:
        ImageLoadError: File missing or not a decodable image.
    """
    image_path = Path(path)
    if not image_path.is_file():
        raise ImageLoadError(f"Image not found: {image_path}")
    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None:
        raise ImageLoadError(f"Unable to decode image: {image_path}")
    return image


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an in-memory encoded image (JPEG, PNG, ...) as BGR.

    Raises:
        ImageLoadError: Empty buffer or undecodable data.
    """
    if not data:
        raise ImageLoadError("Empty image data")
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ImageLoadError("Unable to decode image data")
    return image


def classify_image_file(path: str | Path, classifier: Classifier) -> ClassificationResult:
    """Classify a still photo (static screen)."""
    image = read_image(path)
    logger.info(f"Classifying photo: {path} ({image.shape[1]}x{image.shape[0]})")
    return classifier.classify(image, source="static")


def create_scanner(
    config: dict[str, Any], classifier: Classifier | None = None
) -> LiveScanner:
    """
    Build a LiveScanner from the full configuration dictionary.

    Args:
        config: Configuration with alignment, stability, scanner and model sections
        classifier: Existing classifier to share (e.g. with the static screen)

    Raises:
        ModelLoadError: No classifier given and the model could not be loaded.
    """
    from .alignment import FrameAligner
    from .classifier import ImageClassifier

    if classifier is None:
        classifier = ImageClassifier(config.get("model", {}))
    aligner = FrameAligner(config.get("alignment", {}))
    return LiveScanner(aligner, classifier, config=config)
