"""Core components for LiveScan."""

from .alignment import FrameAligner
from .camera import Camera, CaptureSettings, available_devices
from .classifier import ImageClassifier
from .config import Config
from .errors import (
    AlignmentError,
    ClassificationError,
    ImageLoadError,
    LiveScanError,
    ModelLoadError,
)
from .result import Classification, ClassificationResult, format_classifications
from .scanner import FrameOutcome, LiveScanner, classify_image_file, create_scanner
from .stability import DisplacementSample, StabilityGate

__all__ = [
    "Config",
    "Camera",
    "CaptureSettings",
    "available_devices",
    "FrameAligner",
    "ImageClassifier",
    "LiveScanner",
    "FrameOutcome",
    "classify_image_file",
    "create_scanner",
    "StabilityGate",
    "DisplacementSample",
    "Classification",
    "ClassificationResult",
    "format_classifications",
    "LiveScanError",
    "AlignmentError",
    "ClassificationError",
    "ImageLoadError",
    "ModelLoadError",
]
