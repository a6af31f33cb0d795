"""Widget modules for LiveScan mobile UI."""

from .camera_preview import CameraPreview
from .classification_label import ClassificationLabel

__all__ = ["CameraPreview", "ClassificationLabel"]
