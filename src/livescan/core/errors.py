"""
Exception types raised by the LiveScan pipeline.

Library code raises these; the UI, worker and web layers catch, log and
display them.
"""


class LiveScanError(Exception):
    """Base class for all LiveScan errors."""


class AlignmentError(LiveScanError):
    """Frame-to-frame registration could not be computed."""


class ModelLoadError(LiveScanError):
    """Classification model or label file could not be loaded."""


class ClassificationError(LiveScanError):
    """Inference failed for a given image."""


class ImageLoadError(LiveScanError):
    """A still image could not be read or decoded."""
