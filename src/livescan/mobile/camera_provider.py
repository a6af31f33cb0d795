"""
Cross-platform camera provider abstraction.

Provides a unified interface for camera capture across platforms:
- Desktop (Windows, macOS, Linux): OpenCV VideoCapture
- Android: Native camera via pyjnius (not implemented; reports unavailable)
"""

import logging
from typing import Protocol, runtime_checkable

import numpy as np

from ..core.camera import Camera

logger = logging.getLogger(__name__)


@runtime_checkable
class CameraProvider(Protocol):
    """Protocol for cross-platform camera providers."""

    def open(self) -> bool:
        """Open the camera. Returns True on success."""
        ...

    def read(self) -> np.ndarray | None:
        """Read a frame. Returns BGR numpy array or None on failure."""
        ...

    def release(self) -> None:
        """Release the camera resources."""
        ...

    def consume_break(self) -> bool:
        """True once after frames were lost, so the scan must restart."""
        ...

    @property
    def is_open(self) -> bool:
        """Check if camera is currently open."""
        ...


class OpenCVCameraProvider:
    """Desktop camera provider backed by the core OpenCV Camera."""

    def __init__(self, config: dict):
        self._camera = Camera(config)

    def open(self) -> bool:
        return self._camera.open()

    def read(self) -> np.ndarray | None:
        # Never reopen implicitly: the live screen owns the open/release lifecycle
        if not self._camera.is_open:
            return None
        return self._camera.read()

    def release(self) -> None:
        self._camera.release()

    def consume_break(self) -> bool:
        return self._camera.consume_break()

    @property
    def is_open(self) -> bool:
        return self._camera.is_open


class AndroidCameraProvider:
    """
    Android camera provider using the native Camera2 API via pyjnius.

    Camera2 bindings are not wired up; open() reports failure so the app
    shows the "camera unavailable" state instead of crashing.
    """

    def __init__(self, config: dict):
        self.config = config
        self._is_open = False

    def open(self) -> bool:
        logger.warning("AndroidCameraProvider: native camera capture is not available")
        return False

    def read(self) -> np.ndarray | None:
        return None

    def release(self) -> None:
        self._is_open = False

    def consume_break(self) -> bool:
        return False

    @property
    def is_open(self) -> bool:
        return self._is_open


def get_camera_provider(config: dict, platform_type: str = "desktop") -> CameraProvider:
    """
    Factory function to get the appropriate camera provider for the current platform.

    Args:
        config: Camera configuration dictionary.
        platform_type: Platform type ("desktop", "android").

    Returns:
        CameraProvider instance appropriate for the platform.
    """
    if platform_type == "android" and not config.get("force_opencv", False):
        logger.info("Using AndroidCameraProvider")
        return AndroidCameraProvider(config)

    logger.info("Using OpenCVCameraProvider")
    return OpenCVCameraProvider(config)
