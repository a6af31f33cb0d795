"""
LiveScan Mobile - Cross-platform Kivy UI for image classification.

This module provides a Kivy-based user interface that works on:
- Desktop (Windows, macOS, Linux)
- Mobile (Android)

Screens:
- Live: camera preview, classification once the scene is stable
- Photo: pick an image from the library and classify it

The Kivy app is imported on first access, so the scan worker and camera
providers can be used without creating a window.
"""

__all__ = ["LiveScanApp"]


def __getattr__(name):
    if name == "LiveScanApp":
        from .app import LiveScanApp

        return LiveScanApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
