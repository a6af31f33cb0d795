"""Screen modules for LiveScan mobile UI."""

from .live_screen import LiveScreen
from .static_screen import StaticScreen

__all__ = ["LiveScreen", "StaticScreen"]
