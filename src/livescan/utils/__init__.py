"""Utility functions for LiveScan."""

from .visualization import draw_label_panel, draw_scan_overlay, draw_static_result

__all__ = ["draw_label_panel", "draw_scan_overlay", "draw_static_result"]
