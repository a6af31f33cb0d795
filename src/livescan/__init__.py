"""
LiveScan - Camera and photo image classification

Classifies live camera frames, gated by a motion-stability heuristic, or
photos picked from the library, and renders the top labels.
"""

__version__ = "0.1.0"
__author__ = "LiveScan Team"

from .core.scanner import LiveScanner
from .core.stability import DisplacementSample, StabilityGate

__all__ = ["LiveScanner", "StabilityGate", "DisplacementSample", "__version__"]
