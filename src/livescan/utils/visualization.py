"""
Visualization utilities for LiveScan.

Helper functions for drawing the classification label, the stability
indicator and motion history onto camera frames.
"""

import cv2
import numpy as np

from ..core.result import ClassificationResult, format_classifications
from ..core.scanner import FrameOutcome

STABLE_COLOR = (0, 200, 0)
MOVING_COLOR = (0, 165, 255)
NO_REFERENCE_COLOR = (128, 128, 128)


def stability_color(outcome: FrameOutcome | None) -> tuple[int, int, int]:
    """
    BGR color for the stability indicator.

    Args:
        outcome: Latest frame outcome, or None before the first frame

    Returns:
        BGR color tuple
    """
    if outcome is None or outcome.displacement is None:
        return NO_REFERENCE_COLOR
    return STABLE_COLOR if outcome.stable else MOVING_COLOR


def draw_label_panel(
    frame: np.ndarray,
    text: str,
    origin: tuple[int, int] = (10, 10),
    color: tuple[int, int, int] = (255, 255, 255),
    font_scale: float = 0.6,
) -> np.ndarray:
    """
    Draw multi-line text on a filled black panel (in place).

    Returns:
        The same frame, for chaining
    """
    lines = text.split("\n")
    padding = 8
    line_height = int(28 * font_scale) + 6

    widths = [
        cv2.getTextSize(line, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)[0][0]
        for line in lines
    ]
    x, y = origin
    panel_w = max(widths) + padding * 2
    panel_h = line_height * len(lines) + padding

    cv2.rectangle(frame, (x, y), (x + panel_w, y + panel_h), (0, 0, 0), -1)
    cv2.rectangle(frame, (x, y), (x + panel_w, y + panel_h), color, 1)

    for i, line in enumerate(lines):
        cv2.putText(
            frame,
            line,
            (x + padding, y + line_height * (i + 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            1,
            cv2.LINE_AA,
        )
    return frame


def draw_scan_overlay(
    frame: np.ndarray,
    outcome: FrameOutcome | None,
    result: ClassificationResult | None,
    show_fps: float | None = None,
    font_scale: float = 0.6,
) -> np.ndarray:
    """
    Draw live scanner overlay on frame.

    Args:
        frame: BGR image
        outcome: Latest FrameOutcome (stability and motion)
        result: Most recent classification, kept across frames
        show_fps: Optional FPS to display
        font_scale: Text scale

    Returns:
        Annotated copy of the frame
    """
    annotated = frame.copy()
    height, width = annotated.shape[:2]

    label = result.label_text() if result is not None else format_classifications([])
    draw_label_panel(annotated, label, (10, 10), font_scale=font_scale)

    # Stability indicator (bottom-left)
    color = stability_color(outcome)
    if outcome is None or outcome.displacement is None:
        status = "NO REFERENCE"
    elif outcome.stable:
        status = "STABLE"
    else:
        status = "MOVING"
    if outcome is not None and outcome.motion is not None:
        status += f"  motion={outcome.motion:.1f}px"

    cv2.circle(annotated, (20, height - 25), 8, color, -1)
    cv2.putText(
        annotated,
        status,
        (36, height - 19),
        cv2.FONT_HERSHEY_SIMPLEX,
        font_scale * 0.8,
        color,
        1,
        cv2.LINE_AA,
    )

    if show_fps is not None:
        cv2.putText(
            annotated,
            f"{show_fps:.1f} FPS",
            (width - 100, height - 20),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            (255, 255, 255),
            1,
        )

    return annotated


def draw_static_result(
    image: np.ndarray, result: ClassificationResult, max_side: int = 960
) -> np.ndarray:
    """
    Resize a picked photo for display and draw its classification label.

    Args:
        image: BGR photo
        result: Classification of the photo
        max_side: Longest side of the output image

    Returns:
        Annotated BGR image
    """
    height, width = image.shape[:2]
    scale = min(1.0, max_side / max(height, width))
    if scale < 1.0:
        image = cv2.resize(image, (int(width * scale), int(height * scale)), interpolation=cv2.INTER_AREA)
    else:
        image = image.copy()
    return draw_label_panel(image, result.label_text(), (10, 10))
