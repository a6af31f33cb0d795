"""
Camera preview widget for LiveScan.

Displays live camera frames or a picked photo as a Kivy Image widget with
efficient texture updates.
"""

import logging

import cv2
import numpy as np
from kivy.clock import Clock
from kivy.graphics.texture import Texture
from kivy.uix.image import Image

logger = logging.getLogger(__name__)


class CameraPreview(Image):
    """
    Kivy Image widget for displaying BGR frames.

    Efficiently converts OpenCV BGR frames to Kivy textures.
    """

    def __init__(self, placeholder_text: str = "Camera Preview", **kwargs):
        super().__init__(**kwargs)
        self.placeholder_text = placeholder_text
        self.show_placeholder()

    def show_placeholder(self) -> None:
        """Show a dark placeholder texture (no frame available)."""
        placeholder = np.full((480, 640, 3), 50, dtype=np.uint8)
        text_size = cv2.getTextSize(self.placeholder_text, cv2.FONT_HERSHEY_SIMPLEX, 1.2, 2)[0]
        cv2.putText(
            placeholder,
            self.placeholder_text,
            ((640 - text_size[0]) // 2, 240),
            cv2.FONT_HERSHEY_SIMPLEX,
            1.2,
            (128, 128, 128),
            2,
        )
        self._update_texture(placeholder)

    def update_frame(self, frame: np.ndarray) -> None:
        """
        Update the preview with a new frame (safe from any thread).

        Args:
            frame: BGR numpy array.
        """
        if frame is None:
            return

        Clock.schedule_once(lambda dt: self._update_texture(frame), 0)

    def _update_texture(self, frame: np.ndarray) -> None:
        """
        Update the Kivy texture with a frame (must be called from main thread).

        Args:
            frame: BGR numpy array.
        """
        height, width = frame.shape[:2]

        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

        # Kivy textures are bottom-up
        frame_rgb = cv2.flip(frame_rgb, 0)

        if (
            self.texture is None
            or self.texture.width != width
            or self.texture.height != height
        ):
            self.texture = Texture.create(size=(width, height), colorfmt="rgb")

        self.texture.blit_buffer(frame_rgb.tobytes(), colorfmt="rgb", bufferfmt="ubyte")
        self.canvas.ask_update()

    @property
    def frame_size(self) -> tuple[int, int]:
        """Get current texture dimensions as (width, height)."""
        if self.texture is None:
            return (0, 0)
        return (self.texture.width, self.texture.height)
