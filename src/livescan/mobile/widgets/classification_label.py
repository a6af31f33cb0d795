"""
Classification label widget for LiveScan.

Shows the rendered classification text on a semi-transparent panel, with a
border color reflecting the live stability state.
"""

from kivy.graphics import Color, RoundedRectangle
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.label import Label

from ...core.result import ClassificationResult, format_classifications

# Border colors (R, G, B, A) - normalized 0-1
STATE_COLORS = {
    "idle": (0.5, 0.5, 0.5, 1.0),  # Gray
    "moving": (1.0, 0.65, 0.0, 1.0),  # Orange
    "stable": (0.0, 0.8, 0.0, 1.0),  # Green
    "error": (0.9, 0.0, 0.0, 1.0),  # Red
}


class ClassificationLabel(BoxLayout):
    """
    Overlay panel with the classification text.

    Layout:
    ┌─────────────────────────┐
    │  Classification:        │
    │  (0.91): golden retriever│
    │  (0.05): labrador       │
    │  motion: 3.2px          │
    └─────────────────────────┘
    """

    def __init__(self, **kwargs):
        kwargs.setdefault("orientation", "vertical")
        kwargs.setdefault("size_hint", (None, None))
        kwargs.setdefault("size", (360, 140))
        kwargs.setdefault("padding", [15, 10, 15, 10])
        kwargs.setdefault("spacing", 4)
        super().__init__(**kwargs)

        self._state = "idle"

        self._text_label = Label(
            text=format_classifications([]),
            font_size="18sp",
            halign="left",
            valign="top",
            size_hint_y=0.8,
        )
        self._text_label.bind(size=self._text_label.setter("text_size"))

        self._motion_label = Label(
            text="",
            font_size="13sp",
            halign="left",
            valign="middle",
            color=(0.8, 0.8, 0.8, 1),
            size_hint_y=0.2,
        )
        self._motion_label.bind(size=self._motion_label.setter("text_size"))

        self.add_widget(self._text_label)
        self.add_widget(self._motion_label)

        self._draw_background()
        self.bind(pos=self._update_background, size=self._update_background)

    def _draw_background(self):
        """Draw semi-transparent background with a state-colored border."""
        with self.canvas.before:
            Color(*STATE_COLORS[self._state])
            self._border_rect = RoundedRectangle(
                pos=(self.pos[0] - 2, self.pos[1] - 2),
                size=(self.size[0] + 4, self.size[1] + 4),
                radius=[12],
            )
            Color(0, 0, 0, 0.7)
            self._bg_rect = RoundedRectangle(pos=self.pos, size=self.size, radius=[10])

    def _update_background(self, *args):
        self._bg_rect.pos = self.pos
        self._bg_rect.size = self.size
        self._border_rect.pos = (self.pos[0] - 2, self.pos[1] - 2)
        self._border_rect.size = (self.size[0] + 4, self.size[1] + 4)

    def _set_state(self, state: str) -> None:
        if state == self._state:
            return
        self._state = state
        self.canvas.before.clear()
        self._draw_background()

    @property
    def text(self) -> str:
        return self._text_label.text

    def set_text(self, text: str, state: str | None = None) -> None:
        """Show arbitrary text (e.g. "Classifying...")."""
        self._text_label.text = text
        if state is not None:
            self._set_state(state)

    def show_result(self, result: ClassificationResult) -> None:
        """Show a classification result."""
        self._text_label.text = result.label_text()

    def show_motion(self, stable: bool, motion: float | None) -> None:
        """Update the stability indicator."""
        self._set_state("stable" if stable else "moving")
        self._motion_label.text = f"motion: {motion:.1f}px" if motion is not None else ""

    def show_error(self, message: str) -> None:
        self._text_label.text = message
        self._motion_label.text = ""
        self._set_state("error")

    def reset(self) -> None:
        """Back to the initial "Nothing recognized." state."""
        self._text_label.text = format_classifications([])
        self._motion_label.text = ""
        self._set_state("idle")
