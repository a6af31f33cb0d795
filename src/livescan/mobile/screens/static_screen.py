"""
Static photo screen for LiveScan mobile app.

Lets the user pick a photo from the library, shows it and classifies it once.
"""

import logging
import threading
from pathlib import Path

from kivy.clock import Clock
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.filechooser import FileChooserListView
from kivy.uix.popup import Popup
from kivy.uix.screenmanager import Screen

from ...core.errors import LiveScanError
from ...core.result import CLASSIFYING, ClassificationResult
from ...core.scanner import Classifier, read_image
from ..request_tracker import LatestRequestTracker
from ..widgets.camera_preview import CameraPreview
from ..widgets.classification_label import ClassificationLabel

logger = logging.getLogger(__name__)

IMAGE_FILTERS = ["*.jpg", "*.jpeg", "*.png", "*.bmp", "*.webp", "*.JPG", "*.JPEG", "*.PNG"]


class StaticScreen(Screen):
    """
    Photo classification screen.

    Layout:
    ┌─────────────────────────────────────┐
    │  Classification:                    │
    │  (0.87): label                      │
    │  ┌───────────────────────────────┐  │
    │  │        PICKED PHOTO           │  │
    │  └───────────────────────────────┘  │
    │           [Choose photo]            │
    └─────────────────────────────────────┘
    """

    def __init__(self, classifier: Classifier | None, photo_dir: str, **kwargs):
        """
        Args:
            classifier: Image classifier; None when no model is loaded.
            photo_dir: Directory the photo picker opens in.
        """
        kwargs.setdefault("name", "static")
        super().__init__(**kwargs)

        self.classifier = classifier
        self.photo_dir = photo_dir
        self._popup: Popup | None = None
        self._requests = LatestRequestTracker()

        self._create_ui()

    def _create_ui(self):
        layout = BoxLayout(orientation="vertical", padding=[10, 10, 10, 10], spacing=10)

        self.classification_label = ClassificationLabel(size_hint=(1, None), height=140)
        self.classification_label.set_text("Choose a photo to classify.")
        layout.add_widget(self.classification_label)

        self.image_view = CameraPreview(
            placeholder_text="No photo selected",
            size_hint=(1, 1),
            fit_mode="contain",
        )
        layout.add_widget(self.image_view)

        choose_btn = Button(text="Choose photo", size_hint=(1, None), height=70, font_size="16sp")
        choose_btn.bind(on_press=self._on_choose_press)
        layout.add_widget(choose_btn)

        self.add_widget(layout)

    def _on_choose_press(self, instance):
        """Open the photo picker popup."""
        start_dir = self.photo_dir if Path(self.photo_dir).is_dir() else str(Path.home())

        content = BoxLayout(orientation="vertical", spacing=5)
        chooser = FileChooserListView(path=start_dir, filters=IMAGE_FILTERS)
        content.add_widget(chooser)

        buttons = BoxLayout(size_hint_y=None, height=60, spacing=10)
        cancel_btn = Button(text="Cancel")
        select_btn = Button(text="Select")
        buttons.add_widget(cancel_btn)
        buttons.add_widget(select_btn)
        content.add_widget(buttons)

        self._popup = Popup(title="Choose photo", content=content, size_hint=(0.95, 0.95))
        cancel_btn.bind(on_press=lambda *_: self._dismiss_popup())
        select_btn.bind(on_press=lambda *_: self._on_photo_selected(chooser.selection))
        chooser.bind(on_submit=lambda _chooser, selection, _touch: self._on_photo_selected(selection))
        self._popup.open()

    def _dismiss_popup(self) -> None:
        if self._popup is not None:
            self._popup.dismiss()
            self._popup = None

    def _on_photo_selected(self, selection: list[str]) -> None:
        self._dismiss_popup()
        if not selection:
            return
        self.classify_photo(selection[0])

    def classify_photo(self, path: str) -> None:
        """Show the photo and classify it in a background thread."""
        request_id = self._requests.begin()

        try:
            image = read_image(path)
        except LiveScanError as e:
            logger.error(f"Failed to load photo {path}: {e}")
            self.image_view.show_placeholder()
            self.classification_label.show_error(str(e))
            return

        self.image_view.update_frame(image)

        if self.classifier is None:
            self.classification_label.show_error("Model unavailable.")
            return

        self.classification_label.set_text(CLASSIFYING, state="idle")
        threading.Thread(
            target=self._classify_in_background,
            args=(image, path, request_id),
            name="StaticClassification",
            daemon=True,
        ).start()

    def _classify_in_background(self, image, path: str, request_id: int) -> None:
        try:
            result = self.classifier.classify(image, source="static")  # type: ignore[union-attr]
        except LiveScanError as e:
            logger.error(f"Classification failed for {path}: {e}")
            message = str(e)
            Clock.schedule_once(lambda dt: self._show_error(message, request_id), 0)
            return

        logger.info(f"Classified {path} in {result.processing_time_ms:.1f}ms")
        Clock.schedule_once(lambda dt: self._show_result(result, request_id), 0)

    def _show_result(self, result: ClassificationResult, request_id: int) -> None:
        if self._requests.is_current(request_id):
            self.classification_label.set_text(result.label_text(), state="idle")

    def _show_error(self, message: str, request_id: int) -> None:
        if self._requests.is_current(request_id):
            self.classification_label.show_error(message)
