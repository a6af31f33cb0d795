"""
Live scanner screen for LiveScan mobile app.

Camera preview with a classification label. Frames go to a ScanWorker;
classification only runs once the scene is stable.
"""

import logging

from kivy.clock import Clock
from kivy.uix.button import Button
from kivy.uix.floatlayout import FloatLayout
from kivy.uix.screenmanager import Screen

from ...core.errors import AlignmentError, LiveScanError
from ...core.scanner import FrameOutcome
from ..camera_provider import CameraProvider
from ..scan_worker import ScanWorker
from ..widgets.camera_preview import CameraPreview
from ..widgets.classification_label import ClassificationLabel

logger = logging.getLogger(__name__)


class LiveScreen(Screen):
    """
    Live camera screen.

    Layout:
    ┌─────────────────────────────────────┐
    │  LIVE CAMERA FEED (full screen)     │
    │  ┌──────────────────────┐           │
    │  │ Classification:      │           │
    │  │ (0.91): label        │           │
    │  └──────────────────────┘           │
    │                          [Reset]    │
    └─────────────────────────────────────┘

    The camera runs only while the screen is shown.
    """

    def __init__(
        self,
        camera_provider: CameraProvider,
        scan_worker: ScanWorker | None,
        capture_fps: float = 30.0,
        **kwargs,
    ):
        """
        Args:
            camera_provider: Camera provider instance.
            scan_worker: Worker owning the LiveScanner; None when no model is loaded.
            capture_fps: Frame polling rate.
        """
        kwargs.setdefault("name", "live")
        super().__init__(**kwargs)

        self.camera_provider = camera_provider
        self.scan_worker = scan_worker
        self.capture_fps = capture_fps

        self._capture_event = None

        if self.scan_worker is not None:
            self.scan_worker.on_outcome = self._on_outcome
            self.scan_worker.on_error = self._on_error

        self._create_ui()

    def _create_ui(self):
        layout = FloatLayout()

        self.camera_preview = CameraPreview(
            size_hint=(1, 1),
            pos_hint={"center_x": 0.5, "center_y": 0.5},
            fit_mode="contain",
        )
        layout.add_widget(self.camera_preview)

        self.classification_label = ClassificationLabel(pos_hint={"x": 0.02, "top": 0.98})
        layout.add_widget(self.classification_label)

        reset_btn = Button(
            text="Reset",
            size_hint=(None, None),
            size=(110, 60),
            font_size="14sp",
            pos_hint={"right": 0.98, "y": 0.02},
        )
        reset_btn.bind(on_press=self._on_reset_press)
        layout.add_widget(reset_btn)

        self.add_widget(layout)

    def on_enter(self, *args):
        """Start camera and scanning when the screen becomes visible."""
        if self.scan_worker is None:
            self.classification_label.show_error("Model unavailable.")
            return

        if not self.camera_provider.open():
            logger.error("Failed to open camera")
            self.classification_label.show_error("Camera unavailable.")
            return

        self.classification_label.reset()
        self.scan_worker.start()
        self._capture_event = Clock.schedule_interval(self._capture_frame, 1.0 / self.capture_fps)
        logger.info("Live scanning started")

    def on_leave(self, *args):
        """Stop camera and scanning when the screen is hidden."""
        self.stop()

    def stop(self) -> None:
        if self._capture_event is not None:
            self._capture_event.cancel()
            self._capture_event = None
        if self.scan_worker is not None:
            self.scan_worker.stop()
        self.camera_provider.release()
        self.camera_preview.show_placeholder()

    def _capture_frame(self, dt):
        """Read a camera frame, show it and queue it for scanning."""
        frame = self.camera_provider.read()
        if frame is None:
            return

        if self.camera_provider.consume_break():
            self.scan_worker.request_reset()  # type: ignore[union-attr]
        self.scan_worker.submit_frame(frame)  # type: ignore[union-attr]
        self.camera_preview.update_frame(frame)

    def _on_reset_press(self, instance):
        if self.scan_worker is not None:
            self.scan_worker.request_reset()
        self.classification_label.reset()
        logger.info("Stability window reset from UI")

    # Worker-thread callbacks: marshal onto the main thread

    def _on_outcome(self, outcome: FrameOutcome) -> None:
        Clock.schedule_once(lambda dt: self._update_ui(outcome), 0)

    def _on_error(self, error: LiveScanError) -> None:
        if isinstance(error, AlignmentError):
            return
        Clock.schedule_once(lambda dt: self.classification_label.show_error(str(error)), 0)

    def _update_ui(self, outcome: FrameOutcome) -> None:
        if outcome.displacement is not None:
            self.classification_label.show_motion(outcome.stable, outcome.motion)
        if outcome.result is not None:
            self.classification_label.show_result(outcome.result)
