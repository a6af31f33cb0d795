"""
LiveScan Kivy Application - Cross-platform image classification.

Main entry point for the Kivy-based mobile/desktop application with two
screens: live camera scanning and photo classification.
"""

import logging
import os
import platform as sys_platform
from pathlib import Path

# Prevent Kivy from consuming command-line arguments
os.environ["KIVY_NO_ARGS"] = "1"

from kivy.app import App
from kivy.core.window import Window
from kivy.logger import Logger
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.screenmanager import NoTransition, ScreenManager
from kivy.uix.togglebutton import ToggleButton

from ..core.classifier import ImageClassifier
from ..core.config import Config
from ..core.errors import ModelLoadError
from ..core.scanner import create_scanner
from .camera_provider import get_camera_provider
from .scan_worker import ScanWorker
from .screens.live_screen import LiveScreen
from .screens.static_screen import StaticScreen

logger = logging.getLogger(__name__)


class LiveScanApp(App):
    """
    Main LiveScan Kivy application.

    Coordinates:
    - Camera capture (via CameraProvider)
    - Stability-gated scanning (via ScanWorker)
    - Photo classification (via StaticScreen)
    """

    def __init__(self, app_config: Config | None = None, **kwargs):
        """
        Initialize the LiveScan app.

        Args:
            app_config: Optional Config object. If not provided, loads from default location.
        """
        super().__init__(**kwargs)

        # app_config avoids clashing with Kivy's own App.config
        if app_config is None:
            app_config = Config()
        self.app_config = app_config

        self.platform_type = self._detect_platform()

        self.camera_provider = None
        self.classifier = None
        self.scan_worker = None
        self.screen_manager = None

        Logger.info(f"LiveScan: Initialized on {sys_platform.system()} ({self.platform_type})")

    def _detect_platform(self) -> str:
        """Detect current platform type."""
        if "ANDROID_ARGUMENT" in os.environ or "ANDROID_PRIVATE" in os.environ:
            return "android"
        return "desktop"

    def _get_photo_directory(self) -> str:
        """Get platform-appropriate photo library directory."""
        configured = self.app_config.get("mobile.photo_dir")
        if configured:
            return str(Path(configured).expanduser())
        if self.platform_type == "android":
            return "/sdcard/DCIM/"
        return str(Path.home() / "Pictures")

    def _request_permissions(self) -> None:
        """Request camera and photo library access on Android."""
        if self.platform_type != "android":
            return
        from android.permissions import Permission, request_permissions  # type: ignore

        request_permissions([Permission.CAMERA, Permission.READ_EXTERNAL_STORAGE])

    def build(self):
        """Build the application UI."""
        if self.platform_type == "desktop":
            Window.size = (900, 700)
        self.title = "LiveScan"

        self._request_permissions()

        try:
            self.classifier = ImageClassifier(self.app_config["model"])
        except ModelLoadError as e:
            Logger.error(f"LiveScan: Classifier unavailable: {e}")
            self.classifier = None

        camera_config = self.app_config["camera"]
        self.camera_provider = get_camera_provider(camera_config, self.platform_type)
        Logger.info(f"LiveScan: Camera provider initialized ({type(self.camera_provider).__name__})")

        if self.classifier is not None:
            scanner = create_scanner(self.app_config.as_dict, self.classifier)
            self.scan_worker = ScanWorker(scanner=scanner, on_outcome=lambda outcome: None)

        self.screen_manager = ScreenManager(transition=NoTransition())
        self.screen_manager.add_widget(
            LiveScreen(
                camera_provider=self.camera_provider,
                scan_worker=self.scan_worker,
                capture_fps=camera_config.get("fps", 30),
            )
        )
        self.screen_manager.add_widget(
            StaticScreen(classifier=self.classifier, photo_dir=self._get_photo_directory())
        )

        root = BoxLayout(orientation="vertical")
        root.add_widget(self.screen_manager)
        root.add_widget(self._create_tab_bar())
        return root

    def _create_tab_bar(self) -> BoxLayout:
        """Bottom tab bar switching between the two screens."""
        tab_bar = BoxLayout(orientation="horizontal", size_hint=(1, None), height=70)
        for name, text in (("live", "Live"), ("static", "Photo")):
            tab = ToggleButton(
                text=text,
                group="screens",
                state="down" if name == "live" else "normal",
                allow_no_selection=False,
                font_size="16sp",
            )
            tab.bind(on_press=lambda _btn, screen=name: self._switch_screen(screen))
            tab_bar.add_widget(tab)
        return tab_bar

    def _switch_screen(self, name: str) -> None:
        if self.screen_manager is not None and self.screen_manager.current != name:
            Logger.info(f"LiveScan: Switching to {name} screen")
            self.screen_manager.current = name

    def on_pause(self):
        """Release the camera while backgrounded on mobile."""
        if self.screen_manager is not None and self.screen_manager.current == "live":
            self.screen_manager.current_screen.stop()
        return True

    def on_resume(self):
        if self.screen_manager is not None and self.screen_manager.current == "live":
            self.screen_manager.current_screen.on_enter()

    def on_stop(self):
        """Called when the application stops."""
        Logger.info("LiveScan: Application stopping")
        if self.screen_manager is not None:
            live_screen = self.screen_manager.get_screen("live")
            live_screen.stop()
        Logger.info("LiveScan: Application stopped")


def run_mobile_app(config: Config | None = None):
    """
    Run the LiveScan mobile/desktop Kivy application.

    Args:
        config: Optional Config object.
    """
    app = LiveScanApp(app_config=config)
    app.run()
