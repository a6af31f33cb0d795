"""
Flask application factory for LiveScan web interface.

Provides a web-based interface for:
- Live video streaming with stability-gated classification
- Photo upload classification
- Real-time status monitoring
"""

import atexit
import logging
import threading
from pathlib import Path

from flask import Flask, render_template

from ..core.camera import Camera
from ..core.classifier import ImageClassifier
from ..core.config import Config
from ..core.errors import ModelLoadError
from ..core.scanner import Classifier, create_scanner
from .routes.stream import LiveState

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None, classifier: Classifier | None = None) -> Flask:
    """
    Application factory for Flask app.

    Args:
        config: LiveScan configuration, or None to load defaults
        classifier: Classifier to use instead of loading config["model"]

    Returns:
        Configured Flask application
    """
    app_dir = Path(__file__).parent
    template_dir = app_dir / "templates"
    static_dir = app_dir / "static"

    app = Flask(
        __name__,
        template_folder=str(template_dir),
        static_folder=str(static_dir),
    )

    if config is None:
        config = Config()

    app.config["LIVESCAN_CONFIG"] = config

    if classifier is None:
        try:
            classifier = ImageClassifier(config["model"])
        except ModelLoadError as e:
            # The stream still works without a model; classification endpoints report 503
            logger.error(f"Classifier unavailable: {e}")

    camera = Camera(config["camera"])

    app.config["camera"] = camera
    app.config["classifier"] = classifier
    app.config["scanner"] = (
        create_scanner(config.as_dict, classifier) if classifier is not None else None
    )
    app.config["SCANNER_LOCK"] = threading.Lock()
    app.config["LIVE_STATE"] = LiveState()
    app.config["STREAM_QUALITY"] = config.get("web.stream_quality", 85)
    app.config["MAX_STREAM_FPS"] = config.get("web.max_stream_fps", 15)
    app.config["MAX_CONTENT_LENGTH"] = config.get("web.max_upload_mb", 16) * 1024 * 1024

    from .routes import api, stream

    app.register_blueprint(api.bp, url_prefix="/api")
    app.register_blueprint(stream.bp, url_prefix="/stream")

    @app.route("/")
    def index() -> str:
        """Main dashboard page."""
        return render_template(
            "index.html",
            version=config.get("app.version", "0.1.0"),
        )

    @app.route("/health")
    def health() -> dict:
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": config.get("app.version", "0.1.0"),
            "model_loaded": app.config["classifier"] is not None,
        }

    # Shared by every stream client, so released only at interpreter exit
    atexit.register(camera.release)

    logger.info("Flask app created")
    return app
