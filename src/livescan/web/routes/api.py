"""
REST API routes for LiveScan.

Provides JSON endpoints for:
- Current live scanner status
- Photo classification (upload)
- Stability window reset
- Configuration and camera listing
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from ...core.camera import available_devices
from ...core.errors import ClassificationError, ImageLoadError
from ...core.scanner import decode_image
from .stream import LiveState

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)


@bp.route("/status")
def status():
    """
    Get current live scanner status.

    Returns:
        JSON with the latest frame outcome and last classification
    """
    live_state: LiveState = current_app.config["LIVE_STATE"]
    outcome, result = live_state.snapshot()

    if outcome is None:
        return jsonify({
            "status": "no_data",
            "message": "No frames processed yet",
        })

    data = outcome.to_dict()
    data["last_result"] = result.to_dict() if result is not None else None
    return jsonify(data)


@bp.route("/classify", methods=["POST"])
def classify():
    """
    Classify an uploaded photo.

    Expects multipart form data with an "image" file field.

    Returns:
        JSON with classifications and the rendered label
    """
    classifier = current_app.config["classifier"]
    if classifier is None:
        return jsonify({"error": "Classification model not loaded"}), 503

    upload = request.files.get("image")
    if upload is None:
        return jsonify({"error": "No image provided"}), 400

    try:
        image = decode_image(upload.read())
    except ImageLoadError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = classifier.classify(image, source="static")
    except ClassificationError as e:
        logger.error(f"Upload classification failed: {e}")
        return jsonify({"error": str(e)}), 500

    logger.info(f"Classified upload {upload.filename!r} in {result.processing_time_ms:.1f}ms")
    return jsonify(result.to_dict())


@bp.route("/reset", methods=["POST"])
def reset():
    """Clear the live stability window and the last classification."""
    scanner = current_app.config["scanner"]
    if scanner is not None:
        with current_app.config["SCANNER_LOCK"]:
            scanner.invalidate()
    current_app.config["LIVE_STATE"].reset()
    return jsonify({"status": "ok"})


@bp.route("/config", methods=["GET"])
def get_config():
    """
    Get current configuration.

    Returns:
        JSON with a safe subset of the configuration
    """
    config = current_app.config["LIVESCAN_CONFIG"]

    return jsonify({
        "camera": {
            "source": config.get("camera.source"),
            "width": config.get("camera.width"),
            "height": config.get("camera.height"),
            "fps": config.get("camera.fps"),
        },
        "stability": config.get("stability", {}),
        "scanner": config.get("scanner", {}),
        "model": {
            "input_size": config.get("model.input_size"),
            "top_k": config.get("model.top_k"),
        },
    })


@bp.route("/cameras")
def list_cameras():
    """
    List available camera indices.

    Returns:
        JSON with list of available camera indices
    """
    available = available_devices()
    return jsonify({"cameras": available})
