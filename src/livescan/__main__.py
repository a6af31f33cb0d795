"""
LiveScan CLI entry point.

Usage:
    python -m livescan                    # Live scanner (OpenCV window)
    python -m livescan --image photo.jpg  # Classify a single photo
    python -m livescan --web              # Start web server
    python -m livescan --mobile           # Start Kivy app
    python -m livescan --help             # Show help
"""

import argparse
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path

import cv2
import numpy as np

from .core.camera import MAX_READ_FAILURES, READ_RETRY_DELAY, Camera
from .core.classifier import ImageClassifier
from .core.config import Config
from .core.errors import AlignmentError, ClassificationError, LiveScanError
from .core.result import ClassificationResult
from .core.scanner import FrameOutcome, LiveScanner, create_scanner, read_image
from .utils.visualization import draw_scan_overlay, draw_static_result


def setup_logging(config: Config) -> None:
    """Configure logging based on config."""
    log_config = config["logging"]
    level = getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_file = log_config.get("file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=log_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        handlers=handlers,
    )


def save_snapshot(frame: np.ndarray, config: Config, label: str = "scan") -> str:
    """
    Save a snapshot to disk.

    Args:
        frame: Frame to save
        config: Configuration
        label: Tag inserted in the filename (top classification)

    Returns:
        Path to saved file
    """
    snap_config = config["snapshots"]
    snap_dir = Path(snap_config.get("directory", "snapshots"))
    snap_dir.mkdir(parents=True, exist_ok=True)

    filename_format = snap_config.get("filename_format", "%Y%m%d_%H%M%S_{label}.jpg")
    safe_label = "".join(ch if ch.isalnum() else "_" for ch in label.lower())
    filename = datetime.now().strftime(filename_format).format(label=safe_label)

    filepath = snap_dir / filename
    cv2.imwrite(str(filepath), frame)
    return str(filepath)


def scan_frame(scanner: LiveScanner, frame: np.ndarray) -> FrameOutcome | None:
    """
    Run one live frame through the scanner.

    Returns:
        The outcome, or None when alignment or classification failed, so the
        overlay never shows the previous frame's motion as current.
    """
    logger = logging.getLogger(__name__)
    try:
        return scanner.process_frame(frame)
    except AlignmentError as e:
        logger.warning(f"Alignment failed, restarting stability window: {e}")
    except ClassificationError as e:
        logger.error(f"Classification failed: {e}")
    return None


def run_live_scanner(config: Config) -> None:
    """
    Run live scanner mode with OpenCV window.

    Keyboard controls:
        q - Quit
        s - Save snapshot
        r - Reset stability window
        space - Pause/Resume
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting live scanner...")

    try:
        scanner = create_scanner(config.as_dict)
    except LiveScanError as e:
        logger.error(f"Failed to initialize scanner: {e}")
        sys.exit(1)

    camera = Camera(config["camera"])
    if not camera.open():
        logger.error("Failed to open camera. Check connection and try again.")
        sys.exit(1)

    paused = False
    outcome: FrameOutcome | None = None
    last_result: ClassificationResult | None = None

    fps_counter = 0
    fps_time = time.time()
    current_fps = 0.0

    window_name = "LiveScan"
    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
    font_scale = config.get("visualization.font_scale", 0.6)

    logger.info("Controls: q=quit, s=snapshot, r=reset stability, space=pause")

    last_frame = None

    try:
        while True:
            if not paused:
                frame = camera.read()
                if frame is None:
                    if camera.consecutive_failures >= MAX_READ_FAILURES:
                        logger.error("Camera stopped delivering frames")
                        break
                    time.sleep(READ_RETRY_DELAY)
                    continue
                if camera.consume_break():
                    scanner.invalidate()

                outcome = scan_frame(scanner, frame)

                if outcome is not None and outcome.result is not None:
                    last_result = outcome.result
                    logger.debug(last_result.label_text().replace("\n", " | "))
                last_frame = frame

                fps_counter += 1
                if time.time() - fps_time >= 1.0:
                    current_fps = fps_counter / (time.time() - fps_time)
                    fps_counter = 0
                    fps_time = time.time()
            else:
                frame = last_frame
                if frame is None:
                    continue

            display = draw_scan_overlay(frame, outcome, last_result, current_fps, font_scale)

            if paused:
                cv2.putText(
                    display,
                    "PAUSED",
                    (display.shape[1] // 2 - 60, display.shape[0] - 30),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    1.0,
                    (0, 255, 255),
                    2,
                )

            cv2.imshow(window_name, display)

            key = cv2.waitKey(1) & 0xFF

            if key == ord("q"):
                logger.info("Quit requested")
                break
            elif key == ord("s"):
                top = last_result.top if last_result is not None else None
                filepath = save_snapshot(display, config, top.identifier if top else "scan")
                logger.info(f"Snapshot saved: {filepath}")
            elif key == ord("r"):
                scanner.invalidate()
                last_result = None
                logger.info("Stability window reset")
            elif key == ord(" "):
                paused = not paused
                if not paused:
                    # Frames skipped while paused break frame-to-frame continuity
                    scanner.invalidate()
                logger.info(f"{'Paused' if paused else 'Resumed'}")

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        camera.release()
        cv2.destroyAllWindows()
        logger.info(
            f"LiveScan stopped: frames={scanner.frames_processed}, "
            f"classifications={scanner.classifications_run}"
        )


def run_static_classification(config: Config, image_path: str, show: bool = False) -> int:
    """Classify one photo and print its label. Returns a process exit code."""
    logger = logging.getLogger(__name__)

    try:
        classifier = ImageClassifier(config["model"])
        image = read_image(image_path)
        result = classifier.classify(image, source="static")
    except LiveScanError as e:
        logger.error(f"Classification failed: {e}")
        return 1

    print(result.label_text())
    logger.info(f"Classified in {result.processing_time_ms:.1f}ms")

    if show:
        window_name = f"LiveScan - {Path(image_path).name}"
        cv2.imshow(window_name, draw_static_result(image, result))
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


def run_web_server(config: Config) -> None:
    """Start the Flask web server."""
    logger = logging.getLogger(__name__)
    logger.info("Starting web server...")

    from .web.app import create_app

    app = create_app(config)

    web_config = config["web"]
    host = web_config.get("host", "0.0.0.0")
    port = web_config.get("port", 5000)
    debug = config.get("app.debug", False)

    logger.info(f"Web server starting at http://{host}:{port}")

    app.run(host=host, port=port, debug=debug, threaded=True)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="LiveScan - Camera and photo image classification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m livescan                      Run live scanner
    python -m livescan --image photo.jpg    Classify a photo
    python -m livescan --image p.jpg --show Classify and display a photo
    python -m livescan --web                Start web server
    python -m livescan --mobile             Start Kivy app
    python -m livescan --camera 1           Use camera index 1

Keyboard controls (live mode):
    q       Quit
    s       Save snapshot
    r       Reset stability window
    space   Pause/Resume
        """,
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--image", type=str, help="Classify a single photo and exit")
    mode.add_argument(
        "--web", action="store_true", help="Start web server instead of live scanner"
    )
    mode.add_argument("--mobile", action="store_true", help="Start the Kivy app")
    parser.add_argument(
        "--show", action="store_true", help="With --image, display the labeled photo"
    )
    parser.add_argument("--camera", type=int, help="Camera index to use (overrides config)")
    parser.add_argument("--config", type=str, help="Path to configuration directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    args = parser.parse_args()

    config_dir = Path(args.config) if args.config else None
    config = Config(config_dir)

    if args.camera is not None:
        os.environ["LIVESCAN_CAMERA_SOURCE"] = str(args.camera)
        config.reload()

    if args.debug:
        os.environ["LIVESCAN_ENV"] = "development"
        os.environ["LIVESCAN_LOGGING_LEVEL"] = "DEBUG"
        config = Config(config_dir)

    setup_logging(config)

    logger = logging.getLogger(__name__)
    logger.info("LiveScan starting...")
    logger.info(f"Environment: {config.env}")

    if args.image:
        sys.exit(run_static_classification(config, args.image, show=args.show))
    elif args.web:
        run_web_server(config)
    elif args.mobile:
        from .mobile.app import run_mobile_app

        run_mobile_app(config)
    else:
        run_live_scanner(config)


if __name__ == "__main__":
    main()
