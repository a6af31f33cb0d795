"""
Pytest fixtures for LiveScan tests.

Provides common test fixtures including:
- Test configuration
- Synthetic textured frames
- Fake aligner / classifier / network doubles
"""

from collections import deque

import cv2
import numpy as np
import pytest

from livescan.core.errors import ClassificationError
from livescan.core.result import Classification, ClassificationResult
from livescan.core.stability import DisplacementSample


@pytest.fixture
def test_config():
    """Test configuration dictionary."""
    return {
        "camera": {
            "source": "missing_video.mp4",
            "width": 320,
            "height": 240,
            "fps": 30,
        },
        "alignment": {
            "downscale": 0.5,
            "use_window": True,
        },
        "stability": {
            "window_size": 15,
            "threshold": 20.0,
        },
        "scanner": {
            "classify_cooldown_frames": 0,
        },
        "model": {
            "input_size": 64,
            "top_k": 3,
            "apply_softmax": True,
        },
        "web": {
            "stream_quality": 80,
            "max_stream_fps": 10,
            "max_upload_mb": 4,
        },
    }


@pytest.fixture
def textured_frame():
    """Blurred noise frame with enough texture for phase correlation."""
    return generate_textured_frame()


@pytest.fixture
def photo_png(tmp_path, textured_frame):
    """Path to a PNG photo on disk."""
    path = tmp_path / "photo.png"
    cv2.imwrite(str(path), textured_frame)
    return path


def generate_textured_frame(width: int = 320, height: int = 240, seed: int = 7) -> np.ndarray:
    """
    Generate a synthetic camera frame.

    Args:
        width: Image width
        height: Image height
        seed: Random seed, so frames are reproducible

    Returns:
        BGR image as numpy array
    """
    rng = np.random.default_rng(seed)
    noise = rng.integers(0, 256, (height, width, 3), dtype=np.uint8)
    return cv2.GaussianBlur(noise, (7, 7), 0)


class FakeAligner:
    """
    Aligner returning scripted displacements.

    Items may be DisplacementSample values or exceptions to raise. Once the
    script runs out, `default` is returned.
    """

    def __init__(self, script=None, default=DisplacementSample(0.0, 0.0)):
        self.script = deque(script or [])
        self.default = default
        self.calls = []

    def align(self, previous, current):
        self.calls.append((previous, current))
        item = self.script.popleft() if self.script else self.default
        if isinstance(item, Exception):
            raise item
        return item


class FakeClassifier:
    """Classifier returning a fixed ranking and recording its inputs."""

    def __init__(self, classifications=None, fail=False):
        if classifications is None:
            classifications = [
                Classification("golden retriever", 0.91),
                Classification("labrador retriever", 0.05),
                Classification("tennis ball", 0.02),
            ]
        self.classifications = classifications
        self.fail = fail
        self.calls = []

    def classify(self, image, source="live"):
        self.calls.append((image, source))
        if self.fail:
            raise ClassificationError("inference exploded")
        return ClassificationResult(
            classifications=list(self.classifications),
            processing_time_ms=1.5,
            source=source,
        )


class FakeNet:
    """Stand-in for a cv2.dnn network exposing setInput()/forward()."""

    def __init__(self, scores, error=None):
        self.scores = np.asarray(scores, dtype=np.float32).reshape(1, -1)
        self.error = error
        self.blob = None

    def setInput(self, blob):
        self.blob = blob

    def forward(self):
        if self.error is not None:
            raise self.error
        return self.scores


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def make_net():
    """Factory for FakeNet instances."""
    return FakeNet


@pytest.fixture
def make_aligner():
    """Factory for FakeAligner instances."""
    return FakeAligner


@pytest.fixture
def make_classifier():
    """Factory for FakeClassifier instances."""
    return FakeClassifier
