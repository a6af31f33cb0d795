"""
Unit tests for the OpenCV frame source.
"""

import cv2
import numpy as np
import pytest

from livescan.core import camera as camera_module
from livescan.core.camera import Camera, CaptureSettings, available_devices


class FakeCapture:
    """
    Stand-in for cv2.VideoCapture playing back a scripted sequence.

    None entries in `frames` are failed reads. Reads past the end fail until
    the position is set back to 0.
    """

    def __init__(self, frames, opened=True, size=(320, 240)):
        self.frames = list(frames)
        self.opened = opened
        self.position = 0
        self.props = {
            cv2.CAP_PROP_FRAME_WIDTH: size[0],
            cv2.CAP_PROP_FRAME_HEIGHT: size[1],
        }
        self.released = False

    def isOpened(self):
        return self.opened and not self.released

    def read(self):
        if self.position >= len(self.frames):
            return False, None
        frame = self.frames[self.position]
        self.position += 1
        if frame is None:
            return False, None
        return True, frame

    def set(self, prop, value):
        if prop == cv2.CAP_PROP_POS_FRAMES:
            self.position = int(value)
        else:
            self.props[prop] = value
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def release(self):
        self.released = True


def frame_of(value: int) -> np.ndarray:
    return np.full((240, 320, 3), value, dtype=np.uint8)


@pytest.fixture
def install_capture(monkeypatch):
    """Make cv2.VideoCapture return the given FakeCapture; records constructor args."""
    opened_with = []

    def install(capture):
        def factory(*args):
            opened_with.append(args)
            return capture

        monkeypatch.setattr(camera_module.cv2, "VideoCapture", factory)
        return opened_with

    return install


class TestCaptureSettings:
    """Tests for reading the camera config section."""

    def test_unknown_keys_ignored(self):
        settings = CaptureSettings.from_config(
            {"source": 2, "width": 1280, "force_opencv": True}
        )

        assert settings.source == 2
        assert settings.width == 1280
        assert settings.height == 480
        assert settings.is_device

    def test_path_source_is_not_a_device(self):
        assert not CaptureSettings(source="clip.mp4").is_device


class TestCamera:
    """Tests for capture and frame-sequence tracking."""

    def test_open_device_requests_mode(self, install_capture):
        capture = FakeCapture([frame_of(1)])
        opened_with = install_capture(capture)
        camera = Camera({"source": 0, "backend": "CAP_V4L2", "width": 640, "height": 480})

        assert camera.open()

        assert opened_with == [(0, cv2.CAP_V4L2)]
        assert capture.props[cv2.CAP_PROP_FRAME_WIDTH] == 640
        assert capture.props[cv2.CAP_PROP_BUFFERSIZE] == 1
        assert camera.is_open

    def test_open_failure(self, install_capture):
        capture = FakeCapture([], opened=False)
        install_capture(capture)
        camera = Camera({"source": "missing.mp4"})

        assert not camera.open()
        assert capture.released
        assert not camera.is_open

    def test_read_when_closed(self):
        camera = Camera({"source": 0})
        assert camera.read() is None

    def test_first_frame_after_open_reports_break_once(self, install_capture):
        install_capture(FakeCapture([frame_of(1), frame_of(2)]))
        camera = Camera({"source": 0})
        camera.open()

        assert camera.read() is not None
        assert camera.consume_break()
        assert camera.read() is not None
        assert not camera.consume_break()
        assert camera.frames_read == 2

    def test_failed_read_breaks_sequence(self, install_capture):
        install_capture(FakeCapture([frame_of(1), None, None, frame_of(4)]))
        camera = Camera({"source": 0})
        camera.open()
        camera.read()
        camera.consume_break()

        assert camera.read() is None
        assert camera.read() is None
        assert camera.consecutive_failures == 2

        frame = camera.read()
        assert frame[0, 0, 0] == 4
        assert camera.consecutive_failures == 0
        assert camera.consume_break()

    def test_video_rewinds_at_end(self, install_capture):
        install_capture(FakeCapture([frame_of(1), frame_of(2)]))
        camera = Camera({"source": "clip.mp4"})
        camera.open()
        camera.read()
        camera.read()
        camera.consume_break()

        frame = camera.read()

        assert frame[0, 0, 0] == 1
        # Jumping back to the first frame is not motion
        assert camera.consume_break()

    def test_video_without_looping_ends(self, install_capture):
        install_capture(FakeCapture([frame_of(1)]))
        camera = Camera({"source": "clip.mp4", "loop_video": False})
        camera.open()
        camera.read()

        assert camera.read() is None
        assert camera.consecutive_failures == 1

    def test_release_breaks_sequence(self, install_capture):
        capture = FakeCapture([frame_of(1)])
        install_capture(capture)
        camera = Camera({"source": 0})
        camera.open()
        camera.read()
        camera.consume_break()

        camera.release()

        assert capture.released
        assert not camera.is_open
        assert camera.consume_break()

    def test_frame_size_when_closed_is_requested_size(self):
        assert Camera({"width": 320, "height": 240}).frame_size == (320, 240)


class TestAvailableDevices:
    """Tests for device discovery."""

    def test_lists_openable_indices(self, monkeypatch):
        monkeypatch.setattr(
            camera_module.cv2,
            "VideoCapture",
            lambda index: FakeCapture([], opened=index == 1),
        )
        assert available_devices(max_index=3) == [1]
