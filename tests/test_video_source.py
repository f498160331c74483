"""Tests for VideoFrameSource read-failure handling."""

import numpy as np
import pytest

from monovo import VideoFrameSource
from monovo.io import video_source


class ScriptedCapture:
    """cv2.VideoCapture stand-in that replays a list of reads."""

    def __init__(self, reads):
        self._reads = list(reads)
        self._open = True

    def isOpened(self):
        return self._open

    def read(self):
        if not self._reads:
            return False, None
        image = self._reads.pop(0)
        return image is not None, image

    def release(self):
        self._open = False


@pytest.fixture
def scripted(monkeypatch):
    """Install a ScriptedCapture; None entries are failed reads."""

    def install(reads):
        monkeypatch.setattr(video_source.cv2, "VideoCapture", lambda source: ScriptedCapture(reads))

    return install


def image(value: int = 0) -> np.ndarray:
    return np.full((480, 640, 3), value, dtype=np.uint8)


class TestVideoFrameSource:
    """Test suite for VideoFrameSource."""

    def test_dropped_read_is_not_end_of_stream(self, scripted):
        """A single failed read returns None but leaves the source live."""
        scripted([image(10), None, image(20)])
        source = VideoFrameSource(max_failed_reads=3)

        assert source.get_next_frame() is not None
        assert source.get_next_frame() is None
        assert not source.is_exhausted

        frame = source.get_next_frame()
        assert frame is not None
        assert frame.image.shape == (480, 640)
        assert np.all(frame.image == 20)

    def test_consecutive_failures_exhaust_source(self, scripted):
        scripted([None, None, image(), None, None, None])
        source = VideoFrameSource(max_failed_reads=3)

        source.get_next_frame()
        source.get_next_frame()
        # A good read resets the failure count
        assert source.get_next_frame() is not None

        for _ in range(2):
            assert source.get_next_frame() is None
            assert not source.is_exhausted
        assert source.get_next_frame() is None
        assert source.is_exhausted

    def test_released_source_is_exhausted(self, scripted):
        scripted([image()])
        with VideoFrameSource() as source:
            assert not source.is_exhausted
        assert source.is_exhausted

    def test_frames_are_resized(self, scripted):
        scripted([np.zeros((240, 320, 3), dtype=np.uint8)])
        source = VideoFrameSource(width=640, height=480)

        assert source.get_next_frame().image.shape == (480, 640)

    def test_unopened_source_raises(self, monkeypatch):
        capture = ScriptedCapture([])
        capture.release()
        monkeypatch.setattr(video_source.cv2, "VideoCapture", lambda source: capture)

        with pytest.raises(ValueError, match="Failed to open"):
            VideoFrameSource("missing.mp4")
