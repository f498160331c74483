"""Live or file-backed video frame source using OpenCV."""

from __future__ import annotations

import logging
import time

import cv2

from ..frontend.frame import Frame

logger = logging.getLogger(__name__)


class VideoFrameSource:
    """Wraps cv2.VideoCapture and yields fixed-resolution grayscale Frames.

    A failed read returns None. Isolated failures (a dropped camera frame)
    leave the source live; after max_failed_reads consecutive failures, or
    once the capture is closed, the source reports itself exhausted (end of
    a video file, unplugged camera).
    """

    def __init__(
        self,
        source: int | str = 0,
        width: int = 640,
        height: int = 480,
        max_failed_reads: int = 30,
    ) -> None:
        """Open a video source.

        Args:
            source: Camera index or video file path / URL
            width: Output frame width in pixels
            height: Output frame height in pixels
            max_failed_reads: Consecutive failed reads that end the stream

        Raises:
            ValueError: If the source cannot be opened
        """
        self._capture = cv2.VideoCapture(source)
        if not self._capture.isOpened():
            raise ValueError(f"Failed to open video source: {source!r}")
        self._size = (width, height)
        self._max_failed_reads = max_failed_reads
        self._failed_reads = 0
        logger.info("opened video source %r at %dx%d", source, width, height)

    def get_next_frame(self) -> Frame | None:
        """Read, resize and convert the next frame to grayscale."""
        ok, image = self._capture.read()
        if not ok or image is None:
            self._failed_reads += 1
            if self._failed_reads == self._max_failed_reads:
                logger.info("%d consecutive failed reads, ending stream", self._failed_reads)
            return None
        self._failed_reads = 0

        if (image.shape[1], image.shape[0]) != self._size:
            image = cv2.resize(image, self._size, interpolation=cv2.INTER_AREA)
        return Frame.from_image(image, timestamp_ns=time.monotonic_ns())

    @property
    def is_exhausted(self) -> bool:
        """Return True when no further frames can be expected."""
        return self._failed_reads >= self._max_failed_reads or not self._capture.isOpened()

    def release(self) -> None:
        """Release the underlying capture device."""
        self._capture.release()

    def __enter__(self) -> VideoFrameSource:
        return self

    def __exit__(self, *exc) -> None:
        self.release()
