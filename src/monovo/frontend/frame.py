"""Grayscale camera frame with optional per-pixel depth."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np


@dataclass
class Frame:
    """A single grayscale image, optionally paired with a depth map.

    Attributes:
        image: HxW uint8 grayscale intensities
        depth: Optional HxW float depth in meters. Non-finite samples mean
            "no depth measured at this pixel".
        timestamp_ns: Capture time in nanoseconds (0 if unknown)
    """

    image: np.ndarray
    depth: np.ndarray | None = None
    timestamp_ns: int = 0

    def __post_init__(self) -> None:
        """Validate and normalize inputs."""
        self.image = np.asarray(self.image)
        if self.image.ndim != 2:
            raise ValueError(f"Image must be HxW grayscale, got shape {self.image.shape}")
        if self.image.dtype != np.uint8:
            self.image = np.clip(self.image, 0, 255).astype(np.uint8)

        if self.depth is not None:
            self.depth = np.asarray(self.depth, dtype=np.float32)
            if self.depth.shape != self.image.shape:
                raise ValueError(
                    f"Depth shape {self.depth.shape} does not match "
                    f"image shape {self.image.shape}"
                )

    @classmethod
    def from_image(
        cls,
        image: np.ndarray,
        depth: np.ndarray | None = None,
        timestamp_ns: int = 0,
    ) -> Frame:
        """Create a Frame from a grayscale or BGR image.

        Args:
            image: HxW grayscale or HxWx3 BGR image (as returned by OpenCV)
            depth: Optional HxW depth map in meters
            timestamp_ns: Capture time in nanoseconds

        Returns:
            Frame holding the grayscale conversion of image
        """
        image = np.asarray(image)
        if image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return cls(image=image, depth=depth, timestamp_ns=timestamp_ns)

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def has_depth(self) -> bool:
        return self.depth is not None

    def depth_at(self, x: int, y: int) -> float | None:
        """Return depth at pixel (x, y), or None if unavailable."""
        if self.depth is None:
            return None
        value = float(self.depth[y, x])
        if not np.isfinite(value):
            return None
        return value
