"""Intensity-patch descriptors for frame-to-frame matching."""

from __future__ import annotations

import numpy as np

from ..frame import Frame


def patch_descriptor(frame: Frame, x: int, y: int, radius: int = 3) -> np.ndarray:
    """Return the square intensity patch centred on (x, y).

    Samples falling outside the image read as 0, so points on or near the
    border never fault.

    Args:
        frame: Frame to sample
        x: Patch centre column
        y: Patch centre row
        radius: Patch half-size; the patch is (2r+1)x(2r+1)

    Returns:
        ((2r+1)^2,) int32 vector, row-major
    """
    size = 2 * radius + 1
    patch = np.zeros((size, size), dtype=np.int32)

    height, width = frame.image.shape
    x0, y0 = x - radius, y - radius
    # Intersection of the patch with the image
    src_x0, src_y0 = max(x0, 0), max(y0, 0)
    src_x1, src_y1 = min(x0 + size, width), min(y0 + size, height)

    if src_x0 < src_x1 and src_y0 < src_y1:
        patch[src_y0 - y0 : src_y1 - y0, src_x0 - x0 : src_x1 - x0] = frame.image[
            src_y0:src_y1, src_x0:src_x1
        ]
    return patch.ravel()


def ssd(a: np.ndarray, b: np.ndarray) -> float:
    """Sum of squared differences between two descriptors."""
    diff = a.astype(np.int64) - b.astype(np.int64)
    return float(np.dot(diff, diff))
