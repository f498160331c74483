"""Shared fixtures: synthetic frames with small bright blobs."""

import numpy as np
import pytest

from monovo import Frame, OdometryConfig

# Blob centres lie on the default detector sample grid (10 + 3k) and are
# spaced well beyond the tracker search radius.
BLOB_XS = (100, 160, 220, 280, 340, 400, 460, 520)
BLOB_YS = (121, 361)
BLOB_CENTERS = tuple((x, y) for y in BLOB_YS for x in BLOB_XS)


def make_blob_frame(
    centers=BLOB_CENTERS,
    width: int = 640,
    height: int = 480,
    shift: tuple[int, int] = (0, 0),
    half_size: int = 1,
    value: int = 255,
    depth: np.ndarray | None = None,
) -> Frame:
    """Black frame with a (2*half_size+1)^2 bright square at every centre.

    A 3x3 square sits entirely inside the radius-3 detector ring, so its
    centre is a corner with all 16 ring points darker.
    """
    image = np.zeros((height, width), dtype=np.uint8)
    sx, sy = shift
    for x, y in centers:
        x, y = x + sx, y + sy
        image[y - half_size : y + half_size + 1, x - half_size : x + half_size + 1] = value
    return Frame(image=image, depth=depth)


@pytest.fixture
def config() -> OdometryConfig:
    """Default configuration."""
    return OdometryConfig()


@pytest.fixture
def blob_frame() -> Frame:
    """640x480 frame with 16 bright blobs."""
    return make_blob_frame()


@pytest.fixture
def black_frame() -> Frame:
    """640x480 featureless frame."""
    return Frame(image=np.zeros((480, 640), dtype=np.uint8))


@pytest.fixture
def noise_frame() -> Frame:
    """640x480 uniform-noise frame (many corner candidates)."""
    rng = np.random.default_rng(0)
    return Frame(image=rng.integers(0, 256, size=(480, 640), dtype=np.uint8))


@pytest.fixture
def blob_frame_factory():
    """Expose make_blob_frame to tests that need custom scenes."""
    return make_blob_frame
