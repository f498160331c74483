"""Tests for MotionEstimator."""

import numpy as np
import pytest

from monovo import Correspondences, MotionEstimator, OdometryConfig
from monovo.frontend.vo import wrap_angle

CENTER = np.array([320.0, 240.0])


def rotated(points: np.ndarray, angle: float) -> np.ndarray:
    """Rotate points about the optical centre, rounded to whole pixels."""
    c, s = np.cos(angle), np.sin(angle)
    rel = points - CENTER
    out = np.column_stack([c * rel[:, 0] - s * rel[:, 1], s * rel[:, 0] + c * rel[:, 1]])
    return np.round(out + CENTER)


def ring(n: int = 8, radius: float = 200.0) -> np.ndarray:
    angles = np.linspace(0, 2 * np.pi, n, endpoint=False) + 0.3
    return np.round(CENTER + radius * np.column_stack([np.cos(angles), np.sin(angles)]))


class TestMotionEstimator:
    """Test suite for MotionEstimator."""

    def test_too_few_correspondences(self):
        """Below the minimum the delta is zero and success is False."""
        prev = np.array([[100, 100], [200, 100], [300, 100], [400, 100]])
        corrs = Correspondences.from_points(prev, prev + 10)

        estimate = MotionEstimator().estimate(corrs)

        assert not estimate.success
        assert estimate.delta.is_zero
        assert estimate.num_correspondences == 4

    def test_empty_correspondences(self):
        """Test that zero correspondences are not an error."""
        estimate = MotionEstimator().estimate(Correspondences())

        assert not estimate.success
        assert estimate.delta.is_zero

    def test_translation_uses_median_and_negates_x(self):
        """Camera x moves opposite the image flow; y follows it."""
        prev = np.array([[100, 100], [200, 150], [300, 200], [400, 250], [500, 300]])
        corrs = Correspondences.from_points(prev, prev + np.array([4, -2]))

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.success
        assert estimate.median_flow_px == (4.0, -2.0)
        assert estimate.delta.dx == pytest.approx(-0.004)
        assert estimate.delta.dy == pytest.approx(-0.002)

    def test_median_ignores_outliers(self):
        """A minority of wild matches does not move the estimate."""
        prev = np.array([[100 + 40 * i, 200] for i in range(7)])
        flow = np.array([[3, 1]] * 5 + [[60, -80], [-70, 90]])
        corrs = Correspondences.from_points(prev, prev + flow)

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.median_flow_px == (3.0, 1.0)

    def test_even_count_median_is_exact(self):
        """With an even count the median averages the two middle values."""
        prev = np.array([[100 + 40 * i, 200] for i in range(6)])
        flow = np.array([[1, 0], [2, 0], [3, 0], [4, 0], [100, 0], [200, 0]])
        corrs = Correspondences.from_points(prev, prev + flow)

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.median_flow_px[0] == pytest.approx(3.5)
        assert estimate.delta.dx == pytest.approx(-0.0035)

    def test_rotation_about_optical_centre(self):
        """Test that a pure rotation is recovered as the heading change."""
        prev = ring()
        corrs = Correspondences.from_points(prev, rotated(prev, 0.1))

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.delta.dheading == pytest.approx(0.1, abs=0.01)
        assert estimate.rotation_inliers == 8

    def test_large_angular_changes_are_discarded(self):
        """Changes of at least the rotation bound are treated as parallax."""
        prev = ring()
        curr = rotated(prev, 0.1)
        curr[:2] = rotated(prev[:2], 1.0)
        corrs = Correspondences.from_points(prev, curr)

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.rotation_inliers == 6
        assert estimate.delta.dheading == pytest.approx(0.1, abs=0.01)

    def test_no_rotation_inliers_gives_zero_heading(self):
        """Test that heading change is 0 when every change is too large."""
        prev = ring()
        corrs = Correspondences.from_points(prev, rotated(prev, 1.0))

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.success
        assert estimate.rotation_inliers == 0
        assert estimate.delta.dheading == 0.0

    def test_rotation_across_the_branch_cut(self):
        """A small rotation through +-pi is not mistaken for a full turn."""
        prev = np.array([[120, 245]] * 5)
        curr = np.array([[120, 235]] * 5)
        corrs = Correspondences.from_points(prev, curr)

        estimate = MotionEstimator().estimate(corrs)

        assert estimate.rotation_inliers == 5
        assert estimate.delta.dheading == pytest.approx(2 * np.arctan2(5, 200))

    def test_pixel_scale_is_configurable(self):
        """Test that pixel_to_meter scales the translation."""
        prev = np.array([[100 + 40 * i, 200] for i in range(5)])
        corrs = Correspondences.from_points(prev, prev + np.array([0, 10]))

        estimate = MotionEstimator(OdometryConfig(pixel_to_meter=0.01)).estimate(corrs)

        assert estimate.delta.dy == pytest.approx(0.1)


class TestWrapAngle:
    """Test suite for wrap_angle."""

    def test_range(self):
        """Test normalization to (-pi, pi]."""
        angles = np.array([0.0, np.pi, -np.pi, 1.5 * np.pi, -1.5 * np.pi, 4 * np.pi + 0.2])

        wrapped = wrap_angle(angles)

        np.testing.assert_allclose(
            wrapped, [0.0, np.pi, np.pi, -0.5 * np.pi, 0.5 * np.pi, 0.2], atol=1e-12
        )
