"""Robust planar motion estimation from frame-to-frame correspondences."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ...config import OdometryConfig
from ..pose import PoseDelta
from .feature_tracker import Correspondences


@dataclass
class MotionEstimate:
    """Result of motion estimation for one cycle.

    Attributes:
        success: True if enough correspondences were available
        delta: Estimated pose change (zero when success is False)
        median_flow_px: Per-axis median pixel displacement (curr - prev)
        rotation_inliers: Matches whose angular change was kept for heading
        num_correspondences: Matches the estimate was computed from
    """

    success: bool
    delta: PoseDelta
    median_flow_px: tuple[float, float] = (0.0, 0.0)
    rotation_inliers: int = 0
    num_correspondences: int = 0


def wrap_angle(angle: np.ndarray) -> np.ndarray:
    """Normalize angles to (-pi, pi]."""
    wrapped = np.mod(angle + np.pi, 2 * np.pi) - np.pi
    # np.mod maps +pi to -pi; keep the closed upper end
    return np.where(wrapped == -np.pi, np.pi, wrapped)


class MotionEstimator:
    """Estimates a 2D translation + rotation delta from point matches.

    Translation is the per-axis median pixel flow, which ignores a minority
    of bad matches from moving objects or occlusion. Rotation is the mean
    angular change of the points around the optical centre, skipping changes
    too large to be rotation (those are mostly parallax). Pixels are mapped
    to meters with a fixed scale.

    This assumes roughly planar, fronto-parallel motion. It is a cheap
    approximation, not multi-view geometry.
    """

    def __init__(self, config: OdometryConfig | None = None) -> None:
        """Initialize motion estimator.

        Args:
            config: min_correspondences, optical_center, max_rotation_delta
                and pixel_to_meter are used
        """
        self._config = config or OdometryConfig()

    def estimate(self, correspondences: Correspondences) -> MotionEstimate:
        """Estimate the pose delta implied by a set of correspondences.

        Args:
            correspondences: Matches from the feature tracker

        Returns:
            MotionEstimate. Fewer than min_correspondences matches gives
            success=False and a zero delta ("no observable motion").
        """
        cfg = self._config
        n = len(correspondences)
        if n < cfg.min_correspondences:
            return MotionEstimate(success=False, delta=PoseDelta.zero(), num_correspondences=n)

        prev = correspondences.prev_points
        curr = correspondences.curr_points

        # Translation: per-axis median, each axis independently
        flow = curr - prev
        median_dx = float(np.median(flow[:, 0]))
        median_dy = float(np.median(flow[:, 1]))

        # Rotation about the optical centre
        cx, cy = cfg.optical_center
        angle_prev = np.arctan2(prev[:, 1] - cy, prev[:, 0] - cx)
        angle_curr = np.arctan2(curr[:, 1] - cy, curr[:, 0] - cx)
        dangle = wrap_angle(angle_curr - angle_prev)

        inliers = np.abs(dangle) < cfg.max_rotation_delta
        num_inliers = int(np.count_nonzero(inliers))
        dheading = float(np.mean(dangle[inliers])) if num_inliers > 0 else 0.0

        scale = cfg.pixel_to_meter
        delta = PoseDelta(
            dx=-median_dx * scale,  # Camera moves opposite to the observed flow
            dy=median_dy * scale,
            dheading=dheading,
        )

        return MotionEstimate(
            success=True,
            delta=delta,
            median_flow_px=(median_dx, median_dy),
            rotation_inliers=num_inliers,
            num_correspondences=n,
        )

    @property
    def min_correspondences(self) -> int:
        """Return the minimum matches required for a non-zero estimate."""
        return self._config.min_correspondences
