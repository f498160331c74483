"""Planar (SE(2)-like) pose representation for the ground-plane tracker."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PoseDelta:
    """Incremental motion between two consecutive frames.

    Attributes:
        dx: Translation along world x (meters)
        dy: Translation along world y (meters)
        dheading: Heading change (radians)
    """

    dx: float = 0.0
    dy: float = 0.0
    dheading: float = 0.0

    @classmethod
    def zero(cls) -> PoseDelta:
        """Return the "no observable motion" delta."""
        return cls()

    @property
    def is_zero(self) -> bool:
        return self.dx == 0.0 and self.dy == 0.0 and self.dheading == 0.0


@dataclass(frozen=True)
class Pose2D:
    """Camera position and heading in a self-consistent world frame.

    The pose is integrated additively from PoseDeltas: there is no absolute
    correction, so errors accumulate (drift).

    Attributes:
        x: World x position (meters)
        y: World y position (meters)
        heading: Heading (radians). Accumulated without wrapping.
    """

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    @classmethod
    def origin(cls) -> Pose2D:
        """Create the pose at the world origin with zero heading."""
        return cls()

    def integrate(self, delta: PoseDelta) -> Pose2D:
        """Return the pose after applying an incremental delta.

        Args:
            delta: Motion estimated for the latest cycle

        Returns:
            New Pose2D (self is left unchanged)
        """
        return Pose2D(
            x=self.x + delta.dx,
            y=self.y + delta.dy,
            heading=self.heading + delta.dheading,
        )

    def transform_points(self, offsets: np.ndarray) -> np.ndarray:
        """Transform body-frame offsets into world coordinates.

        Applies p_world = R(heading) @ p_body + [x, y].

        Args:
            offsets: Nx2 array of offsets in meters, body frame

        Returns:
            Nx2 array of world positions
        """
        offsets = np.asarray(offsets, dtype=np.float64).reshape(-1, 2)
        c, s = np.cos(self.heading), np.sin(self.heading)
        rotation = np.array([[c, -s], [s, c]], dtype=np.float64)
        return offsets @ rotation.T + self.position

    @property
    def position(self) -> np.ndarray:
        """Return (x, y) as a (2,) array."""
        return np.array([self.x, self.y], dtype=np.float64)

    def __repr__(self) -> str:
        return f"Pose2D(x={self.x:.3f}, y={self.y:.3f}, heading={self.heading:.3f})"
