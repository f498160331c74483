"""Rerun-based visualization for monocular visual odometry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import rerun as rr
import rerun.blueprint as rrb

if TYPE_CHECKING:
    from ..frontend.frame import Frame
    from ..frontend.vo import CycleResult


class RerunVisualizer:
    """Rerun-based visualization of the odometry outputs.

    Shows the camera image with the obstacle-feature overlay next to a
    top-down map of the trajectory and landmarks.

    Entity hierarchy:
        camera/
            image       - Grayscale input frame
            features    - Obstacle features (red)
        map/
            trajectory  - Estimated path (yellow)
            current     - Current position (cyan)
            landmarks   - Landmarks, brighter with quality
    """

    def __init__(self, app_name: str = "monovo", spawn: bool = True) -> None:
        """Initialize Rerun visualization.

        Args:
            app_name: Name for the Rerun application window
            spawn: If True, automatically spawn the Rerun viewer
        """
        rr.init(app_name, spawn=spawn)
        self._setup_layout()

    def _setup_layout(self) -> None:
        """Configure the viewer layout"""
        blueprint = rrb.Blueprint(
            rrb.Horizontal(
                contents=[
                    rrb.Spatial2DView(name="Camera", origin="camera"),
                    rrb.Spatial2DView(name="Map", origin="map"),
                ]
            )
        )
        rr.send_blueprint(blueprint)

    def log_cycle(
        self,
        frame: Frame,
        result: CycleResult,
        trajectory: np.ndarray,
        landmarks: np.ndarray,
        landmark_quality: np.ndarray | None = None,
    ) -> None:
        """Log everything produced by one pipeline cycle.

        Args:
            frame: Frame processed this cycle
            result: CycleResult returned by the pipeline
            trajectory: Nx2 trajectory positions (meters)
            landmarks: Mx2 landmark positions (meters)
            landmark_quality: Optional (M,) landmark qualities for colouring
        """
        rr.set_time("timestamp", duration=frame.timestamp_ns / 1e9)

        rr.log("camera/image", rr.Image(frame.image))
        self.log_features(result.features.points)
        self.log_trajectory(trajectory)
        self.log_landmarks(landmarks, landmark_quality)
        rr.log("stats/cycle_ms", rr.Scalars(result.timing.total_ms))

    def log_features(self, points: np.ndarray, entity_path: str = "camera/features") -> None:
        """Log obstacle features over the camera image (red)."""
        if len(points) == 0:
            rr.log(entity_path, rr.Clear(recursive=False))
            return
        rr.log(entity_path, rr.Points2D(points, colors=[[255, 0, 0]], radii=2.6))

    def log_trajectory(self, positions: np.ndarray, entity_path: str = "map/trajectory") -> None:
        """Log the trajectory as a 2D line strip.

        Args:
            positions: Nx2 array of positions in meters
            entity_path: Rerun entity path for the trajectory
        """
        if len(positions) < 2:
            return

        rr.log(
            entity_path,
            rr.LineStrips2D([positions], colors=[[255, 255, 0]], radii=0.0005),
        )
        rr.log(
            f"{entity_path}/current",
            rr.Points2D([positions[-1]], colors=[[0, 255, 255]], radii=0.002),
        )

    def log_landmarks(
        self,
        positions: np.ndarray,
        quality: np.ndarray | None = None,
        entity_path: str = "map/landmarks",
    ) -> None:
        """Log landmarks, with alpha scaled by quality when given."""
        if len(positions) == 0:
            return

        colors = np.zeros((len(positions), 4), dtype=np.uint8)
        colors[:, 0] = 255
        colors[:, 1] = 255
        if quality is None:
            colors[:, 3] = 128
        else:
            q = np.asarray(quality, dtype=np.float64)
            normalized = q / max(float(q.max()), 1.0)
            colors[:, 3] = (64 + normalized * 191).astype(np.uint8)

        rr.log(entity_path, rr.Points2D(positions, colors=colors, radii=0.001))
