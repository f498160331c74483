"""Frame-to-frame monocular visual odometry pipeline."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from ...config import OdometryConfig
from ..frame import Frame
from ..pose import Pose2D, PoseDelta
from .feature_detector import FeatureDetector, Features
from .feature_tracker import Correspondences, FeatureTracker
from .landmark_map import Landmark, LandmarkMap
from .motion_estimator import MotionEstimate, MotionEstimator

logger = logging.getLogger(__name__)


class TrackingStatus(Enum):
    """Status of visual odometry tracking for one cycle."""

    INITIALIZING = "INITIALIZING"  # First frame after start or reset
    OK = "OK"
    DEGRADED = "DEGRADED"  # Too few correspondences, zero delta used


@dataclass
class CycleTiming:
    """Timing breakdown for a single cycle."""

    detection_ms: float = 0.0
    tracking_ms: float = 0.0
    estimation_ms: float = 0.0
    map_update_ms: float = 0.0
    total_ms: float = 0.0


@dataclass
class CycleResult:
    """Output of the odometry pipeline for a single frame."""

    cycle_id: int
    tracking_status: TrackingStatus
    pose: Pose2D
    delta: PoseDelta
    features: Features
    num_correspondences: int = 0
    num_landmarks: int = 0
    new_landmarks: int = 0
    timing: CycleTiming = field(default_factory=CycleTiming)

    @property
    def position(self) -> np.ndarray:
        """Return camera position in world frame."""
        return self.pose.position

    @property
    def is_tracking_ok(self) -> bool:
        """Return True if a motion estimate was made this cycle."""
        return self.tracking_status == TrackingStatus.OK


@dataclass
class PreviousFrame:
    """The one-cycle temporal buffer needed for tracking."""

    frame: Frame
    features: Features


@dataclass
class PipelineState:
    """Mutable per-cycle state owned by a single pipeline instance.

    Attributes:
        pose: Current pose
        trajectory: Position samples, oldest first, bounded length
        landmarks: Landmark map
        previous: Last frame and its features; None while idle
        features: Features from the most recent cycle
        cycle_id: Number of cycles run since construction or reset
    """

    pose: Pose2D
    trajectory: deque[tuple[float, float]]
    landmarks: LandmarkMap
    previous: PreviousFrame | None = None
    features: Features = field(default_factory=Features)
    cycle_id: int = 0

    @classmethod
    def initial(cls, config: OdometryConfig) -> PipelineState:
        """Create the Idle state: pose at origin, one origin sample, empty map."""
        return cls(
            pose=Pose2D.origin(),
            trajectory=deque([(0.0, 0.0)], maxlen=config.max_trajectory_length),
            landmarks=LandmarkMap(config),
        )


class OdometryPipeline:
    """Monocular frame-to-frame visual odometry.

    Orchestrates one cycle per delivered frame:
    1. Feature detection (obstacle corners)
    2. Tracking against the previous frame (patch matching)
    3. Motion estimation (median flow + robust rotation)
    4. Pose integration and trajectory update
    5. Landmark map update

    The pipeline is Idle until it has seen one frame, then Tracking. All state
    lives in a PipelineState owned by this instance; it is not thread-safe
    and cycles must not overlap.
    """

    def __init__(
        self,
        config: OdometryConfig | None = None,
        feature_detector: FeatureDetector | None = None,
        feature_tracker: FeatureTracker | None = None,
        motion_estimator: MotionEstimator | None = None,
    ) -> None:
        """Initialize visual odometry pipeline.

        Args:
            config: Configuration shared by the default components. Invalid
                values raise ConfigurationError when the config is built.
            feature_detector: Override the detector
            feature_tracker: Override the tracker
            motion_estimator: Override the estimator
        """
        self._config = config or OdometryConfig()
        self._detector = feature_detector or FeatureDetector(self._config)
        self._tracker = feature_tracker or FeatureTracker(self._config)
        self._estimator = motion_estimator or MotionEstimator(self._config)
        self._state = PipelineState.initial(self._config)

    def process_frame(self, frame: Frame) -> CycleResult:
        """Run one full cycle on a new frame."""
        timing = CycleTiming()
        t_start = time.perf_counter()
        state = self._state

        cycle_id = state.cycle_id
        state.cycle_id += 1

        # Stage 1: Feature detection
        t0 = time.perf_counter()
        features = self._detector.detect(frame)
        timing.detection_ms = (time.perf_counter() - t0) * 1000

        # Stage 2: Tracking (skipped while idle)
        if state.previous is None:
            status = TrackingStatus.INITIALIZING
            estimate = MotionEstimate(success=False, delta=PoseDelta.zero())
            correspondences = Correspondences()
        else:
            t0 = time.perf_counter()
            correspondences = self._tracker.track(
                state.previous.frame, state.previous.features, frame
            )
            timing.tracking_ms = (time.perf_counter() - t0) * 1000

            # Stage 3: Motion estimation
            t0 = time.perf_counter()
            estimate = self._estimator.estimate(correspondences)
            timing.estimation_ms = (time.perf_counter() - t0) * 1000

            if estimate.success:
                status = TrackingStatus.OK
            else:
                status = TrackingStatus.DEGRADED
                logger.debug(
                    "cycle %d: %d correspondences (< %d), holding pose",
                    cycle_id,
                    len(correspondences),
                    self._estimator.min_correspondences,
                )

        # Stage 4: Pose integration
        state.pose = state.pose.integrate(estimate.delta)
        state.trajectory.append((state.pose.x, state.pose.y))

        # Stage 5: Map update
        t0 = time.perf_counter()
        map_update = state.landmarks.update(features, state.pose)
        timing.map_update_ms = (time.perf_counter() - t0) * 1000

        # Stage 6: Keep this frame for the next cycle
        state.previous = PreviousFrame(frame=frame, features=features)
        state.features = features

        timing.total_ms = (time.perf_counter() - t_start) * 1000

        return CycleResult(
            cycle_id=cycle_id,
            tracking_status=status,
            pose=state.pose,
            delta=estimate.delta,
            features=features,
            num_correspondences=len(correspondences),
            num_landmarks=state.landmarks.num_landmarks,
            new_landmarks=map_update.num_added,
            timing=timing,
        )

    def reset(self) -> None:
        """Return to Idle: origin pose, single origin sample, empty map."""
        self._state = PipelineState.initial(self._config)
        logger.info("odometry reset")

    def get_trajectory(self) -> tuple[tuple[float, float], ...]:
        """Return a read-only snapshot of the trajectory, oldest first."""
        return tuple(self._state.trajectory)

    def get_trajectory_positions(self) -> np.ndarray:
        """Return trajectory positions as Nx2 array."""
        return np.array(self._state.trajectory, dtype=np.float64).reshape(-1, 2)

    def get_landmarks(self) -> list[Landmark]:
        """Return a snapshot of the landmark map."""
        return self._state.landmarks.get_all_landmarks()

    def get_landmark_positions(self) -> np.ndarray:
        """Return landmark positions as Nx2 array."""
        return self._state.landmarks.positions()

    @property
    def pose(self) -> Pose2D:
        return self._state.pose

    @property
    def features(self) -> Features:
        """Return the features detected in the most recent cycle."""
        return self._state.features

    @property
    def num_landmarks(self) -> int:
        return self._state.landmarks.num_landmarks

    @property
    def is_tracking(self) -> bool:
        """Return True once a previous frame is buffered (Tracking state)."""
        return self._state.previous is not None

    @property
    def num_cycles(self) -> int:
        return self._state.cycle_id

    @property
    def config(self) -> OdometryConfig:
        return self._config
