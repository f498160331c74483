"""Monocular visual odometry components.

Components:
- OdometryPipeline: Per-frame orchestration, pose/trajectory/map state
- FeatureDetector: FAST-like corners with obstacle classification
- patch_descriptor: Intensity-patch descriptor
- FeatureTracker: Windowed patch matching between consecutive frames
- MotionEstimator: Median-flow translation + robust rotation
- LandmarkMap/Landmark: Sparse 2D landmark map
"""

from .descriptor import patch_descriptor, ssd
from .feature_detector import (
    OBSTACLE_GUARDS,
    ClusterStats,
    Feature,
    FeatureClass,
    FeatureDetector,
    Features,
)
from .feature_tracker import Correspondence, Correspondences, FeatureTracker
from .landmark_map import Landmark, LandmarkMap, MapUpdate
from .motion_estimator import MotionEstimate, MotionEstimator, wrap_angle
from .odometry_pipeline import (
    CycleResult,
    CycleTiming,
    OdometryPipeline,
    PipelineState,
    PreviousFrame,
    TrackingStatus,
)

__all__ = [
    # Pipeline
    "OdometryPipeline",
    "CycleResult",
    "CycleTiming",
    "PipelineState",
    "PreviousFrame",
    "TrackingStatus",
    # Features
    "FeatureDetector",
    "Feature",
    "Features",
    "FeatureClass",
    "ClusterStats",
    "OBSTACLE_GUARDS",
    # Descriptors
    "patch_descriptor",
    "ssd",
    # Tracking
    "FeatureTracker",
    "Correspondence",
    "Correspondences",
    # Motion Estimation
    "MotionEstimator",
    "MotionEstimate",
    "wrap_angle",
    # Map
    "LandmarkMap",
    "Landmark",
    "MapUpdate",
]
