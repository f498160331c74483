"""monovo - Monocular visual odometry and lightweight landmark mapping."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .config import ConfigurationError, OdometryConfig
from .frame_reader import FrameReader
from .io import VideoFrameSource
from .frontend import Frame, Pose2D, PoseDelta
from .frontend.vo import (
    Correspondences,
    CycleResult,
    CycleTiming,
    Feature,
    FeatureClass,
    FeatureDetector,
    Features,
    FeatureTracker,
    Landmark,
    LandmarkMap,
    MotionEstimator,
    OdometryPipeline,
    TrackingStatus,
    patch_descriptor,
)
from .runner import FrameSource, OdometryRunner, RunStats
from .visualization import RerunVisualizer

__all__ = [
    "__version__",
    # Configuration
    "OdometryConfig",
    "ConfigurationError",
    # Frame sources
    "Frame",
    "FrameReader",
    "FrameSource",
    "VideoFrameSource",
    # Pipeline
    "OdometryPipeline",
    "OdometryRunner",
    "RunStats",
    "CycleResult",
    "CycleTiming",
    "TrackingStatus",
    # Pose
    "Pose2D",
    "PoseDelta",
    # Components
    "FeatureDetector",
    "Feature",
    "Features",
    "FeatureClass",
    "patch_descriptor",
    "FeatureTracker",
    "Correspondences",
    "MotionEstimator",
    "LandmarkMap",
    "Landmark",
    # Visualization
    "RerunVisualizer",
]
