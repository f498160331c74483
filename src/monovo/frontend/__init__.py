"""Frontend components: frames, planar poses and the visual odometry pipeline."""

from .frame import Frame
from .pose import Pose2D, PoseDelta
from .vo import CycleResult, OdometryPipeline, TrackingStatus

__all__ = [
    "Frame",
    "Pose2D",
    "PoseDelta",
    "OdometryPipeline",
    "CycleResult",
    "TrackingStatus",
]
