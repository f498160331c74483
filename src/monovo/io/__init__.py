"""Frame sources for live video."""

from .video_source import VideoFrameSource

__all__ = ["VideoFrameSource"]
