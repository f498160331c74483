"""Visualization utilities."""

from .rerun_visualizer import RerunVisualizer

__all__ = ["RerunVisualizer"]
