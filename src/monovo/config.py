"""Construction-time configuration for the odometry pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from pathlib import Path

import yaml


class ConfigurationError(ValueError):
    """Raised when an OdometryConfig holds values no cycle could run with."""


def _pair(name: str, value) -> tuple[float, float]:
    """Return value as two floats or raise ConfigurationError."""
    try:
        if isinstance(value, str):
            raise TypeError(name)
        first, second = value
        return float(first), float(second)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a pair of numbers, got {value!r}") from e


@dataclass(frozen=True)
class OdometryConfig:
    """All tunable constants of the visual odometry front end.

    Defaults reproduce the behaviour tuned for a 640x480 phone camera.
    Pixel quantities are in pixels, depths and distances in meters and
    angles in radians.
    """

    # Corner detection
    stride: int = 3  # Sample every Nth pixel in x and y
    border_margin: int = 10  # No detection or matching this close to the edge
    corner_threshold: int = 20  # Intensity difference for brighter/darker
    min_ring_support: int = 12  # Ring points (of 16) needed for a corner
    nms_cell_size: int = 6  # Non-maximum suppression grid (pixels)

    # Obstacle / environment classification
    cluster_cell_size: int = 35
    min_density_threshold: float = 2.5
    density_multiplier: float = 1.4  # avg density -> dynamic threshold
    dense_cluster_factor: float = 1.1
    near_depth: float = 1.8
    mid_depth_min: float = 0.5
    mid_depth_max: float = 4.0
    mid_depth_min_density: int = 2
    edge_min_strength: int = 15
    edge_max_imbalance: int = 2
    central_x_range: tuple[float, float] = (0.3, 0.7)  # Fraction of width
    central_y_range: tuple[float, float] = (0.2, 0.8)  # Fraction of height
    central_density_factor: float = 1.4
    strong_corner_strength: int = 16
    anomaly_density_factor: float = 2.2
    max_features: int = 1500

    # Tracking
    patch_radius: int = 3  # Descriptor is (2r+1)^2 intensities
    search_radius: int = 20
    search_step: int = 3
    max_tracked_features: int = 300  # Per cycle
    max_match_ssd: float = 3000.0

    # Motion estimation
    min_correspondences: int = 5
    optical_center: tuple[float, float] = (320.0, 240.0)
    pixel_to_meter: float = 0.001
    max_rotation_delta: float = 0.5

    # Mapping
    landmark_match_distance_px: float = 10.0
    max_landmarks: int = 500
    max_landmark_quality: int = 10

    max_trajectory_length: int = 500

    def __post_init__(self) -> None:
        """Fail fast on values that would break a cycle."""
        positive = (
            "stride",
            "corner_threshold",
            "min_ring_support",
            "nms_cell_size",
            "cluster_cell_size",
            "min_density_threshold",
            "density_multiplier",
            "dense_cluster_factor",
            "near_depth",
            "mid_depth_max",
            "edge_min_strength",
            "central_density_factor",
            "strong_corner_strength",
            "anomaly_density_factor",
            "max_features",
            "patch_radius",
            "search_radius",
            "search_step",
            "max_tracked_features",
            "max_match_ssd",
            "min_correspondences",
            "pixel_to_meter",
            "max_rotation_delta",
            "landmark_match_distance_px",
            "max_landmarks",
            "max_landmark_quality",
            "max_trajectory_length",
        )
        for name in positive:
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        non_negative = ("border_margin", "mid_depth_min", "mid_depth_min_density", "edge_max_imbalance")
        for name in non_negative:
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {value}")

        if self.border_margin < 3:
            raise ConfigurationError(
                f"border_margin must cover the radius-3 corner ring, got {self.border_margin}"
            )
        if self.min_ring_support > 16:
            raise ConfigurationError(
                f"min_ring_support cannot exceed the 16 ring points, got {self.min_ring_support}"
            )
        if self.mid_depth_min >= self.mid_depth_max:
            raise ConfigurationError(
                f"mid_depth_min ({self.mid_depth_min}) must be below "
                f"mid_depth_max ({self.mid_depth_max})"
            )
        for name in ("central_x_range", "central_y_range"):
            lo, hi = _pair(name, getattr(self, name))
            if not 0.0 <= lo < hi <= 1.0:
                raise ConfigurationError(
                    f"{name} must satisfy 0 <= low < high <= 1, got {(lo, hi)}"
                )
        cx, cy = _pair("optical_center", self.optical_center)
        if not (math.isfinite(cx) and math.isfinite(cy)):
            raise ConfigurationError(f"optical_center must be finite, got {self.optical_center}")
        if self.search_step > self.search_radius:
            raise ConfigurationError(
                f"search_step ({self.search_step}) must not exceed "
                f"search_radius ({self.search_radius})"
            )

    @property
    def landmark_match_distance(self) -> float:
        """Return the data-association radius in meters."""
        return self.landmark_match_distance_px * self.pixel_to_meter

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> OdometryConfig:
        """Load a configuration from a YAML mapping of field overrides.

        Args:
            yaml_path: Path to a YAML file. Keys are OdometryConfig field
                names; omitted fields keep their defaults.

        Returns:
            Validated OdometryConfig

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigurationError: If the file has unknown keys or invalid values
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping in {yaml_path}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys in {yaml_path}: {unknown}")

        # YAML has no tuples; other shapes are left for validation to reject
        for name in ("central_x_range", "central_y_range", "optical_center"):
            if isinstance(data.get(name), list):
                data[name] = tuple(data[name])

        return cls(**data)
