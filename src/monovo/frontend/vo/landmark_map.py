"""Sparse 2D landmark map with nearest-landmark data association."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ...config import OdometryConfig
from ..pose import Pose2D
from .feature_detector import Feature

logger = logging.getLogger(__name__)


@dataclass
class Landmark:
    """A persistent estimate of a physical feature's world position.

    Attributes:
        id: Unique identifier, stable for the map's lifetime
        x: World x (meters)
        y: World y (meters)
        quality: Observation count, saturating at the map's quality cap
    """

    id: int
    x: float
    y: float
    quality: int = 1

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    def fuse(self, x: float, y: float, max_quality: int) -> None:
        """Merge a new observation, weighting the old estimate by quality.

        Args:
            x: Observed world x
            y: Observed world y
            max_quality: Cap for quality
        """
        q = self.quality
        self.x = (self.x * q + x) / (q + 1)
        self.y = (self.y * q + y) / (q + 1)
        self.quality = min(q + 1, max_quality)


@dataclass
class MapUpdate:
    """Outcome of one LandmarkMap.update() call."""

    num_fused: int = 0
    num_added: int = 0
    num_rejected: int = 0  # New observations refused because the map is full


class LandmarkMap:
    """Incremental world-coordinate landmark store.

    Every observation is projected to world coordinates using the current
    pose and associated with the first landmark within the match distance.
    Matched landmarks are refined by quality-weighted averaging; unmatched
    observations become new landmarks until the map reaches its size cap.
    Landmarks are never removed.
    """

    def __init__(self, config: OdometryConfig | None = None) -> None:
        """Initialize empty map."""
        self._config = config or OdometryConfig()
        self._landmarks: list[Landmark] = []
        # Positions mirrored as an array for vectorised association
        self._positions = np.empty((0, 2), dtype=np.float64)
        self._next_id: int = 0
        self._capacity_logged = False

    def project(self, features: Iterable[Feature], pose: Pose2D) -> np.ndarray:
        """Project feature pixels into world coordinates.

        The offset from the optical centre is scaled to meters, rotated by
        the pose heading and added to the pose position.

        Args:
            features: Features detected in the current frame
            pose: Pose after this cycle's delta was applied

        Returns:
            Nx2 array of world positions
        """
        pixels = np.array([f.point for f in features], dtype=np.float64).reshape(-1, 2)
        offsets = (pixels - np.asarray(self._config.optical_center)) * self._config.pixel_to_meter
        return pose.transform_points(offsets)

    def update(self, features: Iterable[Feature], pose: Pose2D) -> MapUpdate:
        """Associate a frame's features with the map.

        Args:
            features: Features detected in the current frame
            pose: Pose after this cycle's delta was applied

        Returns:
            MapUpdate with fused / added / rejected counts
        """
        cfg = self._config
        match_distance = cfg.landmark_match_distance
        result = MapUpdate()

        for wx, wy in self.project(features, pose):
            index = self._find_match(wx, wy, match_distance)
            if index is not None:
                landmark = self._landmarks[index]
                landmark.fuse(wx, wy, cfg.max_landmark_quality)
                self._positions[index] = (landmark.x, landmark.y)
                result.num_fused += 1
            elif len(self._landmarks) < cfg.max_landmarks:
                self._add(wx, wy)
                result.num_added += 1
            else:
                result.num_rejected += 1

        if result.num_rejected and not self._capacity_logged:
            logger.info("landmark map full (%d); new observations are not admitted", cfg.max_landmarks)
            self._capacity_logged = True

        return result

    def _find_match(self, x: float, y: float, match_distance: float) -> int | None:
        """Return the index of the first landmark strictly within range."""
        if len(self._landmarks) == 0:
            return None
        dist = np.hypot(self._positions[:, 0] - x, self._positions[:, 1] - y)
        within = np.flatnonzero(dist < match_distance)
        if within.size == 0:
            return None
        return int(within[0])

    def _add(self, x: float, y: float) -> Landmark:
        landmark = Landmark(id=self._next_id, x=float(x), y=float(y), quality=1)
        self._next_id += 1
        self._landmarks.append(landmark)
        self._positions = np.vstack([self._positions, [[landmark.x, landmark.y]]])
        return landmark

    def get_landmark(self, landmark_id: int) -> Landmark | None:
        """Get landmark by ID, or None if unknown."""
        for landmark in self._landmarks:
            if landmark.id == landmark_id:
                return landmark
        return None

    def get_all_landmarks(self) -> list[Landmark]:
        """Return copies of all landmarks, in insertion order."""
        return [
            Landmark(id=lm.id, x=lm.x, y=lm.y, quality=lm.quality) for lm in self._landmarks
        ]

    def positions(self) -> np.ndarray:
        """Return Nx2 array of landmark world positions."""
        return self._positions.copy()

    @property
    def num_landmarks(self) -> int:
        return len(self._landmarks)

    @property
    def is_full(self) -> bool:
        return len(self._landmarks) >= self._config.max_landmarks

    def clear(self) -> None:
        """Remove all landmarks and restart identifiers."""
        self._landmarks.clear()
        self._positions = np.empty((0, 2), dtype=np.float64)
        self._next_id = 0
        self._capacity_logged = False

    def __len__(self) -> int:
        return len(self._landmarks)
