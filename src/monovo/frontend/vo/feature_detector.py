"""FAST-like corner detection with obstacle/environment classification."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

import numpy as np

from ...config import OdometryConfig
from ..frame import Frame

logger = logging.getLogger(__name__)

# Bresenham circle of radius 3 as (dx, dy), clockwise from the left
RING_OFFSETS = np.array(
    [
        [-3, 0], [-3, 1], [-2, 2], [-1, 3],
        [0, 3], [1, 3], [2, 2], [3, 1],
        [3, 0], [3, -1], [2, -2], [1, -3],
        [0, -3], [-1, -3], [-2, -2], [-3, -1],
    ],
    dtype=np.int64,
)


class FeatureClass(Enum):
    """Scene role of a detected corner."""

    OBSTACLE = "obstacle"
    ENVIRONMENT = "environment"


@dataclass(frozen=True)
class Feature:
    """A corner detected in a single frame.

    Attributes:
        x: Pixel column
        y: Pixel row
        strength: max(brighter, darker), in [min_ring_support, 16]
        brighter: Ring points brighter than the centre by the threshold
        darker: Ring points darker than the centre by the threshold
        depth: Depth at the pixel in meters, if a depth map was supplied
        classification: Obstacle or environment
    """

    x: int
    y: int
    strength: int
    brighter: int
    darker: int
    depth: float | None = None
    classification: FeatureClass = FeatureClass.OBSTACLE

    @property
    def point(self) -> tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Features:
    """Ordered, immutable list of the features kept for one frame."""

    items: tuple[Feature, ...] = ()

    @property
    def points(self) -> np.ndarray:
        """Return Nx2 array of feature (x, y) coordinates."""
        if len(self.items) == 0:
            return np.empty((0, 2), dtype=np.float32)
        return np.array([f.point for f in self.items], dtype=np.float32)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Feature:
        return self.items[index]


@dataclass(frozen=True)
class ClusterStats:
    """Spatial density statistics of one frame's corner candidates.

    Attributes:
        densities: Candidate count per (col, row) cluster cell
        cell_size: Cluster cell size in pixels
        median_density: Median cluster density (1 when there are no clusters)
        average_density: Mean cluster density
        dynamic_threshold: Density above which a cluster counts as dense
    """

    densities: dict[tuple[int, int], int]
    cell_size: int
    median_density: float
    average_density: float
    dynamic_threshold: float

    @classmethod
    def from_candidates(
        cls, candidates: list[Feature], config: OdometryConfig
    ) -> ClusterStats:
        cell = config.cluster_cell_size
        densities = Counter((f.x // cell, f.y // cell) for f in candidates)

        sizes = sorted(densities.values())
        median = sizes[len(sizes) // 2] if sizes else 1
        average = len(candidates) / max(len(densities), 1)
        threshold = max(config.min_density_threshold, average * config.density_multiplier)

        return cls(
            densities=dict(densities),
            cell_size=cell,
            median_density=float(median),
            average_density=float(average),
            dynamic_threshold=float(threshold),
        )

    def density_at(self, x: int, y: int) -> int:
        return self.densities.get((x // self.cell_size, y // self.cell_size), 0)


@dataclass(frozen=True)
class _GuardContext:
    stats: ClusterStats
    width: int
    height: int
    config: OdometryConfig


# Obstacle guards. Each is an independent predicate; a candidate is an
# obstacle as soon as any of them holds.


def _near_depth(f: Feature, ctx: _GuardContext) -> bool:
    return f.depth is not None and f.depth < ctx.config.near_depth


def _mid_depth_cluster(f: Feature, ctx: _GuardContext) -> bool:
    cfg = ctx.config
    return (
        f.depth is not None
        and cfg.mid_depth_min < f.depth < cfg.mid_depth_max
        and ctx.stats.density_at(f.x, f.y) >= cfg.mid_depth_min_density
    )


def _dense_cluster(f: Feature, ctx: _GuardContext) -> bool:
    return (
        ctx.stats.density_at(f.x, f.y)
        >= ctx.stats.dynamic_threshold * ctx.config.dense_cluster_factor
    )


def _balanced_edge(f: Feature, ctx: _GuardContext) -> bool:
    cfg = ctx.config
    return (
        f.strength >= cfg.edge_min_strength
        and abs(f.brighter - f.darker) <= cfg.edge_max_imbalance
    )


def _central_cluster(f: Feature, ctx: _GuardContext) -> bool:
    cfg = ctx.config
    x_lo, x_hi = cfg.central_x_range
    y_lo, y_hi = cfg.central_y_range
    return (
        ctx.width * x_lo < f.x < ctx.width * x_hi
        and ctx.height * y_lo < f.y < ctx.height * y_hi
        and ctx.stats.density_at(f.x, f.y)
        >= ctx.stats.median_density * cfg.central_density_factor
    )


def _strong_corner(f: Feature, ctx: _GuardContext) -> bool:
    return f.strength >= ctx.config.strong_corner_strength


def _cluster_anomaly(f: Feature, ctx: _GuardContext) -> bool:
    return (
        ctx.stats.density_at(f.x, f.y)
        > ctx.stats.median_density * ctx.config.anomaly_density_factor
    )


OBSTACLE_GUARDS: tuple[tuple[str, Callable[[Feature, _GuardContext], bool]], ...] = (
    ("near_depth", _near_depth),
    ("mid_depth_cluster", _mid_depth_cluster),
    ("dense_cluster", _dense_cluster),
    ("balanced_edge", _balanced_edge),
    ("central_cluster", _central_cluster),
    ("strong_corner", _strong_corner),
    ("cluster_anomaly", _cluster_anomaly),
)


class FeatureDetector:
    """Coarse-stride FAST-like corner detector that keeps obstacle corners.

    Each sampled pixel is compared against a 16-point ring; it is a corner
    when enough ring points are all brighter or all darker than it. Corners
    are thinned with grid non-maximum suppression, grouped into spatial
    clusters, and classified as obstacle (isolated object, close depth) or
    environment (background texture). Only obstacles are returned.
    """

    def __init__(self, config: OdometryConfig | None = None) -> None:
        """Initialize the detector.

        Args:
            config: Detection and classification constants
        """
        self._config = config or OdometryConfig()

    def detect(self, frame: Frame) -> Features:
        """Detect obstacle-classified corners in a frame.

        Args:
            frame: Grayscale frame, optionally with depth

        Returns:
            Features in detection order, at most config.max_features long.
            An empty or tiny frame yields an empty Features.
        """
        candidates = self.detect_candidates(frame)
        labelled = self.classify(frame, candidates)

        kept = [f for f in labelled if f.classification is FeatureClass.OBSTACLE]
        kept = kept[: self._config.max_features]

        logger.debug("kept %d of %d corner candidates as obstacles", len(kept), len(candidates))
        return Features(items=tuple(kept))

    def detect_candidates(self, frame: Frame) -> list[Feature]:
        """Run the ring test and grid non-maximum suppression.

        Args:
            frame: Grayscale frame, optionally with depth

        Returns:
            Unclassified corner candidates, one per occupied NMS cell, in the
            order their cells were first populated by a row-major scan.
        """
        cfg = self._config
        image = frame.image
        height, width = image.shape
        margin = cfg.border_margin

        ys = np.arange(margin, height - margin, cfg.stride)
        xs = np.arange(margin, width - margin, cfg.stride)
        if ys.size == 0 or xs.size == 0:
            return []

        pixels = image.astype(np.int16)
        centre = pixels[np.ix_(ys, xs)]
        brighter = np.zeros(centre.shape, dtype=np.int16)
        darker = np.zeros(centre.shape, dtype=np.int16)

        for dx, dy in RING_OFFSETS:
            ring = pixels[np.ix_(ys + dy, xs + dx)]
            brighter += ring > centre + cfg.corner_threshold
            darker += ring < centre - cfg.corner_threshold

        is_corner = (brighter >= cfg.min_ring_support) | (darker >= cfg.min_ring_support)
        rows, cols = np.nonzero(is_corner)  # row-major, like a y-then-x scan

        cell = cfg.nms_cell_size
        grid: dict[tuple[int, int], Feature] = {}
        for r, c in zip(rows, cols):
            x, y = int(xs[c]), int(ys[r])
            b, d = int(brighter[r, c]), int(darker[r, c])
            strength = max(b, d)

            key = (x // cell, y // cell)
            best = grid.get(key)
            if best is None or best.strength < strength:
                grid[key] = Feature(
                    x=x,
                    y=y,
                    strength=strength,
                    brighter=b,
                    darker=d,
                    depth=frame.depth_at(x, y),
                )

        return list(grid.values())

    @staticmethod
    def _obstacle_reason(feature: Feature, ctx: _GuardContext) -> str | None:
        """Return the name of the first obstacle guard that fires, or None."""
        for name, guard in OBSTACLE_GUARDS:
            if guard(feature, ctx):
                return name
        return None

    def classify(self, frame: Frame, candidates: list[Feature]) -> list[Feature]:
        """Label every candidate as obstacle or environment.

        Unlike detect(), environment points are returned too, which is
        useful when inspecting the classifier.

        Args:
            frame: Frame the candidates were detected in
            candidates: Output of detect_candidates()

        Returns:
            Candidates with classification filled in, same order
        """
        if not candidates:
            return []
        ctx = _GuardContext(
            stats=ClusterStats.from_candidates(candidates, self._config),
            width=frame.width,
            height=frame.height,
            config=self._config,
        )
        labelled = []
        for f in candidates:
            is_obstacle = self._obstacle_reason(f, ctx) is not None
            labelled.append(
                Feature(
                    x=f.x,
                    y=f.y,
                    strength=f.strength,
                    brighter=f.brighter,
                    darker=f.darker,
                    depth=f.depth,
                    classification=(
                        FeatureClass.OBSTACLE if is_obstacle else FeatureClass.ENVIRONMENT
                    ),
                )
            )
        return labelled

    @property
    def config(self) -> OdometryConfig:
        return self._config
