"""Frame-to-frame feature tracking by windowed patch matching."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ...config import OdometryConfig
from ..frame import Frame
from .descriptor import patch_descriptor
from .feature_detector import Feature, Features

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Correspondence:
    """A previous-frame feature and where it was found in the current frame.

    Attributes:
        prev: Feature from the previous frame
        curr_x: Matched column in the current frame
        curr_y: Matched row in the current frame
        cost: SSD between the two intensity patches
    """

    prev: Feature
    curr_x: int
    curr_y: int
    cost: float

    @property
    def displacement(self) -> tuple[int, int]:
        """Return (curr - prev) in pixels."""
        return (self.curr_x - self.prev.x, self.curr_y - self.prev.y)


@dataclass(frozen=True)
class Correspondences:
    """Container for the matches produced in one tracking cycle."""

    items: tuple[Correspondence, ...] = ()

    @property
    def prev_points(self) -> np.ndarray:
        """Return Nx2 float64 array of previous-frame (x, y)."""
        if len(self.items) == 0:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([(c.prev.x, c.prev.y) for c in self.items], dtype=np.float64)

    @property
    def curr_points(self) -> np.ndarray:
        """Return Nx2 float64 array of current-frame (x, y)."""
        if len(self.items) == 0:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([(c.curr_x, c.curr_y) for c in self.items], dtype=np.float64)

    @property
    def costs(self) -> np.ndarray:
        """Return (N,) array of match costs."""
        return np.array([c.cost for c in self.items], dtype=np.float64)

    @classmethod
    def from_points(
        cls,
        prev_points: np.ndarray,
        curr_points: np.ndarray,
        costs: np.ndarray | None = None,
    ) -> Correspondences:
        """Build correspondences directly from point arrays.

        Useful for feeding the motion estimator with synthetic matches.

        Args:
            prev_points: Nx2 previous-frame (x, y)
            curr_points: Nx2 current-frame (x, y)
            costs: Optional (N,) match costs (default zeros)
        """
        prev_points = np.asarray(prev_points).reshape(-1, 2)
        curr_points = np.asarray(curr_points).reshape(-1, 2)
        if len(prev_points) != len(curr_points):
            raise ValueError(
                f"Point count mismatch: {len(prev_points)} vs {len(curr_points)}"
            )
        if costs is None:
            costs = np.zeros(len(prev_points))

        items = tuple(
            Correspondence(
                prev=Feature(x=int(p[0]), y=int(p[1]), strength=0, brighter=0, darker=0),
                curr_x=int(c[0]),
                curr_y=int(c[1]),
                cost=float(cost),
            )
            for p, c, cost in zip(prev_points, curr_points, costs)
        )
        return cls(items=items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Correspondence]:
        return iter(self.items)


class FeatureTracker:
    """Finds where previous-frame features moved to in the current frame.

    For a bounded subset of previous features, the intensity patch around the
    feature is compared (sum of squared differences, the same cost as
    descriptor.ssd) against patches at every offset of a coarse square search
    window in the current frame. The neighbourhood of the best coarse offset
    is then searched at single-pixel resolution, so motions that fall between
    coarse grid points are still found. The best offset is kept if its cost
    is low enough; otherwise the feature is dropped. This bounds the
    worst-case cost per cycle instead of computing dense optical flow.
    """

    def __init__(self, config: OdometryConfig | None = None) -> None:
        """Initialize the tracker.

        Args:
            config: Search window, sampling and acceptance constants
        """
        self._config = config or OdometryConfig()

        radius, step = self._config.search_radius, self._config.search_step
        reach = (radius // step) * step
        # Centred on zero so a stationary point is always a candidate
        self._offsets = np.arange(-reach, reach + 1, step)
        # Single-pixel neighbourhood covering the gap between coarse offsets
        self._refine_offsets = np.arange(-(step - 1), step)

    def track(
        self, prev_frame: Frame, prev_features: Features, curr_frame: Frame
    ) -> Correspondences:
        """Match previous features into the current frame.

        Args:
            prev_frame: Frame the features were detected in
            prev_features: Features detected in prev_frame
            curr_frame: Frame to search

        Returns:
            Correspondences, at most one per sampled previous feature
        """
        if len(prev_features) == 0:
            return Correspondences()

        cfg = self._config
        r = cfg.patch_radius
        size = 2 * r + 1
        step = cfg.search_step

        # Zero padding keeps out-of-image samples at 0, as patch_descriptor does
        pad = int(self._offsets[-1]) + step - 1 + r
        padded = np.pad(curr_frame.image.astype(np.int32), pad)

        sample_step = max(1, len(prev_features) // cfg.max_tracked_features)
        sampled = prev_features.items[::sample_step]

        matches = []
        for feat in sampled:
            reference = patch_descriptor(prev_frame, feat.x, feat.y, r).reshape(size, size)

            cand_x = feat.x + self._offsets
            cand_y = feat.y + self._offsets
            costs = self._window_costs(padded, pad, reference, feat, cand_x, cand_y, step)
            if not np.isfinite(costs).any():
                continue

            # argmin returns the first minimum in (dy, dx) row-major order
            iy, ix = divmod(int(np.argmin(costs)), len(self._offsets))
            best_x, best_y = int(cand_x[ix]), int(cand_y[iy])
            best_cost = float(costs[iy, ix])

            if step > 1 and best_cost > 0:
                fine_x = best_x + self._refine_offsets
                fine_y = best_y + self._refine_offsets
                fine = self._window_costs(padded, pad, reference, feat, fine_x, fine_y, 1)
                iy, ix = divmod(int(np.argmin(fine)), len(self._refine_offsets))
                # Only a strictly better neighbour replaces the coarse match
                if fine[iy, ix] < best_cost:
                    best_x, best_y = int(fine_x[ix]), int(fine_y[iy])
                    best_cost = float(fine[iy, ix])

            if best_cost < cfg.max_match_ssd:
                matches.append(
                    Correspondence(prev=feat, curr_x=best_x, curr_y=best_y, cost=best_cost)
                )

        logger.debug("tracked %d of %d sampled features", len(matches), len(sampled))
        return Correspondences(items=tuple(matches))

    def _window_costs(
        self,
        padded: np.ndarray,
        pad: int,
        reference: np.ndarray,
        feat: Feature,
        cand_x: np.ndarray,
        cand_y: np.ndarray,
        stride: int,
    ) -> np.ndarray:
        """SSD of reference against the patches centred on cand_y x cand_x.

        Candidates must be evenly spaced by stride. Centres inside the border
        margin or beyond the search radius cost inf.

        Returns:
            (len(cand_y), len(cand_x)) float64 cost grid
        """
        cfg = self._config
        r = cfg.patch_radius
        size = 2 * r + 1
        height, width = padded.shape[0] - 2 * pad, padded.shape[1] - 2 * pad

        top = int(cand_y[0]) - r + pad
        left = int(cand_x[0]) - r + pad
        rows = (len(cand_y) - 1) * stride + size
        cols = (len(cand_x) - 1) * stride + size
        region = padded[top : top + rows, left : left + cols]
        patches = sliding_window_view(region, (size, size))[::stride, ::stride]

        diff = patches - reference
        costs = np.einsum("ijkl,ijkl->ij", diff, diff).astype(np.float64)

        margin, radius = cfg.border_margin, cfg.search_radius
        valid_x = (cand_x >= margin) & (cand_x < width - margin) & (np.abs(cand_x - feat.x) <= radius)
        valid_y = (cand_y >= margin) & (cand_y < height - margin) & (np.abs(cand_y - feat.y) <= radius)
        costs[~(valid_y[:, None] & valid_x[None, :])] = np.inf
        return costs

    @property
    def search_offsets(self) -> np.ndarray:
        """Return the per-axis coarse offsets searched around a feature."""
        return self._offsets.copy()
