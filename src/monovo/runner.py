"""Frame-driven cooperative loop around the odometry pipeline.

One cycle runs to completion before the next starts. A stop request keeps
the next cycle from being scheduled but lets the current one finish; a reset
request is applied only between cycles. Both may come from another thread
(e.g. a UI), which is the only cross-thread interaction.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Protocol

from .frontend.frame import Frame
from .frontend.vo import CycleResult, OdometryPipeline, TrackingStatus

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """Anything that can deliver the next frame, or None when none is available.

    A None frame with is_exhausted False is a missed frame (e.g. a dropped
    camera read); the runner skips that cycle and asks again. A None frame
    with is_exhausted True is the end of the stream.
    """

    def get_next_frame(self) -> Frame | None: ...

    @property
    def is_exhausted(self) -> bool: ...


@dataclass
class RunStats:
    """Summary of one OdometryRunner.run() call."""

    num_cycles: int = 0
    num_degraded: int = 0
    num_resets: int = 0
    num_skipped: int = 0  # Polls that returned no frame
    total_ms: float = 0.0

    @property
    def mean_cycle_ms(self) -> float:
        return self.total_ms / self.num_cycles if self.num_cycles else 0.0


class OdometryRunner:
    """Drives an OdometryPipeline from a FrameSource."""

    def __init__(
        self,
        source: FrameSource,
        pipeline: OdometryPipeline | None = None,
        on_cycle: Callable[[CycleResult], None] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            source: Frame source; get_next_frame() is called once per cycle
            pipeline: Pipeline to drive (a default one is built if None)
            on_cycle: Called with every CycleResult, e.g. for display
        """
        self._source = source
        self._pipeline = pipeline or OdometryPipeline()
        self._on_cycle = on_cycle
        self._stop = threading.Event()
        self._reset = threading.Event()

    def run(self, max_cycles: int | None = None) -> RunStats:
        """Process frames until the source is exhausted, stop() or max_cycles.

        Polls that return no frame from a source that is not exhausted are
        skipped without running a cycle. A stopped runner stays stopped;
        later calls return immediately.

        Args:
            max_cycles: Optional cap on the number of processed cycles

        Returns:
            RunStats for this run
        """
        stats = RunStats()

        while not self._stop.is_set():
            if max_cycles is not None and stats.num_cycles >= max_cycles:
                break

            if self._reset.is_set():
                self._reset.clear()
                self._pipeline.reset()
                stats.num_resets += 1

            frame = self._source.get_next_frame()
            if frame is None:
                if self._source.is_exhausted:
                    logger.info("frame source exhausted after %d cycles", stats.num_cycles)
                    break
                stats.num_skipped += 1
                logger.debug("no frame available, skipping cycle")
                continue

            result = self._pipeline.process_frame(frame)
            stats.num_cycles += 1
            stats.total_ms += result.timing.total_ms
            if result.tracking_status == TrackingStatus.DEGRADED:
                stats.num_degraded += 1

            if self._on_cycle is not None:
                self._on_cycle(result)

        return stats

    def stop(self) -> None:
        """Prevent the next cycle from starting; the current one finishes."""
        self._stop.set()

    def request_reset(self) -> None:
        """Reset the pipeline before the next cycle starts."""
        self._reset.set()

    @property
    def pipeline(self) -> OdometryPipeline:
        return self._pipeline
