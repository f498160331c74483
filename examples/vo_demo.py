#!/usr/bin/env python3
"""Demo script for monocular visual odometry with timing diagnostics.

Usage:
    uv run python examples/vo_demo.py                      # webcam 0
    uv run python examples/vo_demo.py data/sequence        # recorded sequence
    uv run python examples/vo_demo.py clip.mp4 vo.yaml     # video file + config
"""

import logging
import sys
from pathlib import Path

import numpy as np

from monovo import (
    CycleResult,
    FrameReader,
    OdometryConfig,
    OdometryPipeline,
    OdometryRunner,
    RerunVisualizer,
    TrackingStatus,
    VideoFrameSource,
)


def main() -> None:
    """Run the visual odometry demo."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    # Configuration
    source_arg = sys.argv[1] if len(sys.argv) > 1 else "0"
    config = OdometryConfig.from_yaml(sys.argv[2]) if len(sys.argv) > 2 else OdometryConfig()
    max_frames = None  # Set to int to limit frames

    # Initialize
    print("Initializing visual odometry pipeline...")
    if Path(source_arg).is_dir():
        source = FrameReader(source_arg)
        print(f"Processing {len(source)} recorded frames...")
    else:
        source = VideoFrameSource(int(source_arg) if source_arg.isdigit() else source_arg)
        print(f"Processing video source {source_arg!r} (Ctrl+C to stop)...")

    pipeline = OdometryPipeline(config)
    visualizer = RerunVisualizer("monovo-vo")
    print()

    # Column headers
    print(
        f"{'Cycle':>6} {'Status':^14} {'Feat':>5} {'Corr':>5} {'New':>4} {'Map':>5} | "
        f"{'Detect':>7} {'Track':>6} {'Map':>6} {'Total':>7} | Pose"
    )
    print("-" * 100)

    timing_totals = {"detect": 0.0, "track": 0.0, "map": 0.0}
    frames = {}

    def on_cycle(result: CycleResult) -> None:
        t = result.timing
        timing_totals["detect"] += t.detection_ms
        timing_totals["track"] += t.tracking_ms
        timing_totals["map"] += t.map_update_ms

        # Visualize (less frequently to reduce overhead)
        if result.cycle_id % 3 == 0:
            landmarks = pipeline.get_landmarks()
            visualizer.log_cycle(
                frames["last"],
                result,
                pipeline.get_trajectory_positions(),
                pipeline.get_landmark_positions(),
                np.array([lm.quality for lm in landmarks]),
            )

        # Print progress every 20 cycles or on degraded tracking
        if result.cycle_id % 20 == 0 or result.tracking_status == TrackingStatus.DEGRADED:
            pose = result.pose
            print(
                f"{result.cycle_id:6d} {result.tracking_status.value:^14} "
                f"{len(result.features):5d} {result.num_correspondences:5d} "
                f"{result.new_landmarks:4d} {result.num_landmarks:5d} | "
                f"{t.detection_ms:6.1f}ms {t.tracking_ms:5.1f}ms "
                f"{t.map_update_ms:5.1f}ms {t.total_ms:6.1f}ms | {pose}"
            )

    class RecordingSource:
        """Keeps the last frame so the callback can display it."""

        def get_next_frame(self):
            frame = source.get_next_frame()
            frames["last"] = frame
            return frame

        @property
        def is_exhausted(self):
            return source.is_exhausted

    runner = OdometryRunner(RecordingSource(), pipeline, on_cycle)
    try:
        stats = runner.run(max_cycles=max_frames)
    except KeyboardInterrupt:
        runner.stop()
        stats = None
    finally:
        if isinstance(source, VideoFrameSource):
            source.release()

    # Final statistics
    n = pipeline.num_cycles
    print()
    print("=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(f"Cycles processed:  {n}")
    print(f"Landmarks:         {pipeline.num_landmarks}")
    if stats is not None:
        print(f"Degraded cycles:   {stats.num_degraded} ({100 * stats.num_degraded / max(n, 1):.1f}%)")
        print(f"Missed frames:     {stats.num_skipped}")
        print()
        print("Average timing per cycle:")
        print(f"  Detection: {timing_totals['detect'] / max(n, 1):6.1f} ms")
        print(f"  Tracking:  {timing_totals['track'] / max(n, 1):6.1f} ms")
        print(f"  Map:       {timing_totals['map'] / max(n, 1):6.1f} ms")
        print(f"  Total:     {stats.mean_cycle_ms:6.1f} ms")
    print()
    print(f"Final pose: {pipeline.pose}")
    print()
    print("Done! Check Rerun viewer.")


if __name__ == "__main__":
    main()
