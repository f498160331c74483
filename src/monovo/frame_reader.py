"""Recorded-sequence reader: a directory of grayscale frames with optional depth."""

from pathlib import Path
from typing import Iterator

import cv2
import numpy as np

from .frontend.frame import Frame


class FrameReader:
    """Reader for a recorded monocular sequence.

    Expected layout::

        sequence/
            data.csv          # timestamp_ns,filename
            data/             # grayscale or colour images
            depth/            # optional <image stem>.npy depth maps (meters)
    """

    def __init__(self, sequence_path: str = "data/sequence") -> None:
        """Initialize reader with path to a recorded sequence.

        Args:
            sequence_path: Path to the sequence directory

        Raises:
            FileNotFoundError: If the sequence path or required files don't exist
            ValueError: If data.csv is empty or invalid
        """
        self.sequence_path = Path(sequence_path)
        self.data_path = self.sequence_path / "data"
        self.depth_path = self.sequence_path / "depth"
        self.csv_path = self.sequence_path / "data.csv"

        self._validate_paths()

        self._image_list = self._load_image_list()

        if not self._image_list:
            raise ValueError(f"No images found in {self.csv_path}")

        self._current_idx = 0

    def _validate_paths(self) -> None:
        """Validate that all required paths exist."""
        if not self.sequence_path.exists():
            raise FileNotFoundError(f"Sequence path does not exist: {self.sequence_path}")

        if not self.data_path.exists():
            raise FileNotFoundError(
                f"data directory not found: {self.data_path}\n"
                f"Expected structure: {self.sequence_path}/data/"
            )

        if not self.csv_path.exists():
            raise FileNotFoundError(
                f"data.csv not found: {self.csv_path}\n"
                f"This file is required to list frame timestamps and filenames."
            )

    def _load_image_list(self) -> list[tuple[int, str]]:
        """Parse data.csv to get the frame list.

        CSV format:
            #timestamp [ns],filename
            1403636579763555584,1403636579763555584.png

        Returns:
            List of (timestamp_ns, filename) tuples in file order
        """
        image_list = []

        with open(self.csv_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue

                try:
                    timestamp_str, filename = line.split(",")
                    timestamp_ns = int(timestamp_str.strip())
                    image_list.append((timestamp_ns, filename.strip()))
                except ValueError as e:
                    raise ValueError(
                        f"Invalid line in {self.csv_path}: '{line}'\n"
                        f"Expected format: timestamp,filename"
                    ) from e

        return image_list

    def _load_frame(self, filename: str, timestamp_ns: int) -> Frame:
        """Load an image and its depth map (if present) as a Frame.

        Raises:
            FileNotFoundError: If the image file doesn't exist
            ValueError: If image loading fails
        """
        image_path = self.data_path / filename
        if not image_path.exists():
            raise FileNotFoundError(f"Frame image not found: {image_path}")

        image = cv2.imread(str(image_path), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise ValueError(f"Failed to load image: {image_path}")

        depth = None
        depth_file = self.depth_path / f"{Path(filename).stem}.npy"
        if depth_file.exists():
            depth = np.load(depth_file)

        return Frame(image=image, depth=depth, timestamp_ns=timestamp_ns)

    def get_next_frame(self) -> Frame | None:
        """Get the next frame, or None when the sequence is exhausted.

        Example:
            >>> reader = FrameReader('data/sequence')
            >>> while (frame := reader.get_next_frame()) is not None:
            ...     print(f"Processing frame at {frame.timestamp_ns}ns")
        """
        if self._current_idx >= len(self._image_list):
            return None

        timestamp_ns, filename = self._image_list[self._current_idx]
        frame = self._load_frame(filename, timestamp_ns)

        self._current_idx += 1
        return frame

    def reset(self) -> None:
        """Reset iterator to beginning of sequence."""
        self._current_idx = 0

    @property
    def is_exhausted(self) -> bool:
        """Return True once every frame has been delivered."""
        return self._current_idx >= len(self._image_list)

    def __len__(self) -> int:
        """Return total number of frames in the sequence."""
        return len(self._image_list)

    def __iter__(self) -> Iterator[Frame]:
        """Allow iteration over the sequence (restarts from the beginning)."""
        self.reset()
        return self

    def __next__(self) -> Frame:
        frame = self.get_next_frame()
        if frame is None:
            raise StopIteration
        return frame
