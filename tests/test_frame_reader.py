"""Tests for FrameReader class."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from monovo import FrameReader

TIMESTAMPS = [1403636579763555584, 1403636579813555456, 1403636579863555328]


@pytest.fixture
def mock_sequence(tmp_path: Path) -> Path:
    """Create a mock recorded sequence for testing.

    Args:
        tmp_path: Pytest temporary directory fixture

    Returns:
        Path to the sequence directory
    """
    sequence = tmp_path / "sequence"
    data = sequence / "data"
    data.mkdir(parents=True)

    # Image i has constant value i * 50
    for i, timestamp in enumerate(TIMESTAMPS):
        img = np.full((100, 120), i * 50, dtype=np.uint8)
        cv2.imwrite(str(data / f"{timestamp}.png"), img)

    csv_content = "#timestamp [ns],filename\n"
    for timestamp in TIMESTAMPS:
        csv_content += f"{timestamp},{timestamp}.png\n"
    (sequence / "data.csv").write_text(csv_content)

    return sequence


class TestFrameReader:
    """Test suite for FrameReader class."""

    def test_initialization(self, mock_sequence: Path):
        """Test that FrameReader initializes correctly."""
        reader = FrameReader(str(mock_sequence))

        assert reader.sequence_path == mock_sequence
        assert len(reader) == 3
        assert reader._current_idx == 0

    def test_missing_sequence_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Sequence path does not exist"):
            FrameReader(str(tmp_path / "nonexistent"))

    def test_missing_data_directory(self, tmp_path: Path):
        sequence = tmp_path / "sequence"
        sequence.mkdir()

        with pytest.raises(FileNotFoundError, match="data directory not found"):
            FrameReader(str(sequence))

    def test_missing_data_csv(self, tmp_path: Path):
        sequence = tmp_path / "sequence"
        (sequence / "data").mkdir(parents=True)

        with pytest.raises(FileNotFoundError, match="data.csv not found"):
            FrameReader(str(sequence))

    def test_empty_csv(self, tmp_path: Path):
        """Test that a header-only data.csv is rejected."""
        sequence = tmp_path / "sequence"
        (sequence / "data").mkdir(parents=True)
        (sequence / "data.csv").write_text("#timestamp [ns],filename\n")

        with pytest.raises(ValueError, match="No images found"):
            FrameReader(str(sequence))

    def test_invalid_csv_line(self, mock_sequence: Path):
        (mock_sequence / "data.csv").write_text("not-a-timestamp,foo.png\n")

        with pytest.raises(ValueError, match="Invalid line"):
            FrameReader(str(mock_sequence))

    def test_get_next_frame(self, mock_sequence: Path):
        """Test getting frames in file order."""
        reader = FrameReader(str(mock_sequence))

        for i, expected_ts in enumerate(TIMESTAMPS):
            frame = reader.get_next_frame()
            assert frame is not None
            assert frame.timestamp_ns == expected_ts
            assert frame.image.shape == (100, 120)
            assert frame.image.dtype == np.uint8
            assert np.all(frame.image == i * 50)
            assert not frame.has_depth

        assert reader.get_next_frame() is None

    def test_reset(self, mock_sequence: Path):
        """Test that reset returns iterator to beginning."""
        reader = FrameReader(str(mock_sequence))
        reader.get_next_frame()
        reader.get_next_frame()
        assert reader._current_idx == 2

        reader.reset()

        frame = reader.get_next_frame()
        assert frame.timestamp_ns == TIMESTAMPS[0]

    def test_is_exhausted(self, mock_sequence: Path):
        """Test that the reader reports exhaustion after the last frame."""
        reader = FrameReader(str(mock_sequence))

        for _ in TIMESTAMPS:
            assert not reader.is_exhausted
            reader.get_next_frame()

        assert reader.is_exhausted
        reader.reset()
        assert not reader.is_exhausted

    def test_multiple_iterations(self, mock_sequence: Path):
        """Test that the reader can be iterated more than once."""
        reader = FrameReader(str(mock_sequence))

        assert [f.timestamp_ns for f in reader] == TIMESTAMPS
        assert sum(1 for _ in reader) == 3

    def test_depth_maps_are_attached(self, mock_sequence: Path):
        """Test that depth/<stem>.npy is loaded alongside its image."""
        depth_dir = mock_sequence / "depth"
        depth_dir.mkdir()
        depth = np.full((100, 120), 1.25, dtype=np.float32)
        np.save(depth_dir / f"{TIMESTAMPS[0]}.npy", depth)

        reader = FrameReader(str(mock_sequence))
        first = reader.get_next_frame()
        second = reader.get_next_frame()

        assert first.has_depth
        assert first.depth_at(10, 10) == pytest.approx(1.25)
        assert not second.has_depth

    def test_missing_image(self, mock_sequence: Path):
        (mock_sequence / "data" / f"{TIMESTAMPS[0]}.png").unlink()

        reader = FrameReader(str(mock_sequence))

        with pytest.raises(FileNotFoundError, match="Frame image not found"):
            reader.get_next_frame()

    def test_csv_parsing_with_whitespace(self, tmp_path: Path):
        """Test CSV parsing handles whitespace correctly."""
        sequence = tmp_path / "sequence"
        data = sequence / "data"
        data.mkdir(parents=True)

        timestamp = TIMESTAMPS[0]
        cv2.imwrite(str(data / f"{timestamp}.png"), np.zeros((10, 10), dtype=np.uint8))
        (sequence / "data.csv").write_text(f"  {timestamp}  ,  {timestamp}.png  \n")

        reader = FrameReader(str(sequence))

        assert len(reader) == 1
        assert reader.get_next_frame() is not None
