"""
Tests for frame sinks.
"""

import os

import numpy as np
import pytest
from unittest.mock import patch, MagicMock
from PIL import Image

from sinks import ImageFileSink, MemorySink, VideoFileSink


@pytest.fixture
def frame():
    img = np.zeros((48, 64, 3), dtype=np.uint8)
    img[10:20, 10:20] = (255, 0, 0)
    return img


class TestImageFileSink:
    """Tests for ImageFileSink."""

    def test_writes_png(self, tmp_path, frame):
        path = str(tmp_path / "out" / "route.png")
        sink = ImageFileSink(path)
        sink.write(0, frame)

        assert sink.done() == path
        with Image.open(path) as img:
            assert img.size == (64, 48)
            assert img.getpixel((15, 15)) == (255, 0, 0)

    def test_second_frame_rejected(self, tmp_path, frame):
        sink = ImageFileSink(str(tmp_path / "route.png"))
        sink.write(0, frame)
        with pytest.raises(ValueError):
            sink.write(1, frame)

    def test_done_without_frame(self, tmp_path):
        with pytest.raises(ValueError):
            ImageFileSink(str(tmp_path / "route.png")).done()

    def test_abort_removes_file(self, tmp_path, frame):
        path = str(tmp_path / "route.png")
        sink = ImageFileSink(path)
        sink.write(0, frame)
        sink.abort()
        assert not os.path.exists(path)

    def test_abort_keeps_file_it_never_wrote(self, tmp_path):
        """A previous render at the same path survives an abort with no frame written."""
        path = tmp_path / "route.png"
        path.write_bytes(b"previous good render")

        ImageFileSink(str(path)).abort()

        assert path.read_bytes() == b"previous good render"

    def test_unknown_extension_leaves_existing_file(self, tmp_path, frame):
        path = tmp_path / "route.notanimage"
        path.write_bytes(b"previous good render")
        sink = ImageFileSink(str(path))

        with pytest.raises(ValueError, match="Unsupported image extension"):
            sink.write(0, frame)
        sink.abort()

        assert path.read_bytes() == b"previous good render"

    def test_jpeg_by_extension(self, tmp_path, frame):
        path = str(tmp_path / "route.jpg")
        ImageFileSink(path).write(0, frame)
        with Image.open(path) as img:
            assert img.format == "JPEG"


class TestVideoFileSink:
    """Tests for VideoFileSink with FFmpegWriter mocked."""

    @patch('sinks.FFmpegWriter')
    def test_opens_writer_on_first_frame(self, mock_writer_class, tmp_path, frame):
        writer = MagicMock()
        mock_writer_class.return_value.open.return_value = writer
        path = str(tmp_path / "route.mp4")

        sink = VideoFileSink(path, 4.0, (64, 48))
        mock_writer_class.assert_not_called()
        sink.write(0, frame)
        sink.write(1, frame)

        mock_writer_class.assert_called_once_with(path, 4.0, (64, 48), use_hw_encoding=True)
        assert writer.write.call_count == 2
        assert sink.done() == path
        writer.close.assert_called_once()

    @patch('sinks.FFmpegWriter')
    def test_out_of_order_rejected(self, mock_writer_class, tmp_path, frame):
        sink = VideoFileSink(str(tmp_path / "route.mp4"), 4.0, (64, 48))
        with pytest.raises(ValueError, match="in order"):
            sink.write(3, frame)

    @patch('sinks.FFmpegWriter')
    def test_abort_delegates(self, mock_writer_class, tmp_path, frame):
        writer = MagicMock()
        mock_writer_class.return_value.open.return_value = writer

        sink = VideoFileSink(str(tmp_path / "route.mp4"), 4.0, (64, 48))
        sink.write(0, frame)
        sink.abort()

        writer.abort.assert_called_once()

    @patch('sinks.FFmpegWriter')
    def test_abort_before_first_frame_keeps_file(self, mock_writer_class, tmp_path):
        path = tmp_path / "route.mp4"
        path.write_bytes(b"previous good render")

        VideoFileSink(str(path), 4.0, (64, 48)).abort()

        assert path.read_bytes() == b"previous good render"
        mock_writer_class.assert_not_called()

    @patch('sinks.FFmpegWriter')
    def test_failed_open_keeps_file(self, mock_writer_class, tmp_path, frame):
        """ffmpeg missing: the sink never wrote, so nothing is removed."""
        mock_writer_class.return_value.open.side_effect = FileNotFoundError("ffmpeg")
        path = tmp_path / "route.mp4"
        path.write_bytes(b"previous good render")

        sink = VideoFileSink(str(path), 4.0, (64, 48))
        with pytest.raises(FileNotFoundError):
            sink.write(0, frame)
        sink.abort()

        assert path.read_bytes() == b"previous good render"

    def test_done_without_frames(self, tmp_path):
        with pytest.raises(ValueError):
            VideoFileSink(str(tmp_path / "route.mp4"), 4.0, (64, 48)).done()


class TestMemorySink:
    """Tests for MemorySink."""

    def test_collects_copies(self, frame):
        sink = MemorySink()
        sink.write(0, frame)
        frame[:] = 0
        frames = sink.done()

        assert sink.indices == [0]
        assert frames[0][15, 15].tolist() == [255, 0, 0]
        assert sink.finished

    def test_abort_clears(self, frame):
        sink = MemorySink()
        sink.write(0, frame)
        sink.abort()
        assert sink.frames == [] and sink.aborted
