"""
Output sinks for rendered frames.

A sink receives frames in order, each tagged with its index, then either
done() (the artifact is complete) or abort() (partial output is discarded).
"""

import io
import logging
import os
from typing import Any, List, Optional, Protocol, Tuple

import numpy as np
from PIL import Image

from video_io import FFmpegWriter

logger = logging.getLogger(__name__)


class FrameSink(Protocol):
    """Consumer of rendered RGB frames."""

    def write(self, frame_index: int, frame: np.ndarray) -> None:
        ...

    def done(self) -> Any:
        """Finish the artifact and return its handle (path, frames, ...)."""
        ...

    def abort(self) -> None:
        """Discard any partial output."""
        ...


def _ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


class ImageFileSink:
    """
    Writes a single frame to an image file. Format follows the extension.

    The image is encoded in memory first, so an encoding failure leaves any
    existing file at ``path`` untouched.

    Args:
        path: Output path (.png, .jpg, ...)
    """

    def __init__(self, path: str):
        self.path = path
        self._written = False

    def write(self, frame_index: int, frame: np.ndarray) -> None:
        if self._written:
            raise ValueError(f"ImageFileSink accepts one frame, got a second (index {frame_index})")
        extension = os.path.splitext(self.path)[1].lower()
        image_format = Image.registered_extensions().get(extension)
        if image_format is None:
            raise ValueError(f"Unsupported image extension '{extension}' for {self.path}")

        # Encode fully before touching the output path
        buffer = io.BytesIO()
        Image.fromarray(frame).save(buffer, format=image_format)

        _ensure_parent_dir(self.path)
        self._written = True
        with open(self.path, "wb") as f:
            f.write(buffer.getvalue())
        logger.debug(f"Wrote image {self.path} ({frame.shape[1]}x{frame.shape[0]})")

    def done(self) -> str:
        if not self._written:
            raise ValueError("No frame was written")
        return self.path

    def abort(self) -> None:
        # Only output written by this sink is removed
        if self._written and os.path.exists(self.path):
            os.remove(self.path)
        self._written = False


class VideoFileSink:
    """
    Encodes frames into an H.264 MP4 through FFmpegWriter.

    The ffmpeg process starts on the first frame; abort() kills it and
    removes the partial file.

    Args:
        path: Output .mp4 path
        fps: Frame rate
        size: Frame (width, height)
        use_hw_encoding: Try hardware encoders before libx264
    """

    def __init__(self, path: str, fps: float, size: Tuple[int, int],
                 use_hw_encoding: bool = True):
        self.path = path
        self.fps = fps
        self.size = size
        self.use_hw_encoding = use_hw_encoding
        self._writer: Optional[FFmpegWriter] = None
        self._next_index = 0

    @property
    def encoder(self) -> Optional[str]:
        return self._writer.encoder if self._writer else None

    def write(self, frame_index: int, frame: np.ndarray) -> None:
        if frame_index != self._next_index:
            raise ValueError(f"Frames must arrive in order: expected {self._next_index}, "
                             f"got {frame_index}")
        if self._writer is None:
            _ensure_parent_dir(self.path)
            self._writer = FFmpegWriter(self.path, self.fps, self.size,
                                        use_hw_encoding=self.use_hw_encoding).open()
        self._writer.write(frame)
        self._next_index += 1

    def done(self) -> str:
        if self._writer is None:
            raise ValueError("No frames were written")
        self._writer.close()
        logger.debug(f"Video complete: {self.path} ({self._next_index} frames)")
        return self.path

    def abort(self) -> None:
        if self._writer is not None:
            self._writer.abort()
            self._writer = None


class MemorySink:
    """Collects frames in memory. Useful for embedding and tests."""

    def __init__(self):
        self.frames: List[np.ndarray] = []
        self.indices: List[int] = []
        self.finished = False
        self.aborted = False

    def write(self, frame_index: int, frame: np.ndarray) -> None:
        self.indices.append(frame_index)
        self.frames.append(frame.copy())

    def done(self) -> List[np.ndarray]:
        self.finished = True
        return self.frames

    def abort(self) -> None:
        self.frames.clear()
        self.indices.clear()
        self.aborted = True
