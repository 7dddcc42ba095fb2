"""
FFmpeg-based video writing for route animations.

Frames are piped as raw RGB24 into an ffmpeg subprocess and encoded to H.264.
Hardware encoders (VideoToolbox on macOS, NVENC/VA-API/QSV elsewhere) are
detected once per process, with libx264 as the fallback.
"""

import logging
import os
import platform
import subprocess
from typing import List, Optional, Tuple

import numpy as np

from constants import MIN_FPS

logger = logging.getLogger(__name__)


SOFTWARE_ENCODER = "libx264"

# yuv420p needs even dimensions; odd-sized backgrounds get one black pixel row/column
PAD_TO_EVEN = "pad=ceil(iw/2)*2:ceil(ih/2)*2"

# Output options per encoder, following "-c:v <encoder>"
ENCODER_ARGS = {
    "h264_videotoolbox": ["-vf", PAD_TO_EVEN, "-b:v", "10M", "-pix_fmt", "yuv420p"],
    "h264_nvenc": ["-vf", PAD_TO_EVEN, "-preset", "fast", "-b:v", "10M", "-pix_fmt", "yuv420p"],
    "h264_qsv": ["-vf", PAD_TO_EVEN, "-preset", "fast", "-b:v", "10M", "-pix_fmt", "yuv420p"],
    "h264_vaapi": ["-vf", f"{PAD_TO_EVEN},format=nv12,hwupload", "-b:v", "10M"],
    SOFTWARE_ENCODER: ["-vf", PAD_TO_EVEN, "-preset", "fast", "-crf", "23", "-pix_fmt", "yuv420p"],
}

# Cache for detected hardware encoder
_hw_encoder_cache: Optional[str] = None
_hw_encoder_checked: bool = False


def detect_hw_encoder() -> Optional[str]:
    """
    Detect an available hardware H.264 encoder.

    Candidates by platform:
    - macOS: h264_videotoolbox
    - Linux: h264_nvenc, h264_vaapi
    - Windows: h264_nvenc, h264_qsv

    Returns:
        Encoder name if one works, None if only software encoding is available
    """
    global _hw_encoder_cache, _hw_encoder_checked

    if _hw_encoder_checked:
        return _hw_encoder_cache

    _hw_encoder_checked = True

    system = platform.system()
    if system == "Darwin":
        candidates = ["h264_videotoolbox"]
    elif system == "Linux":
        candidates = ["h264_nvenc", "h264_vaapi"]
    elif system == "Windows":
        candidates = ["h264_nvenc", "h264_qsv"]
    else:
        candidates = []

    for encoder in candidates:
        try:
            cmd = [
                "ffmpeg", "-v", "error",
                "-f", "lavfi", "-i", "nullsrc=s=64x64:d=1",
                "-c:v", encoder,
                "-f", "null", "-"
            ]
            result = subprocess.run(cmd, capture_output=True, timeout=5)
            if result.returncode == 0:
                logger.info(f"Hardware encoder detected: {encoder}")
                _hw_encoder_cache = encoder
                return encoder
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            continue

    logger.debug(f"No hardware encoder available, using {SOFTWARE_ENCODER}")
    return None


def frame_rate_for(point_count: int, duration_s: float) -> float:
    """
    Frame rate that plays one frame per route point in about ``duration_s``.

    Never below MIN_FPS, so short routes still produce a valid stream.
    """
    if duration_s <= 0:
        raise ValueError(f"Video duration must be positive, got {duration_s}")
    return max(MIN_FPS, point_count / duration_s)


class FFmpegWriter:
    """
    Context manager for writing video frames via an FFmpeg pipe.

    Accepts RGB numpy arrays and encodes to H.264 MP4. A non-zero ffmpeg
    exit status is raised as RuntimeError when the writer closes.

    Args:
        path: Output file path
        fps: Frame rate
        size: Video dimensions (width, height)
        use_hw_encoding: Try hardware encoding (default True, falls back to software)
    """

    def __init__(self, path: str, fps: float, size: Tuple[int, int],
                 use_hw_encoding: bool = True):
        self.path = path
        self.fps = fps
        self.width, self.height = size
        self.use_hw_encoding = use_hw_encoding
        self.process: Optional[subprocess.Popen] = None
        self._frame_count = 0
        self._encoder_used: str = SOFTWARE_ENCODER

    def _build_encoder_args(self) -> List[str]:
        hw_encoder = detect_hw_encoder() if self.use_hw_encoding else None
        self._encoder_used = hw_encoder if hw_encoder in ENCODER_ARGS else SOFTWARE_ENCODER
        return ["-c:v", self._encoder_used] + ENCODER_ARGS[self._encoder_used]

    def open(self) -> "FFmpegWriter":
        encoder_args = self._build_encoder_args()

        cmd = [
            "ffmpeg", "-y", "-v", "error",
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-s", f"{self.width}x{self.height}",
            "-r", str(self.fps),
            "-i", "-",
        ] + encoder_args + [
            "-movflags", "+faststart",
            self.path
        ]
        self.process = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=self.width * self.height * 3 * 2
        )
        logger.debug(f"Opened FFmpegWriter: {self.path} "
                     f"(encoder: {self._encoder_used}, {self.fps:.2f} fps)")
        return self

    def __enter__(self) -> "FFmpegWriter":
        return self.open()

    @property
    def encoder(self) -> str:
        """Return the encoder being used (e.g., 'libx264', 'h264_videotoolbox')."""
        return self._encoder_used

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def write(self, frame: np.ndarray) -> None:
        """Write a frame (RGB numpy array of shape (height, width, 3))."""
        if self.process is None or self.process.stdin is None:
            raise RuntimeError("Writer not initialized")

        if frame.shape[:2] != (self.height, self.width):
            raise ValueError(f"Frame size mismatch: expected {self.width}x{self.height}, "
                             f"got {frame.shape[1]}x{frame.shape[0]}")

        self.process.stdin.write(np.ascontiguousarray(frame, dtype=np.uint8).tobytes())
        self._frame_count += 1

    def close(self) -> None:
        """
        Flush and wait for ffmpeg.

        Raises:
            RuntimeError: If ffmpeg exits with a non-zero status
        """
        if self.process is None:
            return
        process, self.process = self.process, None
        try:
            if process.stdin:
                process.stdin.close()
            process.wait(timeout=30)
        except subprocess.TimeoutExpired:
            logger.warning("FFmpeg writer timeout, killing process")
            process.kill()
            raise RuntimeError(f"FFmpeg timed out writing {self.path}") from None

        if process.returncode != 0:
            stderr = process.stderr.read() if process.stderr else b''
            raise RuntimeError(f"FFmpeg writer failed ({process.returncode}): "
                               f"{stderr.decode(errors='replace').strip()}")
        logger.debug(f"Released FFmpegWriter: {self.path} ({self._frame_count} frames)")

    def abort(self) -> None:
        """Kill ffmpeg and delete the partial output file."""
        if self.process is not None:
            process, self.process = self.process, None
            try:
                if process.stdin:
                    process.stdin.close()
            except OSError as e:
                logger.debug(f"Ignoring error closing ffmpeg stdin: {e}")
            process.kill()
            process.wait()
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.debug(f"Removed partial video {self.path}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.abort()
        else:
            self.close()
        return False
