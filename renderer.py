"""
Render driver: turns an activity plus background into frames for a sink.

Two variants share the projection and overlay setup:

- render_image(): Start -> Projected -> Drawn -> Done. Full route, full lap
  panel, one frame.
- render_video(): Start -> Projected -> Frame(i) ... -> Done. The route is
  revealed one sample per frame onto a persistent path layer, with the
  position marker and live overlays drawn on a copy for each frame.

Any failure after drawing starts aborts the sink; there is no partial
result and no retry.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from activity.data_models import Activity
from compositor import build_overlays
from config import RenderConfig, validate_config
from drawing import Circle, DrawCommand, Line, paint
from errors import BackgroundLoadError, EmptyRouteError, SinkWriteError
from path_accumulator import PathAccumulator, segments
from projector import PixelPoint, project_route
from sinks import FrameSink
from video_io import frame_rate_for

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class RenderState(Enum):
    START = "start"
    PROJECTED = "projected"
    DRAWN = "drawn"
    FRAME = "frame"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FrameState:
    """Per-job progress of a progressive render."""
    revealed_count: int = 0
    current_lap_index: int = -1


@dataclass(frozen=True)
class RenderResult:
    """Handle to a finished artifact."""
    output: Any
    frame_count: int
    point_count: int
    elapsed_s: float


class RouteRenderer:
    """
    Renders one activity onto one background.

    Config and data shape are validated here, before any drawing.

    Args:
        activity: Samples and laps to draw
        background: RGB image as a numpy array (H, W, 3) or PIL image
        config: Render configuration (defaults when None)

    Raises:
        EmptyRouteError: If the activity has no samples
        InvalidConfigError: If the config fails validation
        BackgroundLoadError: If the background is not an RGB image
    """

    def __init__(self, activity: Activity, background: Union[np.ndarray, Image.Image],
                 config: Optional[RenderConfig] = None):
        self._config = validate_config(config or RenderConfig.default())

        if not activity.samples:
            raise EmptyRouteError("Activity has no GPS samples to render")
        self._activity = activity

        if isinstance(background, Image.Image):
            background = np.asarray(background.convert("RGB"))
        background = np.asarray(background)
        if background.ndim != 3 or background.shape[2] != 3:
            raise BackgroundLoadError(f"Background must be an RGB image, got shape {background.shape}")
        self._background = background.astype(np.uint8, copy=False)

        self._state = RenderState.START
        self._frame_state: Optional[FrameState] = None
        self._points: Optional[List[PixelPoint]] = None

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def frame_state(self) -> Optional[FrameState]:
        """Progress of the running video render (None outside one)."""
        return self._frame_state

    @property
    def image_size(self) -> Tuple[int, int]:
        """Background (width, height)."""
        return self._background.shape[1], self._background.shape[0]

    @property
    def point_count(self) -> int:
        return len(self._activity.samples)

    @property
    def fps(self) -> float:
        """Frame rate that plays the whole route in ``video_duration_s``."""
        return frame_rate_for(self.point_count, self._config.video_duration_s)

    def _project(self) -> List[PixelPoint]:
        if self._points is None:
            self._points = project_route(self._activity.samples, self._config, self.image_size)
            logger.debug(f"Projected {len(self._points)} points onto {self.image_size}")
        self._state = RenderState.PROJECTED
        return self._points

    def _route_lines(self, pairs, thickness: int) -> List[DrawCommand]:
        if not self._config.show_route:
            return []
        color = self._config.colors.route_line
        return [Line(p1.x, p1.y, p2.x, p2.y, color, thickness) for p1, p2 in pairs]

    def _marker(self, point: PixelPoint) -> Circle:
        return Circle(point.x, point.y, self._config.marker_radius,
                      self._config.colors.current_position)

    def static_commands(self) -> List[DrawCommand]:
        """
        Draw commands for the static image.

        Full polyline, then the full lap panel. A single-sample route has no
        segment, so only its position marker is drawn.
        """
        points = self._project()
        commands = self._route_lines(segments(points), self._config.image_line_thickness)
        if len(points) == 1:
            commands.append(self._marker(points[0]))
        overlays = build_overlays(self._activity, self._config, self.image_size)
        commands.extend(overlays.commands_all(None))
        return commands

    def _abort(self, sink: FrameSink) -> None:
        self._state = RenderState.FAILED
        try:
            sink.abort()
        except Exception as e:
            logger.warning(f"Sink abort failed: {e}")

    def _emit(self, sink: FrameSink, index: int, frame: np.ndarray) -> None:
        try:
            sink.write(index, frame)
        except Exception as e:
            raise SinkWriteError(f"Sink rejected frame {index}: {e}", frame_index=index) from e

    def _finish(self, sink: FrameSink) -> Any:
        try:
            output = sink.done()
        except Exception as e:
            raise SinkWriteError(f"Sink failed to finish: {e}") from e
        self._state = RenderState.DONE
        return output

    def render_image(self, sink: FrameSink) -> RenderResult:
        """
        Render the full route as a single frame.

        Raises:
            SinkWriteError: If the sink rejects the frame or fails to finish
        """
        start = time.perf_counter()
        self._state = RenderState.START
        try:
            image = Image.fromarray(self._background.copy())
            paint(image, self.static_commands())
            self._state = RenderState.DRAWN
            self._emit(sink, 0, np.asarray(image))
            output = self._finish(sink)
        except Exception:
            self._abort(sink)
            raise

        elapsed = time.perf_counter() - start
        logger.info(f"Rendered route image with {self.point_count} points in {elapsed:.2f}s")
        return RenderResult(output=output, frame_count=1,
                            point_count=self.point_count, elapsed_s=elapsed)

    def render_video(self, sink: FrameSink,
                     progress: Optional[ProgressCallback] = None) -> RenderResult:
        """
        Render one frame per sample, revealing the route progressively.

        Args:
            sink: Receives frames 0..N-1 in order, then done()
            progress: Called as ``progress(frames_done, total)`` after each frame

        Raises:
            SinkWriteError: If the sink rejects a frame or fails to finish
        """
        start = time.perf_counter()
        self._state = RenderState.START
        total = self.point_count
        try:
            points = self._project()
            overlays = build_overlays(self._activity, self._config, self.image_size)
            lap_panel = overlays.get("laps")
            accumulator = PathAccumulator(points)
            path_layer = Image.fromarray(self._background.copy())
            self._frame_state = FrameState()

            for i in range(total):
                self._state = RenderState.FRAME
                new_segments = accumulator.advance(i)
                paint(path_layer, self._route_lines(new_segments, self._config.line_thickness))

                frame = path_layer.copy()
                paint(frame, [self._marker(accumulator.current)])
                overlays.compose_all(frame, i)

                self._frame_state.revealed_count = accumulator.revealed_count
                self._frame_state.current_lap_index = lap_panel.current_lap(i)

                self._emit(sink, i, np.asarray(frame))
                if progress is not None:
                    progress(i + 1, total)

            output = self._finish(sink)
        except Exception:
            self._abort(sink)
            raise
        finally:
            self._frame_state = None

        elapsed = time.perf_counter() - start
        logger.info(f"Rendered {total} frames in {elapsed:.2f}s")
        return RenderResult(output=output, frame_count=total,
                            point_count=total, elapsed_s=elapsed)
