"""
Statistics overlays drawn on top of the route.

Two panels are provided:

- PaceDistanceOverlay: black bar along the bottom edge with the live pace on
  the left and the cumulative distance on the right
- LapPanelOverlay: a table of laps (number, pace, bar, heart rate, stride)
  anchored at a percentage position of the image

Both are pure functions of (activity, config, sample index) producing draw
commands; neither mutates the activity.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from activity.data_models import Activity, GeoSample, Lap, format_pace
from config import RenderConfig
from constants import (
    BOTTOM_BAR_COLOR,
    BOTTOM_BAR_MARGIN,
    BOTTOM_BAR_PADDING,
    HEADER_COLOR,
    LAP_BAR_GAP,
    LAP_HEADER_GAP,
    LAP_HEADER_LABELS,
    LAP_HR_OFFSET,
    LAP_LENGTH_OFFSET,
    LAP_ROW_SPACING,
    METERS_PER_KM,
)
from drawing import DrawCommand, Rect, Text, text_size
from errors import MissingLapDataError
from overlays import Overlay, OverlayRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# Pace and lap helpers
# =============================================================================

def trailing_pace(elapsed_s: np.ndarray, distance_m: np.ndarray, index: int, window: int) -> float:
    """
    Pace in s/km over the ``window`` samples ending at ``index``.

    The window shrinks near the start of the route (``w = min(window, index)``).
    Returns 0.0 when there is no earlier sample or no forward movement.
    """
    w = min(window, index)
    if w <= 0:
        return 0.0
    dt = float(elapsed_s[index] - elapsed_s[index - w])
    dd = float(distance_m[index] - distance_m[index - w])
    if dt <= 0 or dd <= 0:
        return 0.0
    return dt / dd * METERS_PER_KM


def _elapsed_seconds(samples: Sequence[GeoSample]) -> np.ndarray:
    if not samples:
        return np.zeros(0, dtype=np.float64)
    t0 = samples[0].timestamp
    return np.array([(s.timestamp - t0).total_seconds() for s in samples], dtype=np.float64)


def build_lap_lookup(laps: Sequence[Lap], sample_count: int) -> np.ndarray:
    """
    Map every sample index to the ordinal of its lap.

    A sample belongs to the most recently started lap, so samples in a gap
    between laps map to the lap that just finished. Samples before the first
    lap map to -1.

    Returns:
        int array of length ``sample_count``
    """
    lookup = np.full(sample_count, -1, dtype=np.int64)
    for ordinal, lap in enumerate(laps):
        if lap.start_index >= sample_count:
            break
        lookup[lap.start_index:] = ordinal
    return lookup


def lap_bar_width(lap_pace: float, max_lap_pace: float, bar_max_width: int) -> int:
    """
    Bar length proportional to pace relative to the slowest lap.

    Zero for a lap with pace 0, or when every lap has pace 0.
    """
    if lap_pace <= 0 or max_lap_pace <= 0:
        return 0
    return int(lap_pace / max_lap_pace * bar_max_width)


class LapRow(NamedTuple):
    """Display values for one lap panel row."""
    number: int
    pace_text: str
    bar_width: int
    heart_rate_text: Optional[str]
    stride_text: Optional[str]


def lap_rows(laps: Sequence[Lap], upto: Optional[int], bar_max_width: int) -> List[LapRow]:
    """
    Build display rows for laps ``0..=upto`` (all laps when ``upto`` is None).

    Bar widths are always relative to the slowest lap of the whole activity.

    Raises:
        MissingLapDataError: If there are no laps
    """
    if not laps:
        raise MissingLapDataError("Activity has no lap data")

    max_pace = max(lap.avg_pace for lap in laps)
    last = len(laps) - 1 if upto is None else min(upto, len(laps) - 1)

    rows = []
    for ordinal in range(last + 1):
        lap = laps[ordinal]
        rows.append(LapRow(
            number=ordinal + 1,
            pace_text=lap.pace_text,
            bar_width=lap_bar_width(lap.avg_pace, max_pace, bar_max_width),
            heart_rate_text=f"{lap.avg_heart_rate:.0f}" if lap.avg_heart_rate is not None else None,
            stride_text=f"{lap.avg_stride_length:.2f}" if lap.avg_stride_length is not None else None,
        ))
    return rows


# =============================================================================
# Overlays
# =============================================================================

class PaceDistanceOverlay(Overlay):
    """
    Bottom bar with live pace and cumulative distance.

    Only drawn for video frames; the static summary has no bottom bar.
    """

    def __init__(self, activity: Activity, config: RenderConfig, image_size: Tuple[int, int]):
        super().__init__(image_size, enabled=config.show_bottom_bar)
        self._pace_cfg = config.pace_dist
        self._text_color = config.colors.text
        self._elapsed = _elapsed_seconds(activity.samples)
        self._distance = np.array([s.cumulative_distance for s in activity.samples],
                                  dtype=np.float64)

    def pace_at(self, index: int) -> float:
        return trailing_pace(self._elapsed, self._distance, index, self._pace_cfg.pace_window)

    def pace_text(self, index: int) -> str:
        return f"Pace: {format_pace(self.pace_at(index))} min/km"

    def distance_text(self, index: int) -> str:
        return f"Dist: {self._distance[index] / METERS_PER_KM:.2f} km"

    def commands(self, index: Optional[int]) -> List[DrawCommand]:
        if index is None or not self.enabled:
            return []
        cfg = self._pace_cfg
        width, height = self.image_size
        pace_text = self.pace_text(index)
        dist_text = self.distance_text(index)

        _, text_h = text_size(dist_text, cfg.font, cfg.font_scale)
        bar_h = text_h + BOTTOM_BAR_PADDING
        commands: List[DrawCommand] = [Rect(0, height - bar_h, width, bar_h, BOTTOM_BAR_COLOR)]

        y = height - BOTTOM_BAR_MARGIN
        if cfg.show_pace:
            commands.append(Text(pace_text, BOTTOM_BAR_MARGIN, y, self._text_color,
                                 cfg.font, cfg.font_scale, cfg.thickness))
        if cfg.show_distance:
            dist_w, _ = text_size(dist_text, cfg.font, cfg.font_scale)
            commands.append(Text(dist_text, width - dist_w - BOTTOM_BAR_MARGIN, y,
                                 self._text_color, cfg.font, cfg.font_scale, cfg.thickness))
        return commands


class LapPanelOverlay(Overlay):
    """
    Lap statistics table.

    Video frames list laps up to the one owning the current sample; the
    static summary lists every lap. Columns for heart rate, stride length and
    bars follow the LapDataConfig toggles, and a missing value leaves its cell
    empty. An activity without laps hides the panel.
    """

    def __init__(self, activity: Activity, config: RenderConfig, image_size: Tuple[int, int]):
        super().__init__(image_size, enabled=config.show_lap_data)
        self._laps = list(activity.laps)
        self._cfg = config.lap_data
        self._bar_color = config.colors.lap_bars
        self._lookup = build_lap_lookup(self._laps, len(activity.samples))

        # Anchor resolved once per job from the fixed image size
        width, height = image_size
        self._anchor = (int(self._cfg.position_x_percent * width),
                        int(self._cfg.position_y_percent * height))

    @property
    def anchor(self) -> Tuple[int, int]:
        return self._anchor

    def current_lap(self, index: int) -> int:
        """Lap ordinal owning sample ``index`` (-1 before the first lap)."""
        return int(self._lookup[index])

    def _header(self) -> List[DrawCommand]:
        cfg = self._cfg
        x, y = self._anchor
        hidden = set()
        if not cfg.show_pace_bars:
            hidden.add("BAR")
        if not cfg.show_heart_rate:
            hidden.add("HR")
        if not cfg.show_stride_length:
            hidden.add("LENGTH")
        return [
            Text(label, x + offset, y - LAP_HEADER_GAP, HEADER_COLOR,
                 cfg.font, cfg.font_scale, cfg.thickness)
            for label, offset in LAP_HEADER_LABELS
            if label not in hidden
        ]

    def _row(self, row: LapRow, row_index: int, digits: int) -> List[DrawCommand]:
        cfg = self._cfg
        color = cfg.text_color
        anchor_x, anchor_y = self._anchor

        label = f"{row.number:>{digits}}  {row.pace_text}"
        label_w, label_h = text_size(label, cfg.font, cfg.font_scale)
        x = anchor_x - label_w // 2
        y = anchor_y + row_index * (label_h + LAP_ROW_SPACING)

        commands: List[DrawCommand] = [
            Text(label, x, y, color, cfg.font, cfg.font_scale, cfg.thickness)
        ]
        if cfg.show_pace_bars and row.bar_width > 0:
            commands.append(Rect(x + label_w + LAP_BAR_GAP, y - label_h,
                                 row.bar_width, label_h, self._bar_color))
        if cfg.show_heart_rate and row.heart_rate_text is not None:
            commands.append(Text(row.heart_rate_text, x + LAP_HR_OFFSET, y, color,
                                 cfg.font, cfg.font_scale, cfg.thickness))
        if cfg.show_stride_length and row.stride_text is not None:
            commands.append(Text(row.stride_text, x + LAP_LENGTH_OFFSET, y, color,
                                 cfg.font, cfg.font_scale, cfg.thickness))
        return commands

    def commands(self, index: Optional[int]) -> List[DrawCommand]:
        if not self.enabled:
            return []

        upto = None if index is None else self.current_lap(index)
        try:
            rows = lap_rows(self._laps, upto, self._cfg.bar_max_width)
        except MissingLapDataError as e:
            logger.debug(f"Lap panel hidden: {e}")
            return []

        digits = len(str(len(self._laps)))
        commands = self._header()
        for row_index, row in enumerate(rows):
            commands.extend(self._row(row, row_index, digits))
        return commands


def build_overlays(activity: Activity, config: RenderConfig,
                   image_size: Tuple[int, int]) -> OverlayRegistry:
    """Create the standard overlay stack: lap panel below the bottom bar."""
    registry = OverlayRegistry()
    registry.register("laps", LapPanelOverlay(activity, config, image_size))
    registry.register("pace_distance", PaceDistanceOverlay(activity, config, image_size))
    return registry
