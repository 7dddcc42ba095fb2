"""
Render configuration for the route overlay renderer.

Immutable pydantic models bundling route scale/offsets, colors, fonts,
visibility flags and file paths, with named presets. All validation failures
surface as InvalidConfigError.
"""

import json
import logging
import os
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from constants import (
    Color,
    Font,
    DEFAULT_PACE_WINDOW,
    IMAGE_LINE_THICKNESS,
    LAP_BAR_MAX_WIDTH,
    LAP_FONT_SCALE,
    LAP_THICKNESS,
    MARKER_RADIUS,
    MAX_BACKGROUND_DIM,
    VIDEO_DURATION_S,
    VIDEO_LINE_THICKNESS,
)
from errors import InvalidConfigError

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


def _enum_by_name(enum_cls, value):
    """Accept enum members by name ('white', 'SIMPLEX') as well as by value."""
    if isinstance(value, str):
        try:
            return enum_cls[value.strip().upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"Unknown {enum_cls.__name__.lower()} '{value}'") from None
    return value


class RouteScale(BaseModel):
    """Route size and placement as fractions of the background image."""
    model_config = ConfigDict(frozen=True)

    scale: float = Field(default=0.2, gt=0)
    offset_x_percent: float = 0.1
    offset_y_percent: float = 0.1

    @classmethod
    def default(cls) -> "RouteScale":
        """Small route in the top-left corner."""
        return cls(scale=0.2, offset_x_percent=0.1, offset_y_percent=0.1)

    @classmethod
    def centered(cls) -> "RouteScale":
        return cls(scale=0.4, offset_x_percent=0.3, offset_y_percent=0.3)

    @classmethod
    def large(cls) -> "RouteScale":
        """Route filling most of the map."""
        return cls(scale=0.7, offset_x_percent=0.15, offset_y_percent=0.15)


class RouteColors(BaseModel):
    """RGB colors for route elements."""
    model_config = ConfigDict(frozen=True)

    route_line: RGB = Color.RED.rgb
    current_position: RGB = Color.GREEN.rgb
    text: RGB = Color.WHITE.rgb
    lap_bars: RGB = Color.GREEN.rgb

    @field_validator("route_line", "current_position", "text", "lap_bars", mode="before")
    @classmethod
    def _color_name(cls, value):
        color = _enum_by_name(Color, value)
        return color.rgb if isinstance(color, Color) else color

    @classmethod
    def default(cls) -> "RouteColors":
        """Red route, green marker, white text, green bars."""
        return cls()

    @classmethod
    def blue_scheme(cls) -> "RouteColors":
        return cls(
            route_line=Color.BLUE.rgb,
            current_position=Color.CYAN.rgb,
            text=Color.WHITE.rgb,
            lap_bars=(0, 128, 255),
        )

    @classmethod
    def neon_scheme(cls) -> "RouteColors":
        return cls(
            route_line=Color.MAGENTA.rgb,
            current_position=Color.YELLOW.rgb,
            text=Color.WHITE.rgb,
            lap_bars=Color.MAGENTA.rgb,
        )


class PaceDistConfig(BaseModel):
    """Bottom bar showing live pace and cumulative distance."""
    model_config = ConfigDict(frozen=True)

    font_scale: float = Field(default=0.5, gt=0)
    thickness: int = Field(default=1, ge=1)
    font: Font = Font.SIMPLEX
    show_pace: bool = True
    show_distance: bool = True
    pace_window: int = Field(default=DEFAULT_PACE_WINDOW, ge=1,
                             description="Trailing samples used to smooth live pace")

    @field_validator("font", mode="before")
    @classmethod
    def _font_name(cls, value):
        return _enum_by_name(Font, value)

    @classmethod
    def default(cls) -> "PaceDistConfig":
        return cls()

    @classmethod
    def large_text(cls) -> "PaceDistConfig":
        return cls(font_scale=0.8, thickness=2, font=Font.DUPLEX)

    @classmethod
    def pace_only(cls) -> "PaceDistConfig":
        return cls(show_distance=False)


class LapDataConfig(BaseModel):
    """Lap statistics panel. Font scale, thickness and bar width default to fixed styling."""
    model_config = ConfigDict(frozen=True)

    position_x_percent: float = Field(default=0.5, ge=0, le=1)
    position_y_percent: float = Field(default=0.09, ge=0, le=1)
    font_scale: float = Field(default=LAP_FONT_SCALE, gt=0)
    thickness: int = Field(default=LAP_THICKNESS, ge=1)
    font: Font = Font.SIMPLEX
    text_color: RGB = Color.WHITE.rgb
    bar_max_width: int = Field(default=LAP_BAR_MAX_WIDTH, gt=0)
    show_heart_rate: bool = True
    show_stride_length: bool = True
    show_pace_bars: bool = True

    @field_validator("font", mode="before")
    @classmethod
    def _font_name(cls, value):
        return _enum_by_name(Font, value)

    @field_validator("text_color", mode="before")
    @classmethod
    def _color_name(cls, value):
        color = _enum_by_name(Color, value)
        return color.rgb if isinstance(color, Color) else color

    @classmethod
    def default(cls) -> "LapDataConfig":
        return cls()

    @classmethod
    def minimal(cls) -> "LapDataConfig":
        """Pace and bars only."""
        return cls(show_heart_rate=False, show_stride_length=False)

    @classmethod
    def detailed(cls) -> "LapDataConfig":
        return cls(position_y_percent=0.07)


class FileConfig(BaseModel):
    """Input and output paths."""
    model_config = ConfigDict(frozen=True)

    fit_file: str = "source/activity.fit"
    background_image: str = "source/background.jpg"
    output_file: str = "outputs/route.mp4"


class RenderConfig(BaseModel):
    """
    Complete configuration for one render job.

    Owned by the caller; the rendering pipeline only reads it.
    """
    model_config = ConfigDict(frozen=True)

    route_scale: RouteScale = Field(default_factory=RouteScale.default)
    colors: RouteColors = Field(default_factory=RouteColors.default)
    pace_dist: PaceDistConfig = Field(default_factory=PaceDistConfig.default)
    lap_data: LapDataConfig = Field(default_factory=LapDataConfig.default)
    files: FileConfig = Field(default_factory=FileConfig)

    show_bottom_bar: bool = True
    show_route: bool = True
    show_lap_data: bool = True

    line_thickness: int = Field(default=VIDEO_LINE_THICKNESS, ge=1, description="Video route line")
    image_line_thickness: int = Field(default=IMAGE_LINE_THICKNESS, ge=1, description="Static image route line")
    marker_radius: int = Field(default=MARKER_RADIUS, ge=1)
    video_duration_s: float = Field(default=VIDEO_DURATION_S, gt=0)
    max_background_dim: int = Field(default=MAX_BACKGROUND_DIM, gt=0)

    @classmethod
    def default(cls) -> "RenderConfig":
        return cls()

    @classmethod
    def minimalist(cls) -> "RenderConfig":
        return cls(pace_dist=PaceDistConfig.pace_only(), lap_data=LapDataConfig.minimal())

    @classmethod
    def detailed(cls) -> "RenderConfig":
        return cls(
            route_scale=RouteScale.large(),
            pace_dist=PaceDistConfig.large_text(),
            lap_data=LapDataConfig.detailed(),
        )

    @classmethod
    def neon(cls) -> "RenderConfig":
        return cls(route_scale=RouteScale.centered(), colors=RouteColors.neon_scheme())


PRESETS = {
    "default": RenderConfig.default,
    "minimalist": RenderConfig.minimalist,
    "detailed": RenderConfig.detailed,
    "neon": RenderConfig.neon,
}


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def build_config(base: Optional[RenderConfig] = None, **overrides: Any) -> RenderConfig:
    """
    Build a RenderConfig from a base config plus field overrides.

    Nested sections can be overridden with dicts, e.g.
    ``build_config(route_scale={"scale": 0.5})``.

    Raises:
        InvalidConfigError: If the result fails validation
    """
    data: Dict[str, Any] = (base or RenderConfig()).model_dump()
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        elif isinstance(value, BaseModel):
            data[key] = value.model_dump()
        else:
            data[key] = value
    try:
        return RenderConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigError(f"Invalid render config: {_validation_message(e)}") from e


def get_preset(name: str) -> RenderConfig:
    """Return a named preset configuration."""
    try:
        return PRESETS[name]()
    except KeyError:
        raise InvalidConfigError(
            f"Unknown preset '{name}'. Valid presets: {', '.join(sorted(PRESETS))}"
        ) from None


def load_config(path: Union[str, os.PathLike], base: Optional[RenderConfig] = None) -> RenderConfig:
    """
    Load a RenderConfig from a JSON file.

    Keys absent from the file keep the values of ``base`` (or the defaults).

    Raises:
        InvalidConfigError: If the file is unreadable, not JSON, or fails validation
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfigError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidConfigError(f"Config {path} must contain a JSON object")

    logger.debug(f"Loaded config overrides from {path}: {sorted(data)}")
    return build_config(base, **data)


def validate_config(config: RenderConfig) -> RenderConfig:
    """
    Re-validate a config before a job starts.

    Catches instances built with ``model_construct`` that skipped validation.

    Raises:
        InvalidConfigError: If any field is out of range
    """
    try:
        return RenderConfig.model_validate(config.model_dump())
    except ValidationError as e:
        raise InvalidConfigError(f"Invalid render config: {_validation_message(e)}") from e
