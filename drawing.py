"""
Drawing primitives for route frames.

Overlays describe what to draw as a list of plain command objects; paint()
applies them to a Pillow image. Keeping the commands as data lets tests
inspect exactly what a panel would draw without rasterizing anything.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from constants import Font, FONT_BASE_SIZE

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


# Font cache keyed by (family, pixel size), shared by every render job in the process
_font_cache: Dict[Tuple[Font, int], ImageFont.ImageFont] = {}
_font_paths: Dict[Font, Optional[str]] = {}
_font_lock = threading.Lock()


def _resolve_font_path(font: Font) -> Optional[str]:
    """First loadable TrueType candidate for ``font``. Caller holds ``_font_lock``."""
    if font in _font_paths:
        return _font_paths[font]

    resolved = None
    for candidate in font.value:
        try:
            ImageFont.truetype(candidate, 12)
        except OSError:
            continue
        resolved = candidate
        break
    if resolved is None:
        logger.debug(f"No TrueType file found for {font.name}, using Pillow default font")
    _font_paths[font] = resolved
    return resolved


def get_font(font: Font, font_scale: float) -> ImageFont.ImageFont:
    """Get a cached font whose pixel size is ``font_scale * FONT_BASE_SIZE``."""
    size = max(1, int(round(font_scale * FONT_BASE_SIZE)))
    key = (font, size)
    with _font_lock:
        if key in _font_cache:
            return _font_cache[key]

        path = _resolve_font_path(font)
        if path:
            loaded = ImageFont.truetype(path, size)
        else:
            loaded = ImageFont.load_default(size)

        _font_cache[key] = loaded
        return loaded


def text_size(text: str, font: Font, font_scale: float) -> Tuple[int, int]:
    """Return (width, height) of ``text`` rendered with the given font."""
    left, top, right, bottom = get_font(font, font_scale).getbbox(text)
    return int(right - left), int(bottom - top)


# =============================================================================
# Draw commands
# =============================================================================

@dataclass(frozen=True)
class Text:
    """Text anchored at its left baseline, like a printed line."""
    text: str
    x: int
    y: int
    color: RGB
    font: Font = Font.SIMPLEX
    font_scale: float = 1.0
    thickness: int = 1


@dataclass(frozen=True)
class Rect:
    """Filled axis-aligned rectangle."""
    x: int
    y: int
    width: int
    height: int
    color: RGB


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    color: RGB
    thickness: int = 1


@dataclass(frozen=True)
class Circle:
    """Filled circle (position marker)."""
    x: float
    y: float
    radius: int
    color: RGB


DrawCommand = Union[Text, Rect, Line, Circle]


def paint(image: Image.Image, commands: Iterable[DrawCommand]) -> Image.Image:
    """
    Apply draw commands to an image in order.

    Args:
        image: Pillow RGB image (modified in-place)
        commands: Commands to draw

    Returns:
        The same image, for chaining
    """
    draw = ImageDraw.Draw(image)
    for cmd in commands:
        if isinstance(cmd, Line):
            draw.line([(cmd.x1, cmd.y1), (cmd.x2, cmd.y2)], fill=cmd.color, width=cmd.thickness)
        elif isinstance(cmd, Circle):
            r = cmd.radius
            draw.ellipse([cmd.x - r, cmd.y - r, cmd.x + r, cmd.y + r], fill=cmd.color)
        elif isinstance(cmd, Rect):
            if cmd.width <= 0 or cmd.height <= 0:
                continue
            draw.rectangle([cmd.x, cmd.y, cmd.x + cmd.width - 1, cmd.y + cmd.height - 1],
                           fill=cmd.color)
        elif isinstance(cmd, Text):
            font = get_font(cmd.font, cmd.font_scale)
            if isinstance(font, ImageFont.FreeTypeFont):
                # Thickness > 1 is rendered as a same-color stroke
                draw.text((cmd.x, cmd.y), cmd.text, fill=cmd.color, font=font, anchor="ls",
                          stroke_width=max(0, cmd.thickness - 1), stroke_fill=cmd.color)
            else:
                _, height = text_size(cmd.text, cmd.font, cmd.font_scale)
                draw.text((cmd.x, cmd.y - height), cmd.text, fill=cmd.color, font=font)
        else:
            raise TypeError(f"Unknown draw command: {cmd!r}")
    return image
