"""
Constants for the route overlay renderer.

Centralized definitions for colors, fonts, layout dimensions and drawing defaults.
"""

from enum import Enum
from typing import Tuple


# =============================================================================
# Colors (RGB format for Pillow)
# =============================================================================

class Color(Enum):
    """Named colors selectable for text and route elements."""
    BLACK = (0, 0, 0)
    WHITE = (255, 255, 255)
    RED = (255, 0, 0)
    ORANGE = (255, 165, 0)
    YELLOW = (255, 255, 0)
    YELLOW_GREEN = (173, 255, 47)
    GREEN = (0, 255, 0)
    BLUE_GREEN = (0, 255, 128)
    BLUE = (0, 0, 255)
    BLUE_VIOLET = (138, 43, 226)
    VIOLET = (148, 0, 211)
    RED_VIOLET = (199, 0, 211)
    RED_ORANGE = (255, 69, 0)
    YELLOW_ORANGE = (255, 204, 0)
    CYAN = (0, 255, 255)
    MAGENTA = (255, 0, 255)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.value


HEADER_COLOR: Tuple[int, int, int] = (0, 255, 255)   # Lap panel column labels
BOTTOM_BAR_COLOR: Tuple[int, int, int] = (0, 0, 0)


# =============================================================================
# Fonts
# =============================================================================

class Font(Enum):
    """Font families for overlay text.

    Each value lists TrueType candidates tried in order; the first one Pillow
    can load wins, otherwise Pillow's built-in bitmap font is used.
    """
    SIMPLEX = ("DejaVuSans.ttf", "Arial.ttf", "Helvetica.ttf",
               "/System/Library/Fonts/Helvetica.ttc")
    PLAIN = ("DejaVuSansCondensed.ttf", "DejaVuSans.ttf", "Arial.ttf")
    DUPLEX = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "Arial.ttf")
    COMPLEX = ("DejaVuSerif.ttf", "Times New Roman.ttf", "Georgia.ttf")
    TRIPLEX = ("DejaVuSerif-Bold.ttf", "Times New Roman Bold.ttf", "DejaVuSerif.ttf")
    COMPLEX_SMALL = ("DejaVuSerifCondensed.ttf", "DejaVuSerif.ttf")
    SCRIPT_SIMPLEX = ("Z003-MediumItalic.ttf", "Comic Sans MS.ttf", "DejaVuSans-Oblique.ttf")
    SCRIPT_COMPLEX = ("URWChancery-MediumItalic.ttf", "Apple Chancery.ttf",
                      "DejaVuSerif-Italic.ttf")
    ITALIC = ("DejaVuSans-Oblique.ttf", "Arial Italic.ttf", "DejaVuSans.ttf")


# Pixel height of text at font_scale 1.0 (comparable to a Hershey font at scale 1)
FONT_BASE_SIZE = 30


# =============================================================================
# Background image
# =============================================================================

MAX_BACKGROUND_DIM = 1080  # Longest side after resize; smaller images are not upscaled


# =============================================================================
# Route drawing
# =============================================================================

VIDEO_LINE_THICKNESS = 4
IMAGE_LINE_THICKNESS = 2
MARKER_RADIUS = 8
MIN_SPAN_DEG = 1e-9  # Smallest lat/lon span before the box is widened


# =============================================================================
# Pace / distance bottom bar
# =============================================================================

BOTTOM_BAR_PADDING = 30   # Added to text height for bar height
BOTTOM_BAR_MARGIN = 20    # Left/right and baseline margin
DEFAULT_PACE_WINDOW = 5   # Trailing samples used for the live pace


# =============================================================================
# Lap panel
# =============================================================================

LAP_FONT_SCALE = 0.5
LAP_THICKNESS = 1
LAP_BAR_MAX_WIDTH = 200
LAP_ROW_SPACING = 5
LAP_HEADER_GAP = 20       # Header baseline sits this far above the first row
LAP_BAR_GAP = 60          # Gap between pace text and bar
LAP_HR_OFFSET = 300       # Column x offsets relative to the panel anchor
LAP_LENGTH_OFFSET = 350
LAP_HEADER_LABELS = (
    ("KM  PACE", -20),
    ("BAR", 150),
    ("HR", 285),
    ("LENGTH", 320),
)


# =============================================================================
# Video
# =============================================================================

VIDEO_DURATION_S = 15.0   # Whole route plays in about this long
MIN_FPS = 1.0


# =============================================================================
# Conversion Constants
# =============================================================================

METERS_PER_KM = 1000.0
SECONDS_PER_MINUTE = 60
EARTH_RADIUS_M = 6371000.0
