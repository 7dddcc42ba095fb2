"""
Background image loading.

Decodes the map image the route is drawn on and shrinks it so the longest
side is at most ``max_dim`` pixels, keeping the aspect ratio.
"""

import io
import logging
import os
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from constants import MAX_BACKGROUND_DIM
from errors import BackgroundLoadError

logger = logging.getLogger(__name__)


def fit_size(width: int, height: int, max_dim: int) -> tuple:
    """Target (width, height) with the longest side at most ``max_dim``. Never upscales."""
    scale = min(max_dim / max(width, height), 1.0)
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))


def load_background(source: Union[str, os.PathLike, bytes],
                    max_dim: int = MAX_BACKGROUND_DIM) -> np.ndarray:
    """
    Load a background image as an RGB array.

    Args:
        source: Image path or encoded image bytes (JPEG, PNG, ...)
        max_dim: Longest side after resizing

    Returns:
        uint8 array of shape (height, width, 3)

    Raises:
        BackgroundLoadError: If the image cannot be read or decoded
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(os.fspath(source))
        img = img.convert("RGB")
    except (OSError, UnidentifiedImageError) as e:
        raise BackgroundLoadError(f"Cannot load background image: {e}") from e

    target = fit_size(img.width, img.height, max_dim)
    if target != img.size:
        logger.debug(f"Resizing background {img.width}x{img.height} -> {target[0]}x{target[1]}")
        img = img.resize(target, Image.Resampling.LANCZOS)

    return np.asarray(img, dtype=np.uint8).copy()
