"""
Tests for background image loading.
"""

import io

import numpy as np
import pytest
from PIL import Image

from background import fit_size, load_background
from errors import BackgroundLoadError


def _png_bytes(width, height, color=(10, 20, 30), mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class TestFitSize:
    """Tests for target size computation."""

    def test_landscape_downscaled(self):
        assert fit_size(2160, 1440, 1080) == (1080, 720)

    def test_portrait_downscaled(self):
        assert fit_size(1000, 4000, 1080) == (270, 1080)

    def test_never_upscales(self):
        assert fit_size(640, 480, 1080) == (640, 480)


class TestLoadBackground:
    """Tests for load_background."""

    def test_from_bytes(self):
        img = load_background(_png_bytes(40, 30))
        assert img.shape == (30, 40, 3)
        assert img.dtype == np.uint8
        assert img[0, 0].tolist() == [10, 20, 30]

    def test_from_path_resized(self, tmp_path):
        path = tmp_path / "map.png"
        path.write_bytes(_png_bytes(400, 200))
        img = load_background(str(path), max_dim=100)
        assert img.shape == (50, 100, 3)

    def test_converts_to_rgb(self):
        img = load_background(_png_bytes(8, 8, color=(1, 2, 3, 255), mode="RGBA"))
        assert img.shape == (8, 8, 3)

    def test_missing_file(self, tmp_path):
        with pytest.raises(BackgroundLoadError):
            load_background(str(tmp_path / "missing.jpg"))

    def test_not_an_image(self):
        with pytest.raises(BackgroundLoadError):
            load_background(b"definitely not an image")

    def test_result_is_writable(self):
        img = load_background(_png_bytes(4, 4))
        img[0, 0] = (0, 0, 0)
