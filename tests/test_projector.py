"""
Tests for projection of GPS samples into pixel space.
"""

import math

import pytest

from config import RenderConfig, RouteScale
from errors import DegenerateBoundingBoxError, EmptyRouteError
from projector import BoundingBox, PixelPoint, compute_bounds, project_route

from conftest import make_samples


UNIT = RouteScale(scale=1.0, offset_x_percent=0.0, offset_y_percent=0.0)


class TestComputeBounds:
    """Tests for bounding box computation."""

    def test_corner_bounds(self, corner_samples):
        """Bounds of the three corner samples are (10,11,10,11)."""
        bounds = compute_bounds(corner_samples)
        assert bounds == BoundingBox(10.0, 11.0, 10.0, 11.0)

    def test_empty_raises(self):
        """No samples raises EmptyRouteError."""
        with pytest.raises(EmptyRouteError):
            compute_bounds([])

    def test_single_point_is_degenerate(self):
        """A single sample gives zero spans."""
        bounds = compute_bounds(make_samples([(47.0, 8.0)]))
        assert bounds.is_degenerate
        assert bounds.lat_span == 0.0

    def test_widened_keeps_center(self):
        """Widening is symmetric about the centre."""
        box = BoundingBox(5.0, 5.0, 1.0, 2.0).widened(min_span=0.2)
        assert box.min_lat == pytest.approx(4.9)
        assert box.max_lat == pytest.approx(5.1)
        assert (box.min_lon, box.max_lon) == (1.0, 2.0)


class TestProjectRoute:
    """Tests for the affine projection."""

    def test_corner_scenario(self, corner_samples):
        """The three corners map to the unit box corners."""
        points = project_route(corner_samples, UNIT, (100, 100))
        assert points[0] == PixelPoint(0.0, 100.0)   # nx=0, ny=1
        assert points[1] == PixelPoint(100.0, 100.0)  # nx=1
        assert points[2] == PixelPoint(100.0, 0.0)    # ny=0 (north up)

    def test_output_length_matches_input(self, route_samples):
        """One pixel point per sample."""
        points = project_route(route_samples, RenderConfig.default(), (640, 480))
        assert len(points) == len(route_samples)

    def test_accepts_render_config(self, corner_samples):
        """RenderConfig and its RouteScale give the same result."""
        config = RenderConfig(route_scale=UNIT)
        assert project_route(corner_samples, config, (50, 80)) == \
            project_route(corner_samples, UNIT, (50, 80))

    def test_scale_and_offset(self, corner_samples):
        """Offsets are fractions of the image, scale shrinks the box."""
        scale = RouteScale(scale=0.5, offset_x_percent=0.1, offset_y_percent=0.2)
        points = project_route(corner_samples, scale, (200, 100))
        assert points[0].x == pytest.approx(20.0)
        assert points[0].y == pytest.approx(20.0 + 50.0)
        assert points[1].x == pytest.approx(20.0 + 100.0)

    def test_no_aspect_correction(self, corner_samples):
        """Lat and lon spans stretch independently to the image size."""
        points = project_route(corner_samples, UNIT, (300, 100))
        assert points[1].x == pytest.approx(300.0)
        assert points[0].y == pytest.approx(100.0)

    def test_single_point_is_centered(self):
        """A single sample lands at the centre of the scaled box."""
        points = project_route(make_samples([(47.0, 8.0)]), UNIT, (100, 60))
        assert points[0].x == pytest.approx(50.0)
        assert points[0].y == pytest.approx(30.0)

    @pytest.mark.parametrize("coords", [
        [(10.0, 10.0), (10.0, 10.5), (10.0, 11.0)],   # one latitude
        [(10.0, 10.0), (10.5, 10.0), (11.0, 10.0)],   # one longitude
        [(10.0, 10.0)] * 4,                            # one point repeated
    ])
    def test_degenerate_box_is_finite(self, coords):
        """Degenerate boxes produce finite, non-NaN points."""
        points = project_route(make_samples(coords), UNIT, (100, 100))
        assert len(points) == len(coords)
        for p in points:
            assert math.isfinite(p.x) and math.isfinite(p.y)

    def test_straight_east_west_line(self):
        """A line along one latitude spans x and sits at mid-height."""
        points = project_route(make_samples([(10.0, 10.0), (10.0, 11.0)]), UNIT, (100, 100))
        assert points[0].x == pytest.approx(0.0)
        assert points[1].x == pytest.approx(100.0)
        assert points[0].y == pytest.approx(50.0)

    def test_empty_raises(self):
        """Empty input raises EmptyRouteError."""
        with pytest.raises(EmptyRouteError):
            project_route([], UNIT, (100, 100))

    def test_non_finite_coordinates_raise(self):
        """NaN coordinates cannot be rescued by widening."""
        samples = make_samples([(10.0, 10.0), (float("nan"), 11.0)])
        with pytest.raises(DegenerateBoundingBoxError):
            project_route(samples, UNIT, (100, 100))

    def test_deterministic(self, route_samples):
        """Same input, same output."""
        a = project_route(route_samples, UNIT, (640, 480))
        b = project_route(route_samples, UNIT, (640, 480))
        assert a == b

