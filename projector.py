"""
Projection of GPS samples into background-image pixel space.

Latitude and longitude spans are stretched independently into a box of
``scale`` times the image size, placed at the configured percentage offsets.
This is a plain affine mapping of the bounding box, not a map projection.
"""

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Tuple, Union

import numpy as np

from activity.data_models import GeoSample
from config import RenderConfig, RouteScale
from constants import MIN_SPAN_DEG
from errors import DegenerateBoundingBoxError, EmptyRouteError

logger = logging.getLogger(__name__)


class PixelPoint(NamedTuple):
    """Image-space coordinate (x right, y down)."""
    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    """Geographic extent of a route in degrees."""
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def lat_span(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def lon_span(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def is_degenerate(self) -> bool:
        return self.lat_span < MIN_SPAN_DEG or self.lon_span < MIN_SPAN_DEG

    def widened(self, min_span: float = MIN_SPAN_DEG) -> "BoundingBox":
        """
        Return a box whose spans are at least ``min_span``.

        Narrow axes are widened symmetrically about their centre, so a single
        point or a straight N/S or E/W line lands in the middle of that axis.
        """
        min_lat, max_lat = _widen(self.min_lat, self.max_lat, min_span)
        min_lon, max_lon = _widen(self.min_lon, self.max_lon, min_span)
        return BoundingBox(min_lat, max_lat, min_lon, max_lon)


def _widen(lo: float, hi: float, min_span: float) -> Tuple[float, float]:
    if hi - lo >= min_span:
        return lo, hi
    center = (lo + hi) / 2.0
    return center - min_span / 2.0, center + min_span / 2.0


def _coordinates(samples: Sequence[GeoSample]) -> Tuple[np.ndarray, np.ndarray]:
    if not samples:
        raise EmptyRouteError("Cannot project an empty route")
    lats = np.fromiter((s.latitude for s in samples), dtype=np.float64, count=len(samples))
    lons = np.fromiter((s.longitude for s in samples), dtype=np.float64, count=len(samples))
    return lats, lons


def compute_bounds(samples: Sequence[GeoSample]) -> BoundingBox:
    """
    Compute the bounding box of all samples.

    Raises:
        EmptyRouteError: If there are no samples
    """
    lats, lons = _coordinates(samples)
    return BoundingBox(
        min_lat=float(lats.min()),
        max_lat=float(lats.max()),
        min_lon=float(lons.min()),
        max_lon=float(lons.max()),
    )


def project_route(samples: Sequence[GeoSample], config: Union[RenderConfig, RouteScale],
                  image_size: Tuple[int, int]) -> List[PixelPoint]:
    """
    Map every sample to a pixel position on the background image.

    Args:
        samples: Route samples in chronological order
        config: Render config (or just its RouteScale) giving scale and offsets
        image_size: Background (width, height) in pixels

    Returns:
        One PixelPoint per sample, in the same order

    Raises:
        EmptyRouteError: If there are no samples
        DegenerateBoundingBoxError: If coordinates are not finite
    """
    lats, lons = _coordinates(samples)
    width, height = image_size
    route_scale = config.route_scale if isinstance(config, RenderConfig) else config

    bounds = compute_bounds(samples)
    if not np.all(np.isfinite([bounds.min_lat, bounds.max_lat, bounds.min_lon, bounds.max_lon])):
        raise DegenerateBoundingBoxError(f"Route bounds are not finite: {bounds}")

    center_lat = (bounds.min_lat + bounds.max_lat) / 2.0
    center_lon = (bounds.min_lon + bounds.max_lon) / 2.0
    if bounds.is_degenerate:
        logger.debug(f"Degenerate bounding box {bounds}, widening to {MIN_SPAN_DEG} deg")
        bounds = bounds.widened()

    # Measured from the centre so a collapsed axis lands exactly on 0.5
    nx = (lons - center_lon) / bounds.lon_span + 0.5
    ny = 0.5 - (lats - center_lat) / bounds.lat_span  # North up

    xs = route_scale.offset_x_percent * width + nx * route_scale.scale * width
    ys = route_scale.offset_y_percent * height + ny * route_scale.scale * height

    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ys))):
        raise DegenerateBoundingBoxError(f"Projection produced non-finite points for {bounds}")

    return [PixelPoint(float(x), float(y)) for x, y in zip(xs, ys)]
