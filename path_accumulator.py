"""
Incremental reveal of a projected route for progressive rendering.

The accumulator tracks how much of the route has been drawn so far and where
the current-position marker sits. Each call to advance() returns only the
segments revealed since the previous call, so the caller can draw them once
onto a persistent path layer instead of redrawing the whole prefix per frame.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from projector import PixelPoint

logger = logging.getLogger(__name__)

Segment = Tuple[PixelPoint, PixelPoint]


def segments(points: Sequence[PixelPoint]) -> List[Segment]:
    """Consecutive point pairs. Fewer than two points yield no segment."""
    return [(points[k - 1], points[k]) for k in range(1, len(points))]


class PathAccumulator:
    """
    Monotonic prefix reveal over a fixed sequence of pixel points.

    Example:
        acc = PathAccumulator(points)
        for i in range(len(points)):
            for p1, p2 in acc.advance(i):
                draw.line([p1, p2], ...)
            marker = acc.current
    """

    def __init__(self, points: Sequence[PixelPoint]):
        self._points = list(points)
        self._revealed = 0

    def __len__(self) -> int:
        return len(self._points)

    @property
    def revealed_count(self) -> int:
        """Number of points revealed so far (0 before the first advance)."""
        return self._revealed

    @property
    def current(self) -> Optional[PixelPoint]:
        """Marker position: the last revealed point, or None before the first advance."""
        if self._revealed == 0:
            return None
        return self._points[self._revealed - 1]

    @property
    def visible_points(self) -> List[PixelPoint]:
        return self._points[:self._revealed]

    @property
    def is_complete(self) -> bool:
        return bool(self._points) and self._revealed == len(self._points)

    def advance(self, index: int) -> List[Segment]:
        """
        Reveal the prefix ``[0..=index]``.

        Args:
            index: Frame index in ``[0, N)``, not lower than the last one

        Returns:
            Segments between points that became visible with this call,
            including the one joining the previous prefix to the new points

        Raises:
            ValueError: If index is out of range or moves backwards
        """
        if not 0 <= index < len(self._points):
            raise ValueError(f"Frame index {index} out of range [0, {len(self._points)})")
        if index + 1 < self._revealed:
            raise ValueError(
                f"Frame index {index} is behind the revealed prefix "
                f"({self._revealed} points); reveal is monotonic"
            )

        start = max(self._revealed - 1, 0)
        self._revealed = index + 1
        return segments(self._points[start:self._revealed])
