"""
Tests for the progressive route reveal.
"""

import pytest

from path_accumulator import PathAccumulator, segments
from projector import PixelPoint


@pytest.fixture
def points():
    return [PixelPoint(float(k), float(k * 2)) for k in range(6)]


class TestSegments:
    """Tests for the segments() helper."""

    def test_consecutive_pairs(self, points):
        """N points give N-1 segments joining neighbours."""
        segs = segments(points)
        assert len(segs) == 5
        assert segs[0] == (points[0], points[1])
        assert segs[-1] == (points[4], points[5])

    def test_single_point_has_no_segment(self):
        """A one-point route draws no line."""
        assert segments([PixelPoint(1.0, 1.0)]) == []

    def test_empty(self):
        assert segments([]) == []


class TestPathAccumulator:
    """Tests for PathAccumulator."""

    def test_initial_state(self, points):
        """Nothing is revealed before the first advance."""
        acc = PathAccumulator(points)
        assert acc.revealed_count == 0
        assert acc.current is None
        assert acc.visible_points == []
        assert not acc.is_complete

    def test_first_frame_reveals_marker_only(self, points):
        """Frame 0 reveals one point and no segment."""
        acc = PathAccumulator(points)
        assert acc.advance(0) == []
        assert acc.revealed_count == 1
        assert acc.current == points[0]

    def test_step_by_step_segments(self, points):
        """Each frame adds exactly the segment ending at the new point."""
        acc = PathAccumulator(points)
        acc.advance(0)
        for i in range(1, len(points)):
            assert acc.advance(i) == [(points[i - 1], points[i])]
            assert acc.current == points[i]

    def test_skipping_frames_returns_all_new_segments(self, points):
        """Jumping ahead returns every segment revealed by the jump."""
        acc = PathAccumulator(points)
        acc.advance(1)
        new = acc.advance(4)
        assert new == [(points[1], points[2]), (points[2], points[3]), (points[3], points[4])]

    def test_repeating_frame_adds_nothing(self, points):
        """Advancing to the same frame again draws nothing new."""
        acc = PathAccumulator(points)
        acc.advance(2)
        assert acc.advance(2) == []
        assert acc.revealed_count == 3

    def test_monotonic(self, points):
        """Revealed count never decreases across frames."""
        acc = PathAccumulator(points)
        counts = []
        for i in range(len(points)):
            acc.advance(i)
            counts.append(acc.revealed_count)
        assert counts == sorted(counts)

    def test_backwards_raises(self, points):
        """Moving to an earlier frame is rejected."""
        acc = PathAccumulator(points)
        acc.advance(3)
        with pytest.raises(ValueError):
            acc.advance(1)

    @pytest.mark.parametrize("index", [-1, 6, 100])
    def test_out_of_range_raises(self, points, index):
        acc = PathAccumulator(points)
        with pytest.raises(ValueError):
            acc.advance(index)

    def test_complete_at_last_frame(self, points):
        """At frame N-1 the full route is visible."""
        acc = PathAccumulator(points)
        acc.advance(len(points) - 1)
        assert acc.is_complete
        assert acc.visible_points == points
        assert len(acc) == len(points)
