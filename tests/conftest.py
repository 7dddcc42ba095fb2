"""
Pytest configuration and fixtures for route overlay renderer tests.

Provides reusable activities (with and without laps), blank backgrounds and
a sink that records or rejects frames.
"""

import pytest
import numpy as np
from datetime import datetime, timedelta, timezone
from typing import List

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from activity.data_models import Activity, GeoSample, Lap
from config import RenderConfig

START = datetime(2024, 5, 1, 7, 0, 0, tzinfo=timezone.utc)


def make_samples(coords, step_s: float = 1.0, step_m: float = 3.0,
                 heart_rate=None) -> List[GeoSample]:
    """Build chronological samples one ``step_s`` apart, ``step_m`` further each."""
    return [
        GeoSample(
            latitude=lat,
            longitude=lon,
            timestamp=START + timedelta(seconds=k * step_s),
            heart_rate=heart_rate,
            cumulative_distance=k * step_m,
        )
        for k, (lat, lon) in enumerate(coords)
    ]


class RecordingSink:
    """Sink that keeps frame indices and can be told to fail on a frame."""

    def __init__(self, fail_on: int = -1, fail_on_done: bool = False):
        self.fail_on = fail_on
        self.fail_on_done = fail_on_done
        self.indices = []
        self.shapes = []
        self.done_called = False
        self.aborted = False

    def write(self, frame_index, frame):
        if frame_index == self.fail_on:
            raise IOError("disk full")
        self.indices.append(frame_index)
        self.shapes.append(frame.shape)

    def done(self):
        if self.fail_on_done:
            raise IOError("cannot finalize")
        self.done_called = True
        return "recorded"

    def abort(self):
        self.aborted = True


@pytest.fixture
def corner_samples():
    """Three samples at (10,10), (10,11), (11,11)."""
    return make_samples([(10.0, 10.0), (10.0, 11.0), (11.0, 11.0)])


@pytest.fixture
def route_samples():
    """Twenty samples heading north-east."""
    return make_samples([(47.0 + k * 1e-4, 8.0 + k * 1e-4) for k in range(20)])


@pytest.fixture
def two_laps():
    """Laps over samples 0-9 and 10-19; the second is slower and has no heart rate."""
    return [
        Lap(start_index=0, end_index=9, distance=27.0, avg_pace=300.0,
            avg_heart_rate=150.0, avg_stride_length=1.1),
        Lap(start_index=10, end_index=19, distance=27.0, avg_pace=360.0,
            avg_heart_rate=None, avg_stride_length=None),
    ]


@pytest.fixture
def lap_activity(route_samples, two_laps):
    """Activity with 20 samples and two laps."""
    return Activity(samples=route_samples, laps=two_laps)


@pytest.fixture
def no_lap_activity(route_samples):
    """Activity without lap data."""
    return Activity(samples=route_samples, laps=[])


@pytest.fixture
def single_sample_activity():
    """Activity with exactly one GPS sample."""
    return Activity(samples=make_samples([(47.0, 8.0)]), laps=[])


@pytest.fixture
def background():
    """Blank 320x240 RGB background."""
    return np.zeros((240, 320, 3), dtype=np.uint8)


@pytest.fixture
def default_config():
    return RenderConfig.default()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def temp_video_path(tmp_path):
    """Fixture providing a temporary path for video output."""
    return str(tmp_path / "test_output.mp4")
