"""
Activity data for the route overlay renderer.

Models for GPS samples and laps, plus a FIT file reader that produces them.
"""

from activity.data_models import (
    GeoSample,
    Lap,
    Activity,
    format_pace,
    speed_to_pace,
)
from activity.fit_reader import read_activity, activity_from_messages

__all__ = [
    "GeoSample",
    "Lap",
    "Activity",
    "format_pace",
    "speed_to_pace",
    "read_activity",
    "activity_from_messages",
]
