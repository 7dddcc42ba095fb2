"""
FIT file reader for recorded activities.

Decodes Garmin FIT files with the fit-tool library and converts record and
lap messages into an Activity (GeoSamples plus Laps).
"""

import bisect
import logging
import math
import os
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from activity.data_models import Activity, GeoSample, Lap, speed_to_pace
from constants import EARTH_RADIUS_M, METERS_PER_KM
from errors import ActivityParseError

logger = logging.getLogger(__name__)

# FIT global message numbers
RECORD_MESG_NUM = 20
LAP_MESG_NUM = 19

# Step length is stored in millimetres
MM_PER_M = 1000.0


def _fit_timestamp_to_datetime(value: Optional[float]) -> Optional[datetime]:
    """
    Convert a fit-tool timestamp to a UTC datetime.

    fit-tool exposes timestamps as Unix milliseconds after applying its own
    FIT epoch offset.
    """
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in metres."""
    lat1_rad, lon1_rad = math.radians(lat1), math.radians(lon1)
    lat2_rad, lon2_rad = math.radians(lat2), math.radians(lon2)
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def _samples_from_records(records: Iterable) -> List[GeoSample]:
    samples: List[GeoSample] = []
    for rec in records:
        lat = getattr(rec, "position_lat", None)
        lon = getattr(rec, "position_long", None)
        timestamp = _fit_timestamp_to_datetime(getattr(rec, "timestamp", None))
        if lat is None or lon is None or timestamp is None:
            continue

        distance = getattr(rec, "distance", None)
        if distance is None:
            # No distance field: integrate along the track
            if samples:
                prev = samples[-1]
                distance = prev.cumulative_distance + haversine_m(
                    prev.latitude, prev.longitude, lat, lon
                )
            else:
                distance = 0.0
        elif samples and distance < samples[-1].cumulative_distance:
            distance = samples[-1].cumulative_distance

        heart_rate = getattr(rec, "heart_rate", None)
        cadence = getattr(rec, "cadence", None)
        samples.append(GeoSample(
            latitude=float(lat),
            longitude=float(lon),
            timestamp=timestamp,
            heart_rate=int(heart_rate) if heart_rate is not None else None,
            cadence=float(cadence) if cadence is not None else None,
            cumulative_distance=float(distance),
        ))
    return samples


def _lap_pace(message) -> float:
    """Average lap pace in s/km from the best available field."""
    speed = getattr(message, "enhanced_avg_speed", None)
    if speed is None:
        speed = getattr(message, "avg_speed", None)
    if speed is not None:
        return speed_to_pace(speed)

    distance = getattr(message, "total_distance", None)
    timer = getattr(message, "total_timer_time", None)
    if distance and timer:
        return timer / (distance / METERS_PER_KM)
    return 0.0


def _laps_from_messages(lap_messages: Iterable, samples: List[GeoSample]) -> List[Lap]:
    """Map lap messages onto sample index ranges using their time window."""
    if not samples:
        return []

    times = [s.timestamp for s in samples]
    laps: List[Lap] = []
    previous_end = -1

    for n, message in enumerate(lap_messages):
        start_time = _fit_timestamp_to_datetime(getattr(message, "start_time", None))
        end_time = _fit_timestamp_to_datetime(getattr(message, "timestamp", None))
        if start_time is None or end_time is None:
            logger.debug(f"Skipping lap {n}: missing start or end time")
            continue

        start_index = max(bisect.bisect_left(times, start_time), previous_end + 1)
        end_index = bisect.bisect_right(times, end_time) - 1
        if start_index >= len(samples) or end_index < start_index:
            logger.debug(f"Skipping lap {n}: no samples between {start_time} and {end_time}")
            continue

        step_length = getattr(message, "avg_step_length", None)
        avg_hr = getattr(message, "avg_heart_rate", None)
        distance = getattr(message, "total_distance", None)
        if distance is None:
            distance = samples[end_index].cumulative_distance - samples[start_index].cumulative_distance

        laps.append(Lap(
            start_index=start_index,
            end_index=end_index,
            distance=float(distance),
            avg_pace=_lap_pace(message),
            avg_heart_rate=float(avg_hr) if avg_hr is not None else None,
            avg_stride_length=step_length / MM_PER_M if step_length is not None else None,
        ))
        previous_end = end_index

    return laps


def activity_from_messages(messages: Iterable) -> Activity:
    """
    Build an Activity from decoded FIT data messages.

    Messages are matched on their FIT global message number, so any object
    exposing ``global_id`` and the profile field names is accepted.

    Args:
        messages: Decoded messages in file order

    Returns:
        Activity with samples in file order and laps mapped to sample ranges
    """
    records = []
    lap_messages = []
    for message in messages:
        global_id = getattr(message, "global_id", None)
        if global_id == RECORD_MESG_NUM:
            records.append(message)
        elif global_id == LAP_MESG_NUM:
            lap_messages.append(message)

    samples = _samples_from_records(records)
    laps = _laps_from_messages(lap_messages, samples)
    logger.debug(f"Decoded {len(samples)} samples and {len(laps)} laps "
                 f"from {len(records)} records")
    return Activity(samples=samples, laps=laps)


def read_activity(source: Union[str, os.PathLike, bytes]) -> Activity:
    """
    Read a FIT file (path or raw bytes) into an Activity.

    Args:
        source: Path to a .fit file, or its contents

    Returns:
        Activity decoded from the file

    Raises:
        ActivityParseError: If the file cannot be opened or decoded
    """
    try:
        from fit_tool.fit_file import FitFile
    except ImportError as e:
        raise ImportError(
            "fit-tool library required for FIT import. Install with: pip install fit-tool"
        ) from e

    try:
        if isinstance(source, (bytes, bytearray)):
            fit_file = FitFile.from_bytes(bytes(source))
        else:
            fit_file = FitFile.from_file(os.fspath(source))
    except Exception as e:
        raise ActivityParseError(f"Failed to read FIT data: {e}") from e

    return activity_from_messages(record.message for record in fit_file.records)
