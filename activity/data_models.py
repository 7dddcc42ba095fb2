"""
Data models for a recorded GPS activity.

Pydantic models for the ordered route samples and lap summaries produced by
the FIT reader and consumed by the rendering pipeline.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from constants import METERS_PER_KM, SECONDS_PER_MINUTE


def format_pace(pace_s_per_km: Optional[float]) -> str:
    """
    Format a pace in seconds per kilometre as ``m:ss``.

    Zero, negative or missing pace (no movement) formats as ``0:00``.
    """
    if pace_s_per_km is None or pace_s_per_km <= 0:
        return "0:00"
    minutes = int(pace_s_per_km // SECONDS_PER_MINUTE)
    seconds = int(round(pace_s_per_km % SECONDS_PER_MINUTE))
    if seconds == SECONDS_PER_MINUTE:
        minutes += 1
        seconds = 0
    return f"{minutes}:{seconds:02d}"


def speed_to_pace(speed_mps: Optional[float]) -> float:
    """Convert speed in m/s to pace in s/km (0.0 when not moving)."""
    if speed_mps is None or speed_mps <= 0:
        return 0.0
    return METERS_PER_KM / speed_mps


class GeoSample(BaseModel):
    """
    Single timestamped GPS position with optional sensor readings.
    """
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(description="WGS84 latitude in degrees")
    longitude: float = Field(description="WGS84 longitude in degrees")
    timestamp: datetime = Field(description="Sample time")
    heart_rate: Optional[int] = Field(default=None, ge=0, description="Beats per minute")
    cadence: Optional[float] = Field(default=None, ge=0, description="Steps/revolutions per minute")
    cumulative_distance: float = Field(default=0.0, ge=0, description="Distance from start in metres")


class Lap(BaseModel):
    """
    Contiguous range of samples with aggregate statistics.

    ``end_index`` is inclusive.
    """
    model_config = ConfigDict(frozen=True)

    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    distance: float = Field(default=0.0, ge=0, description="Lap distance in metres")
    avg_pace: float = Field(default=0.0, ge=0, description="Average pace in s/km")
    avg_heart_rate: Optional[float] = Field(default=None, ge=0)
    avg_stride_length: Optional[float] = Field(default=None, ge=0, description="Metres")

    @model_validator(mode="after")
    def _check_range(self) -> "Lap":
        if self.end_index < self.start_index:
            raise ValueError(
                f"Lap end_index {self.end_index} is before start_index {self.start_index}"
            )
        return self

    @property
    def pace_text(self) -> str:
        return format_pace(self.avg_pace)


class Activity(BaseModel):
    """
    Complete activity: ordered samples plus lap summaries.

    Laps are ordered by start_index, do not overlap, and reference valid
    sample indices. They need not cover every sample.
    """
    model_config = ConfigDict(frozen=True)

    samples: List[GeoSample] = Field(default_factory=list)
    laps: List[Lap] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_laps(self) -> "Activity":
        previous_end = -1
        for i, lap in enumerate(self.laps):
            if lap.start_index <= previous_end:
                raise ValueError(f"Lap {i} overlaps or precedes the previous lap")
            if lap.end_index >= len(self.samples):
                raise ValueError(
                    f"Lap {i} ends at sample {lap.end_index} but only "
                    f"{len(self.samples)} samples exist"
                )
            previous_end = lap.end_index
        return self

    @property
    def duration_seconds(self) -> float:
        """Elapsed time between first and last sample."""
        if len(self.samples) < 2:
            return 0.0
        return (self.samples[-1].timestamp - self.samples[0].timestamp).total_seconds()

    @property
    def distance_meters(self) -> float:
        """Cumulative distance at the last sample."""
        return self.samples[-1].cumulative_distance if self.samples else 0.0
