"""
Error types for the route overlay renderer.

Configuration and data-shape errors are raised before any drawing starts.
Sink errors abort a job mid-way. Missing optional data (heart rate, stride,
laps) is never an error at the job level.
"""


class RouteRenderError(Exception):
    """Base class for all renderer failures."""


class EmptyRouteError(RouteRenderError, ValueError):
    """The activity contains no GPS samples."""


class DegenerateBoundingBoxError(RouteRenderError, ValueError):
    """The bounding box could not be made non-degenerate (non-finite input)."""


class MissingLapDataError(RouteRenderError, LookupError):
    """A lap panel was requested but the activity has no laps."""


class SinkWriteError(RouteRenderError, RuntimeError):
    """The output sink rejected a frame. The whole job is aborted."""

    def __init__(self, message: str, frame_index: int = -1):
        super().__init__(message)
        self.frame_index = frame_index


class InvalidConfigError(RouteRenderError, ValueError):
    """RenderConfig failed validation (e.g. scale <= 0)."""


class ActivityParseError(RouteRenderError, ValueError):
    """The activity file could not be read or decoded."""


class ArtifactNotFoundError(RouteRenderError, KeyError):
    """No finished artifact exists for the requested id."""


class BackgroundLoadError(RouteRenderError, ValueError):
    """The background image could not be read or decoded."""
