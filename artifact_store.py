"""
One-time-download store for finished render artifacts.

A hosting service (e.g. an HTTP front end) keeps rendered files here between
the render request and the download. Each artifact can be taken once; it is
deleted as it is read. Ids reserved for an in-progress write are invisible
to readers until committed, so a download can never see partial data.
"""

import logging
import os
import tempfile
import threading
import uuid
from typing import Dict, Optional, Set

import numpy as np

from activity.data_models import Activity
from config import RenderConfig
from errors import ArtifactNotFoundError
from renderer import RouteRenderer
from sinks import ImageFileSink, VideoFileSink

logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    Thread-safe in-memory artifact store with delete-on-read semantics.

    Example:
        store = ArtifactStore()
        artifact_id = store.put(png_bytes)
        data = store.take(artifact_id)   # second take raises ArtifactNotFoundError
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._artifacts: Dict[str, bytes] = {}
        self._pending: Set[str] = set()

    def reserve(self) -> str:
        """Allocate an id for an artifact that is still being written."""
        artifact_id = uuid.uuid4().hex
        with self._lock:
            self._pending.add(artifact_id)
        return artifact_id

    def commit(self, artifact_id: str, data: bytes) -> None:
        """
        Publish the data for a reserved id.

        Raises:
            ArtifactNotFoundError: If the id was never reserved or is already committed
        """
        with self._lock:
            if artifact_id not in self._pending:
                raise ArtifactNotFoundError(artifact_id)
            self._pending.discard(artifact_id)
            self._artifacts[artifact_id] = bytes(data)
        logger.debug(f"Committed artifact {artifact_id} ({len(data)} bytes)")

    def discard(self, artifact_id: str) -> None:
        """Drop a reservation whose write failed."""
        with self._lock:
            self._pending.discard(artifact_id)

    def put(self, data: bytes) -> str:
        """Store finished data and return its id."""
        artifact_id = self.reserve()
        self.commit(artifact_id, data)
        return artifact_id

    def take(self, artifact_id: str) -> bytes:
        """
        Return the artifact and delete it.

        Raises:
            ArtifactNotFoundError: If the id is unknown, already taken, or still being written
        """
        with self._lock:
            try:
                return self._artifacts.pop(artifact_id)
            except KeyError:
                raise ArtifactNotFoundError(artifact_id) from None

    def __contains__(self, artifact_id: str) -> bool:
        with self._lock:
            return artifact_id in self._artifacts

    def __len__(self) -> int:
        """Number of committed, not yet taken artifacts."""
        with self._lock:
            return len(self._artifacts)


def render_to_store(store: ArtifactStore, activity: Activity, background: np.ndarray,
                    config: Optional[RenderConfig] = None, video: bool = False) -> str:
    """
    Render an image (or video) and publish the encoded bytes in ``store``.

    The id is reserved before rendering starts and only becomes readable
    once the whole artifact is committed.

    Returns:
        Artifact id for a single download
    """
    renderer = RouteRenderer(activity, background, config)
    artifact_id = store.reserve()
    suffix = ".mp4" if video else ".png"
    fd, path = tempfile.mkstemp(suffix=suffix)
    os.close(fd)
    try:
        if video:
            renderer.render_video(VideoFileSink(path, renderer.fps, renderer.image_size))
        else:
            renderer.render_image(ImageFileSink(path))
        with open(path, "rb") as f:
            store.commit(artifact_id, f.read())
    except Exception:
        store.discard(artifact_id)
        raise
    finally:
        if os.path.exists(path):
            os.remove(path)
    return artifact_id
