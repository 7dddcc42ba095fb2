"""
Tests for the one-time-download artifact store.
"""

import threading

import pytest
from unittest.mock import patch

from artifact_store import ArtifactStore, render_to_store
from errors import ArtifactNotFoundError, SinkWriteError


class TestArtifactStore:
    """Tests for ArtifactStore."""

    def test_put_and_take(self):
        store = ArtifactStore()
        artifact_id = store.put(b"png")
        assert artifact_id in store
        assert len(store) == 1
        assert store.take(artifact_id) == b"png"

    def test_take_deletes(self):
        """An artifact can be retrieved at most once."""
        store = ArtifactStore()
        artifact_id = store.put(b"png")
        store.take(artifact_id)
        with pytest.raises(ArtifactNotFoundError):
            store.take(artifact_id)
        assert len(store) == 0

    def test_unknown_id(self):
        with pytest.raises(ArtifactNotFoundError):
            ArtifactStore().take("nope")

    def test_reserved_not_readable(self):
        """A read racing an in-progress write fails instead of returning partial data."""
        store = ArtifactStore()
        artifact_id = store.reserve()
        with pytest.raises(ArtifactNotFoundError):
            store.take(artifact_id)
        store.commit(artifact_id, b"video")
        assert store.take(artifact_id) == b"video"

    def test_commit_requires_reservation(self):
        store = ArtifactStore()
        with pytest.raises(ArtifactNotFoundError):
            store.commit("never-reserved", b"x")

    def test_double_commit_rejected(self):
        store = ArtifactStore()
        artifact_id = store.reserve()
        store.commit(artifact_id, b"x")
        with pytest.raises(ArtifactNotFoundError):
            store.commit(artifact_id, b"y")

    def test_unique_ids(self):
        store = ArtifactStore()
        assert store.put(b"a") != store.put(b"b")

    def test_concurrent_takes_succeed_once(self):
        """Many threads racing for one artifact: exactly one wins."""
        store = ArtifactStore()
        artifact_id = store.put(b"data")
        results = []
        lock = threading.Lock()

        def grab():
            try:
                data = store.take(artifact_id)
            except ArtifactNotFoundError:
                data = None
            with lock:
                results.append(data)

        threads = [threading.Thread(target=grab) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(b"data") == 1
        assert results.count(None) == 15


class TestRenderToStore:
    """Tests for rendering straight into the store."""

    def test_image_artifact(self, lap_activity, background):
        store = ArtifactStore()
        artifact_id = render_to_store(store, lap_activity, background)
        data = store.take(artifact_id)
        assert data.startswith(b"\x89PNG")

    def test_failure_leaves_nothing(self, lap_activity, background):
        """A failed render does not publish or leak a reservation."""
        store = ArtifactStore()
        with patch('artifact_store.ImageFileSink.write', side_effect=IOError("disk full")):
            with pytest.raises(SinkWriteError):
                render_to_store(store, lap_activity, background)
        assert len(store) == 0
        assert not store._pending
