"""
Storage Tests
=============

Tests for artifact naming and the storage backends.
"""

import pytest
import requests


class FakeResponse:
    """Minimal streamed response."""

    def __init__(self, body: bytes, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size: int):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start:start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        pass


class FakeSession:
    """Session that fails a fixed number of times before answering."""

    def __init__(self, body: bytes = b"segment", failures: int = 0, status_code: int = 200) -> None:
        self.body = body
        self.failures = failures
        self.status_code = status_code
        self.urls = []

    def get(self, url, stream=False, timeout=None):
        self.urls.append(url)
        if self.failures > 0:
            self.failures -= 1
            raise requests.ConnectionError("connection refused")
        return FakeResponse(self.body, self.status_code)


class TestSegmentNaming:
    """Tests for SegmentNaming."""

    def test_remote_names(self):
        from fovstream.storage import SegmentNaming

        naming = SegmentNaming(video_name="rhino", segment_dir="tmp")

        assert naming.manifest_key == "rhino-manifest.txt"
        assert naming.remote_full(3) == "rhino-full/output_3.mp4"
        assert naming.remote_fov(3, 1) == "rhino-fov/3/1.mp4"

    def test_local_names(self, tmp_path):
        from fovstream.storage import SegmentNaming

        naming = SegmentNaming(video_name="rhino", segment_dir=str(tmp_path))

        assert naming.local_manifest == str(tmp_path / "rhino-manifest.txt")
        assert naming.local_full(2) == str(tmp_path / "full_2.mp4")
        assert naming.local_fov(2, 4) == str(tmp_path / "fov_2_4.mp4")


class TestLocalSegmentStore:
    """Tests for LocalSegmentStore."""

    def test_fetch_copies_file(self, tmp_path):
        """Objects are copied, creating the destination directory."""
        from fovstream.storage import LocalSegmentStore

        source = tmp_path / "bucket" / "rhino-full" / "output_1.mp4"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"x" * 64)

        destination = tmp_path / "out" / "full_1.mp4"
        LocalSegmentStore(str(tmp_path / "bucket")).fetch("rhino-full/output_1.mp4", str(destination))

        assert destination.read_bytes() == b"x" * 64

    def test_missing_object(self, tmp_path):
        from fovstream.storage import LocalSegmentStore, StorageError

        with pytest.raises(StorageError):
            LocalSegmentStore(str(tmp_path)).fetch("nope.mp4", str(tmp_path / "out.mp4"))


class TestHttpSegmentStore:
    """Tests for HttpSegmentStore."""

    def test_url_for(self):
        from fovstream.storage import HttpSegmentStore

        store = HttpSegmentStore("http://minio:9000/bucket/", session=FakeSession())
        assert store.url_for("/rhino-fov/1/0.mp4") == "http://minio:9000/bucket/rhino-fov/1/0.mp4"

    def test_fetch_streams_to_disk(self, tmp_path):
        from fovstream.storage import HttpSegmentStore

        body = bytes(range(256)) * 10
        store = HttpSegmentStore("http://minio:9000/bucket", chunk_size=100, session=FakeSession(body))
        destination = tmp_path / "seg" / "full_1.mp4"

        store.fetch("rhino-full/output_1.mp4", str(destination))

        assert destination.read_bytes() == body

    def test_retries_until_success(self, tmp_path):
        """Transient failures are retried up to max_attempts."""
        from fovstream.storage import HttpSegmentStore

        session = FakeSession(failures=2)
        store = HttpSegmentStore("http://minio:9000/bucket", max_attempts=3, retry_backoff_ms=0, session=session)

        store.fetch("a.mp4", str(tmp_path / "a.mp4"))

        assert len(session.urls) == 3
        assert (tmp_path / "a.mp4").read_bytes() == b"segment"

    def test_no_retry_by_default(self, tmp_path):
        """A single attempt is made unless configured otherwise."""
        from fovstream.storage import HttpSegmentStore, StorageError

        session = FakeSession(failures=1)
        store = HttpSegmentStore("http://minio:9000/bucket", session=session)

        with pytest.raises(StorageError):
            store.fetch("a.mp4", str(tmp_path / "a.mp4"))
        assert len(session.urls) == 1

    def test_http_error_status(self, tmp_path):
        """Error statuses surface as StorageError."""
        from fovstream.storage import HttpSegmentStore, StorageError

        store = HttpSegmentStore("http://minio:9000/bucket", session=FakeSession(status_code=404))

        with pytest.raises(StorageError):
            store.fetch("missing.mp4", str(tmp_path / "missing.mp4"))

    def test_invalid_attempts(self):
        from fovstream.storage import HttpSegmentStore

        with pytest.raises(ValueError):
            HttpSegmentStore("http://minio:9000/bucket", max_attempts=0, session=FakeSession())
