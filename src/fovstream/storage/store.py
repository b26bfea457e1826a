"""
Segment Storage
===============

Storage collaborators that fetch a named artifact (segment, manifest) into
a local file.

Implementations:
    - HttpSegmentStore: GET from an HTTP object store (bucket URL)
    - LocalSegmentStore: copy from a local directory tree

Design Rules:
    - fetch(remote_name, local_destination) overwrites existing files
    - Failures surface as StorageError; the protocol driver decides what
      to do with them
    - Retries are adapter policy (max_attempts), never the driver's
"""

import logging
import shutil
import time
from pathlib import Path
from typing import Optional, Protocol

import requests


logger = logging.getLogger(__name__)


class StorageError(OSError):
    """Raised when an artifact cannot be fetched or written locally."""
    pass


class SegmentStore(Protocol):
    """
    Protocol for storage backends.

    All implementations must provide a blocking `fetch` that writes the
    named remote object to a local path.
    """

    def fetch(self, remote_name: str, local_destination: str) -> None:
        """
        Fetch a remote object into a local file.

        Raises:
            StorageError: If the object does not exist or the write fails
        """
        ...


def _prepare_destination(local_destination: str) -> Path:
    destination = Path(local_destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    return destination


class HttpSegmentStore:
    """
    Object store reachable over HTTP(S).

    Objects are addressed as {base_url}/{remote_name} and streamed to disk.

    Attributes:
        base_url: Bucket root URL
        timeout: Per-request timeout in seconds
        max_attempts: Attempts per fetch (1 = no retry)
        retry_backoff_ms: Sleep between attempts
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_attempts: int = 1,
        retry_backoff_ms: int = 500,
        chunk_size: int = 64 * 1024,
        session: Optional[requests.Session] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_backoff_ms = retry_backoff_ms
        self.chunk_size = chunk_size
        self._session = session or requests.Session()

    def url_for(self, remote_name: str) -> str:
        return f"{self.base_url}/{remote_name.lstrip('/')}"

    def fetch(self, remote_name: str, local_destination: str) -> None:
        """
        Download an object, retrying up to max_attempts times.

        Raises:
            StorageError: If every attempt fails
        """
        url = self.url_for(remote_name)
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                self._download(url, local_destination)
                return
            except (requests.RequestException, OSError) as e:
                last_error = e
                logger.warning(f"Fetch {url} failed (attempt {attempt}/{self.max_attempts}): {e}")
                if attempt < self.max_attempts:
                    time.sleep(self.retry_backoff_ms / 1000.0)

        raise StorageError(f"Cannot fetch {remote_name}: {last_error}") from last_error

    def _download(self, url: str, local_destination: str) -> None:
        destination = _prepare_destination(local_destination)
        start = time.perf_counter()

        with self._session.get(url, stream=True, timeout=self.timeout) as response:
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    f.write(chunk)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Downloaded {url} -> {destination} "
            f"({destination.stat().st_size} bytes, {elapsed_ms:.1f}ms)"
        )


class LocalSegmentStore:
    """
    Object store backed by a local directory tree.

    Useful for offline runs and tests; remote names are paths relative to root.
    """

    def __init__(self, root: str) -> None:
        self.root = Path(root)

    def fetch(self, remote_name: str, local_destination: str) -> None:
        source = self.root / remote_name
        if not source.is_file():
            raise StorageError(f"Object not found: {source}")

        try:
            destination = _prepare_destination(local_destination)
            shutil.copyfile(source, destination)
        except OSError as e:
            raise StorageError(f"Cannot copy {source} to {local_destination}: {e}") from e

        logger.debug(f"Copied {source} -> {destination}")
