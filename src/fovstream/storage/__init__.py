"""
Storage Module
==============

Fetching segment artifacts and manifests into local storage.

Example:
    from fovstream.storage import HttpSegmentStore, SegmentNaming

    store = HttpSegmentStore("http://localhost:9000/vros-video-segments")
    naming = SegmentNaming(video_name="rhino", segment_dir="tmp")
    store.fetch(naming.remote_full(1), naming.local_full(1))
"""

from fovstream.storage.naming import SegmentNaming
from fovstream.storage.store import (
    HttpSegmentStore,
    LocalSegmentStore,
    SegmentStore,
    StorageError,
)

__all__ = [
    "SegmentNaming",
    "SegmentStore",
    "StorageError",
    "HttpSegmentStore",
    "LocalSegmentStore",
]
