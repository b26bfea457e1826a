"""
Test Configuration
==================

Pytest fixtures and in-memory collaborators for fovstream.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from fovstream.models.manifest import Manifest, PredictedPath, SegmentMetadata
from fovstream.models.protocol import FovDecision, FullDecision
from fovstream.models.viewport import ViewportRect
from fovstream.storage.naming import SegmentNaming
from fovstream.storage.store import StorageError
from fovstream.trace.viewport_trace import ViewportTrace


FRAMES_PER_SEGMENT = 15


# =============================================================================
# Fakes
# =============================================================================

class FakeTransport:
    """Transport that replays scripted decisions and records traffic."""

    def __init__(self, decisions=None, error: Optional[Exception] = None) -> None:
        self.decisions = list(decisions or [])
        self.error = error
        self.requests: List = []
        self.sent: List = []
        self.closed = False

    def request(self, message, response_model):
        if self.error is not None:
            raise self.error
        self.requests.append(message)
        decision = self.decisions.pop(0)
        return response_model(decision=decision)

    def send(self, message) -> None:
        self.sent.append(message)

    def close(self) -> None:
        self.closed = True


class FakeStore:
    """Store that writes a fixed payload per remote name."""

    def __init__(self, sizes: Optional[Dict[str, int]] = None, missing=()) -> None:
        self.sizes = sizes or {}
        self.missing = set(missing)
        self.fetched: List[Tuple[str, str]] = []

    def fetch(self, remote_name: str, local_destination: str) -> None:
        self.fetched.append((remote_name, local_destination))
        if remote_name in self.missing:
            raise StorageError(f"Object not found: {remote_name}")
        destination = Path(local_destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"\0" * self.sizes.get(remote_name, 100))


class RecordingPlayer:
    """Player that records play() calls."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, int, Optional[int]]] = []
        self.closed = False

    def play(self, local_file: str, start_frame: int, end_frame: Optional[int]) -> None:
        self.calls.append((local_file, start_frame, end_frame))

    def close(self) -> None:
        self.closed = True


# =============================================================================
# Helpers
# =============================================================================

def rect(frame_index: int, x: float = 0.0, y: float = 0.0, w: float = 100.0, h: float = 100.0) -> ViewportRect:
    return ViewportRect(frame_index=frame_index, x=x, y=y, width=w, height=h)


def static_trace(frame_count: int, x: float = 0.0, y: float = 0.0) -> ViewportTrace:
    """Trace where the user never moves."""
    return ViewportTrace([rect(i, x, y) for i in range(frame_count)])


def make_manifest(segment_count: int, paths_per_segment: Optional[Dict[int, List[PredictedPath]]] = None) -> Manifest:
    paths_per_segment = paths_per_segment or {}
    return Manifest(
        segments={
            seg: SegmentMetadata(
                segment_id=seg,
                byte_size=1000 * seg,
                paths={p.path_id: p for p in paths_per_segment.get(seg, [])},
            )
            for seg in range(1, segment_count + 1)
        }
    )


def matching_path(segment_id: int, path_id: int = 0) -> PredictedPath:
    """Path that exactly matches a static trace at the origin."""
    start = (segment_id - 1) * FRAMES_PER_SEGMENT
    return PredictedPath(
        path_id=path_id,
        rectangles=[rect(start + offset) for offset in range(FRAMES_PER_SEGMENT)],
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def naming(tmp_path):
    """Artifact naming rooted in a temporary segment directory."""
    return SegmentNaming(video_name="rhino", segment_dir=str(tmp_path / "segments"))


@pytest.fixture
def player():
    return RecordingPlayer()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def full_decision():
    return FullDecision()


@pytest.fixture
def fov_decision():
    return FovDecision(path_id=0)


@pytest.fixture
def sample_manifest_document():
    """Provide a serialized two-segment manifest."""
    return {
        "length": 2,
        "segments": [
            {"size": -1, "paths": []},
            {
                "size": 48213,
                "paths": [
                    {
                        "pathId": 0,
                        "rectangles": [
                            {"frameIndex": 0, "x": 10.0, "y": 20.0, "width": 1280.0, "height": 720.0},
                            {"frameIndex": 5, "x": 30.0, "y": 20.0, "width": 1280.0, "height": 720.0},
                        ],
                    }
                ],
            },
            {"size": 51877, "paths": []},
        ],
    }

