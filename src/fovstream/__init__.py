"""
fovstream
=========

Adaptive field-of-view streaming client for panoramic / VR video.

Instead of always fetching full-frame segments, the client asks the VR
server which predicted FOV crop to fetch for each segment, verifies the
crop against the viewer's actual viewport frame by frame, and falls back to
the full segment when the prediction does not hold.

Components:
    - models: Viewport, manifest, protocol and session data models
    - geometry: Viewport overlap evaluation
    - manifest: Manifest construction from segment inventory + predictions
    - trace: Ground-truth viewport trace
    - transport: WebSocket request/response with the VR server
    - storage: Segment artifact fetching
    - playback: Fire-and-forget segment decoding
    - agent: LangGraph-based fetch decision protocol
    - observability: Session analytics

Example:
    from fovstream.agent import FetchSession
    from fovstream.models import FetchMode, Manifest

    # See main.py for the CLI entry point
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
