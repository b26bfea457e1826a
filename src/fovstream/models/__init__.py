"""
Data Models
===========

Pydantic models for fovstream.

This module re-exports all data models for convenient access.

Models:
    Viewport:
        - ViewportRect: Per-frame viewport rectangle

    Manifest:
        - PredictedPath: One candidate FOV crop for a segment
        - SegmentMetadata: Size and predicted paths of one segment
        - Manifest: Per-session segment table

    Protocol:
        - FullDecision, FovDecision: Server path decision variants
        - Verdict: GOOD / BAD
        - KeyFrameRequest, DecisionMessage, VerdictMessage: Wire messages

    Session:
        - FetchMode, FetchPhase: Modes and protocol phases
        - SegmentOutcome, SessionReport: Session results
"""

from fovstream.models.viewport import ViewportRect
from fovstream.models.manifest import (
    Manifest,
    ManifestError,
    PredictedPath,
    SegmentMetadata,
    SegmentOutOfRangeError,
    UnknownPathError,
)
from fovstream.models.protocol import (
    DecisionMessage,
    FovDecision,
    FullDecision,
    KeyFrameRequest,
    ProtocolViolationError,
    Verdict,
    VerdictMessage,
)
from fovstream.models.session import FetchMode, FetchPhase, SegmentOutcome, SessionReport

__all__ = [
    # Viewport
    "ViewportRect",
    # Manifest
    "PredictedPath",
    "SegmentMetadata",
    "Manifest",
    "ManifestError",
    "SegmentOutOfRangeError",
    "UnknownPathError",
    # Protocol
    "FullDecision",
    "FovDecision",
    "Verdict",
    "KeyFrameRequest",
    "DecisionMessage",
    "VerdictMessage",
    "ProtocolViolationError",
    # Session
    "FetchMode",
    "FetchPhase",
    "SegmentOutcome",
    "SessionReport",
]
