"""
Protocol Message Schema
=======================

Pydantic models for the messages exchanged with the VR server.

Message Flow (per segment, SVR mode):
    client -> server   KeyFrameRequest   key-frame viewport metadata
    server -> client   DecisionMessage   FULL or a predicted path id
    client -> server   VerdictMessage    GOOD or BAD after verification

Wire Encoding:
    Every message is one JSON text frame. The "type" field names the message:

    {"type": "metadata", "segment_id": 3,
     "viewport": {"frameIndex": 30, "x": 0.0, "y": 0.0, "width": 1280.0, "height": 720.0}}

    {"type": "decision", "decision": {"kind": "full"}}
    {"type": "decision", "decision": {"kind": "fov", "path_id": 2}}

    {"type": "verdict", "segment_id": 3, "verdict": "BAD", "decoded_frames": 5}
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from fovstream.models.viewport import ViewportRect


class ProtocolViolationError(Exception):
    """Raised when the server breaks the fetch protocol contract."""
    pass


class FullDecision(BaseModel):
    """Server asks the client to fetch the whole-frame segment."""

    kind: Literal["full"] = "full"

    def __str__(self) -> str:
        return "FULL"


class FovDecision(BaseModel):
    """Server chose one of the segment's predicted FOV crops."""

    kind: Literal["fov"] = "fov"
    path_id: int = Field(..., ge=0, description="Predicted path chosen by the server")

    def __str__(self) -> str:
        return f"FOV(path={self.path_id})"


Decision = Annotated[Union[FullDecision, FovDecision], Field(discriminator="kind")]


class Verdict(str, Enum):
    """
    Client's report after verifying a FOV segment.

    Attributes:
        GOOD: Every frame of the segment passed the overlap threshold
        BAD: A frame fell below the threshold; full segment fetched instead
    """

    GOOD = "GOOD"
    BAD = "BAD"


class KeyFrameRequest(BaseModel):
    """Key-frame viewport metadata sent to request a path decision."""

    type: Literal["metadata"] = "metadata"
    segment_id: int = Field(..., ge=1)
    viewport: ViewportRect


class DecisionMessage(BaseModel):
    """Server reply carrying the authoritative path decision."""

    type: Literal["decision"] = "decision"
    decision: Decision


class VerdictMessage(BaseModel):
    """Verification result reported back to the server."""

    type: Literal["verdict"] = "verdict"
    segment_id: int = Field(..., ge=1)
    verdict: Verdict
    decoded_frames: int = Field(
        ...,
        ge=0,
        description="Frames verified from the start of the segment",
    )
