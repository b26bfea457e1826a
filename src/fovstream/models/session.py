"""
Session Models
==============

This module defines the phases of the per-segment fetch protocol and the
records a session produces.

Phases (per segment, SVR mode):
    AWAIT_TRACE -> REQUEST_SENT -> DECISION_RECEIVED
        -> FULL_FETCH                              -> SEGMENT_DONE
        -> FOV_VERIFY -> ACCEPTED                  -> SEGMENT_DONE
        -> FOV_VERIFY -> REJECTED -> FALLBACK_FETCH -> SEGMENT_DONE

BASELINE mode skips negotiation entirely:
    FULL_FETCH -> SEGMENT_DONE
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from fovstream.models.protocol import FovDecision, FullDecision, Verdict


class FetchMode(str, Enum):
    """
    Session fetch modes.

    Attributes:
        BASELINE: Always fetch full-size segments, no server round-trips
        SVR: Negotiate FOV segments with the server
    """

    BASELINE = "BASELINE"
    SVR = "SVR"

    @classmethod
    def parse(cls, value: str) -> "FetchMode":
        """Parse a mode name case-insensitively."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown mode {value!r}; expected one of "
                f"{', '.join(m.value for m in cls)}"
            ) from None


class FetchPhase(str, Enum):
    """Discrete phases of the per-segment fetch protocol."""

    AWAIT_TRACE = "AWAIT_TRACE"
    REQUEST_SENT = "REQUEST_SENT"
    DECISION_RECEIVED = "DECISION_RECEIVED"
    FOV_VERIFY = "FOV_VERIFY"
    FULL_FETCH = "FULL_FETCH"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    FALLBACK_FETCH = "FALLBACK_FETCH"
    SEGMENT_DONE = "SEGMENT_DONE"


class SegmentOutcome(BaseModel):
    """
    Result of processing one segment.

    Attributes:
        segment_id: Segment that was processed
        mode: Session mode
        decision: Server decision (None in BASELINE mode)
        verdict: Verdict sent to the server (None unless a FOV path was chosen)
        decoded_frames: Frames played from the FOV crop
        fallback: Whether the full segment was fetched after a BAD verdict
        bytes_fetched: Bytes downloaded for this segment
        fetch_failed: Whether any artifact fetch failed
        round_trips: Request/response exchanges with the server
        phases: Phases visited, in order
    """

    segment_id: int = Field(..., ge=1)
    mode: FetchMode
    decision: Optional[Union[FullDecision, FovDecision]] = None
    verdict: Optional[Verdict] = None
    decoded_frames: int = Field(default=0, ge=0)
    fallback: bool = False
    bytes_fetched: int = Field(default=0, ge=0)
    fetch_failed: bool = False
    round_trips: int = Field(default=0, ge=0)
    phases: List[FetchPhase] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.verdict == Verdict.GOOD


class SessionReport(BaseModel):
    """
    Summary of a whole session.

    Attributes:
        mode: Session mode
        outcomes: One outcome per segment, in segment order
        round_trips: Number of request/response exchanges with the server
    """

    mode: FetchMode
    outcomes: List[SegmentOutcome] = Field(default_factory=list)
    round_trips: int = Field(default=0, ge=0)

    @property
    def segments_processed(self) -> int:
        return len(self.outcomes)
