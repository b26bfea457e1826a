"""
Agent Module
============

LangGraph-based deterministic fetch decision protocol:
    - verification.py: Overlap-threshold verification of predicted paths
    - graph.py: Per-segment state machine
    - session.py: Segment-by-segment session driver

Key Design Decisions:
    - LangGraph is used for STRUCTURE, not LLM reasoning
    - The server's decision is authoritative; the client only verifies it
    - A BAD verdict is an expected branch, not an error
"""

from fovstream.agent.graph import SegmentFetchGraph
from fovstream.agent.session import FetchSession
from fovstream.agent.verification import VerificationPolicy, VerificationResult

__all__ = [
    "FetchSession",
    "SegmentFetchGraph",
    "VerificationPolicy",
    "VerificationResult",
]
