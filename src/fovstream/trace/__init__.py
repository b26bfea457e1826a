"""
Trace Module
============

Ground-truth viewport trace consumed by FOV verification.
"""

from fovstream.trace.viewport_trace import TraceFormatError, TraceIndexError, ViewportTrace

__all__ = [
    "ViewportTrace",
    "TraceIndexError",
    "TraceFormatError",
]
