"""
Observability Module
====================

Derived session analytics. Nothing here influences fetch decisions.
"""

from fovstream.observability.analytics import SessionAnalytics, compute_session_analytics

__all__ = [
    "SessionAnalytics",
    "compute_session_analytics",
]
