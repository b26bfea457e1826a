"""
Geometry Module
===============

Viewport overlap evaluation for FOV verification.
"""

from fovstream.geometry.overlap import overlap_profile, overlap_ratio

__all__ = [
    "overlap_ratio",
    "overlap_profile",
]
