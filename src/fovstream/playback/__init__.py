"""
Playback Module
===============

Fire-and-forget playback of downloaded segment frame ranges.
"""

from fovstream.playback.player import (
    NullPlayer,
    OpenCVPlayer,
    PlaybackRequest,
    Player,
    PlayerMetrics,
)

__all__ = [
    "Player",
    "PlaybackRequest",
    "PlayerMetrics",
    "NullPlayer",
    "OpenCVPlayer",
]
