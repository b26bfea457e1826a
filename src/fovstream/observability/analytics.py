"""
Session Analytics
=================

Compute derived analytics from a finished session.

Analytics are for observability ONLY. They never influence fetch decisions.

Derived from:
    - SessionReport (per-segment outcomes)
    - Manifest (full-size segment sizes)
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from fovstream.geometry.overlap import overlap_profile
from fovstream.models.manifest import Manifest
from fovstream.models.protocol import FovDecision
from fovstream.models.session import SessionReport
from fovstream.trace.viewport_trace import ViewportTrace


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionAnalytics:
    """
    Summary metrics for a session.

    Attributes:
        segments: Segments processed
        fov_segments: Segments where the server chose a FOV path
        acceptance_rate: Fraction of FOV segments verified GOOD
        fallback_count: Segments that needed a fallback full fetch
        mean_decoded_fraction: Mean share of FOV segment frames played from the crop
        bytes_fetched: Total bytes downloaded
        full_bytes: Bytes a full-size-only session would download
        bytes_saved_ratio: 1 - bytes_fetched / full_bytes
        failed_fetches: Segments with at least one failed fetch
        mean_fov_overlap: Mean per-frame overlap of chosen paths over whole segments
    """

    segments: int
    fov_segments: int
    acceptance_rate: float
    fallback_count: int
    mean_decoded_fraction: float
    bytes_fetched: int
    full_bytes: int
    bytes_saved_ratio: float
    failed_fetches: int
    mean_fov_overlap: Optional[float] = None

    def to_dict(self) -> dict:
        """Export analytics as dict."""
        return {
            "segments": self.segments,
            "fov_segments": self.fov_segments,
            "acceptance_rate": self.acceptance_rate,
            "fallback_count": self.fallback_count,
            "mean_decoded_fraction": self.mean_decoded_fraction,
            "bytes_fetched": self.bytes_fetched,
            "full_bytes": self.full_bytes,
            "bytes_saved_ratio": self.bytes_saved_ratio,
            "failed_fetches": self.failed_fetches,
            "mean_fov_overlap": self.mean_fov_overlap,
        }


def compute_session_analytics(
    report: SessionReport,
    manifest: Manifest,
    frames_per_segment: int,
    trace: Optional[ViewportTrace] = None,
) -> SessionAnalytics:
    """
    Compute analytics for a finished session.

    Args:
        report: Session report
        manifest: Manifest the session ran against
        frames_per_segment: Frames per segment
        trace: Ground-truth trace; enables mean_fov_overlap

    Returns:
        Session analytics snapshot
    """
    outcomes = report.outcomes
    fov = [o for o in outcomes if o.verdict is not None]

    decoded = np.array([o.decoded_frames for o in fov], dtype=np.float64)
    accepted = np.array([o.accepted for o in fov], dtype=bool)
    fetched = np.array([o.bytes_fetched for o in outcomes], dtype=np.int64)

    full_sizes = np.array(
        [manifest.segment_byte_size(o.segment_id) or 0 for o in outcomes],
        dtype=np.int64,
    )
    bytes_fetched = int(fetched.sum()) if fetched.size else 0
    full_bytes = int(full_sizes.sum()) if full_sizes.size else 0

    analytics = SessionAnalytics(
        segments=len(outcomes),
        fov_segments=len(fov),
        acceptance_rate=round(float(accepted.mean()), 4) if accepted.size else 0.0,
        fallback_count=sum(1 for o in outcomes if o.fallback),
        mean_decoded_fraction=(
            round(float(decoded.mean()) / frames_per_segment, 4) if decoded.size else 0.0
        ),
        bytes_fetched=bytes_fetched,
        full_bytes=full_bytes,
        bytes_saved_ratio=round(1.0 - bytes_fetched / full_bytes, 4) if full_bytes else 0.0,
        failed_fetches=sum(1 for o in outcomes if o.fetch_failed),
        mean_fov_overlap=_mean_fov_overlap(report, manifest, frames_per_segment, trace),
    )

    logger.info(f"Session analytics: {analytics.to_dict()}")
    return analytics


def _mean_fov_overlap(
    report: SessionReport,
    manifest: Manifest,
    frames_per_segment: int,
    trace: Optional[ViewportTrace],
) -> Optional[float]:
    if trace is None:
        return None

    profiles = []
    for outcome in report.outcomes:
        if not isinstance(outcome.decision, FovDecision):
            continue
        path = manifest.path(outcome.segment_id, outcome.decision.path_id)
        key_frame_index = (outcome.segment_id - 1) * frames_per_segment
        # Verification may stop early, so the trace can end inside a segment.
        frame_count = min(frames_per_segment, len(trace) - key_frame_index)
        if frame_count <= 0:
            continue
        profiles.append(overlap_profile(path, trace, key_frame_index, frame_count))

    if not profiles:
        return None
    return round(float(np.concatenate(profiles).mean()), 4)
