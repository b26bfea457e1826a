"""
Viewport Overlap
================

Overlap evaluation between a predicted FOV crop and the viewport the user
actually looked at.

The ratio is ASYMMETRIC: it measures how much of the actual viewport falls
inside the predicted crop,

    overlap_ratio = area(predicted ∩ actual) / area(actual)

so a predicted crop that fully contains the actual viewport scores 1.0
regardless of how much larger it is.

Design Rules:
    - overlap_ratio is pure and deterministic; it gates accept/reject
    - Degenerate rectangles (width or height <= 0) are a caller error
    - overlap_profile is for analytics only, never for decisions
"""

import logging

import numpy as np

from fovstream.models.manifest import PredictedPath
from fovstream.models.viewport import ViewportRect


logger = logging.getLogger(__name__)


def _check_extent(rect: ViewportRect, role: str) -> None:
    if rect.width <= 0 or rect.height <= 0:
        raise ValueError(
            f"{role} rectangle must have positive extent, "
            f"got width={rect.width}, height={rect.height}"
        )


def overlap_ratio(predicted: ViewportRect, actual: ViewportRect) -> float:
    """
    Fraction of the actual viewport covered by the predicted rectangle.

    Args:
        predicted: Predicted FOV rectangle for the frame
        actual: Ground-truth user viewport for the frame

    Returns:
        Ratio in [0, 1]; 0.0 when disjoint, 1.0 when actual is contained

    Raises:
        ValueError: If either rectangle has non-positive width or height
    """
    _check_extent(predicted, "predicted")
    _check_extent(actual, "actual")

    overlap_w = min(predicted.right, actual.right) - max(predicted.x, actual.x)
    overlap_h = min(predicted.bottom, actual.bottom) - max(predicted.y, actual.y)

    if overlap_w <= 0 or overlap_h <= 0:
        return 0.0

    ratio = (overlap_w * overlap_h) / actual.area
    return min(1.0, max(0.0, ratio))


def overlap_profile(
    path: PredictedPath,
    trace,
    start_frame: int,
    frame_count: int,
) -> np.ndarray:
    """
    Per-frame overlap ratios of a predicted path over a window of frames.

    Unlike verification this never stops early, so the full profile of a
    segment can be inspected after the fact.

    Args:
        path: Predicted path to evaluate
        trace: Ground-truth viewport lookup (supports trace.get(frame_index))
        start_frame: First absolute frame of the window
        frame_count: Number of frames in the window

    Returns:
        Array of shape (frame_count,) with ratios in [0, 1]
    """
    ratios = np.empty(frame_count, dtype=np.float64)
    for offset in range(frame_count):
        frame_index = start_frame + offset
        ratios[offset] = overlap_ratio(path.rect_for_frame(frame_index), trace.get(frame_index))
    return ratios
