"""
FOV Verification Policy
=======================

Deterministic frame-by-frame validation of a server-chosen predicted path
against the ground-truth viewport trace.

Rules:
    - Start at the segment's key frame, check up to frames_per_segment frames
    - Each frame: overlap_ratio(predicted rect, actual viewport)
    - The first ratio below the threshold stops verification; that frame and
      every later frame of the segment must come from the full segment
    - No retries: one failing frame is a permanent reject for the segment
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fovstream.geometry.overlap import overlap_ratio
from fovstream.models.manifest import PredictedPath
from fovstream.models.protocol import Verdict
from fovstream.trace.viewport_trace import ViewportTrace


logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Result of verifying one FOV segment."""

    verdict: Verdict
    decoded_frames: int
    failed_frame: Optional[int] = None
    failed_ratio: Optional[float] = None

    def __repr__(self) -> str:
        if self.failed_frame is None:
            return f"VerificationResult({self.verdict.value}, decoded={self.decoded_frames})"
        return (
            f"VerificationResult({self.verdict.value}, decoded={self.decoded_frames}, "
            f"failed_frame={self.failed_frame}, ratio={self.failed_ratio:.3f})"
        )


class VerificationPolicy:
    """
    Overlap-threshold verification of predicted FOV paths.

    Attributes:
        threshold: Minimum overlap ratio for a frame to be decodable from the crop
        frames_per_segment: Frames in every segment
    """

    def __init__(self, threshold: float, frames_per_segment: int) -> None:
        """
        Initialize verification policy.

        Args:
            threshold: Overlap threshold in [0, 1]
            frames_per_segment: Frames per segment (>= 1)
        """
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")
        if frames_per_segment < 1:
            raise ValueError("frames_per_segment must be >= 1")

        self.threshold = threshold
        self.frames_per_segment = frames_per_segment

    def verify(
        self,
        path: PredictedPath,
        trace: ViewportTrace,
        key_frame_index: int,
    ) -> VerificationResult:
        """
        Verify a predicted path over one segment.

        Args:
            path: Predicted path chosen by the server
            trace: Ground-truth viewport trace
            key_frame_index: Absolute index of the segment's first frame

        Returns:
            GOOD with all frames decoded, or BAD with the number of frames
            that passed before the first failure
        """
        for offset in range(self.frames_per_segment):
            frame_index = key_frame_index + offset
            user_fov = trace.get(frame_index)
            predicted = path.rect_for_frame(frame_index)
            ratio = overlap_ratio(predicted, user_fov)

            if ratio < self.threshold:
                logger.debug(
                    f"Verification failed at frame {frame_index}: "
                    f"ratio={ratio:.3f} < {self.threshold} "
                    f"user={user_fov} predicted={predicted}"
                )
                return VerificationResult(
                    verdict=Verdict.BAD,
                    decoded_frames=offset,
                    failed_frame=frame_index,
                    failed_ratio=ratio,
                )

        return VerificationResult(verdict=Verdict.GOOD, decoded_frames=self.frames_per_segment)
