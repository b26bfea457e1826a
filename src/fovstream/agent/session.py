"""
Fetch Session
=============

Drives the fetch decision protocol over every segment of a video.

The session owns the run state that spans segments (current segment id and
running key-frame index) and the server connection. Segments are processed
strictly in order from 1 to segment_count; a segment's sequence, including
any fallback fetch, completes before the next one starts.

Example:
    session = FetchSession(
        manifest=manifest,
        trace=trace,
        transport=WebSocketTransport("localhost", 1988),
        store=HttpSegmentStore(base_url),
        player=OpenCVPlayer(),
        naming=SegmentNaming("rhino", "tmp"),
        mode=FetchMode.SVR,
    )
    report = session.run()
"""

import logging
import time
from typing import Optional

from fovstream.agent.graph import SegmentFetchGraph
from fovstream.agent.verification import VerificationPolicy
from fovstream.models.manifest import Manifest
from fovstream.models.session import FetchMode, SegmentOutcome, SessionReport
from fovstream.playback.player import Player
from fovstream.storage.naming import SegmentNaming
from fovstream.storage.store import SegmentStore
from fovstream.trace.viewport_trace import ViewportTrace
from fovstream.transport.client import Transport


logger = logging.getLogger(__name__)


DEFAULT_FRAMES_PER_SEGMENT = 15
DEFAULT_OVERLAP_THRESHOLD = 0.8


class FetchSession:
    """
    Segment-by-segment protocol driver.

    Attributes:
        mode: BASELINE (full-size only) or SVR (negotiated FOV)
        current_segment_id: Next segment to process
        key_frame_index: Absolute index of the current segment's first frame
    """

    def __init__(
        self,
        manifest: Manifest,
        store: SegmentStore,
        player: Player,
        naming: SegmentNaming,
        mode: FetchMode,
        trace: Optional[ViewportTrace] = None,
        transport: Optional[Transport] = None,
        frames_per_segment: int = DEFAULT_FRAMES_PER_SEGMENT,
        overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    ) -> None:
        """
        Initialize the session.

        Args:
            manifest: Session manifest
            store: Artifact storage
            player: Playback collaborator
            naming: Remote/local artifact names
            mode: Session mode
            trace: Ground-truth viewport trace (required for SVR)
            transport: Server transport (required for SVR)
            frames_per_segment: Frames per segment
            overlap_threshold: FOV verification threshold in [0, 1]
        """
        if mode == FetchMode.SVR and (trace is None or transport is None):
            raise ValueError("SVR mode requires a viewport trace and a transport")

        self.manifest = manifest
        self.mode = mode
        self.transport = transport
        self.frames_per_segment = frames_per_segment

        self.current_segment_id = 1
        self.key_frame_index = 0

        self._graph = SegmentFetchGraph(
            manifest=manifest,
            trace=trace,
            transport=transport,
            store=store,
            player=player,
            naming=naming,
            policy=VerificationPolicy(overlap_threshold, frames_per_segment),
        )

        logger.info(
            f"FetchSession initialized: mode={mode.value}, "
            f"segments={manifest.segment_count}, "
            f"frames_per_segment={frames_per_segment}, threshold={overlap_threshold}"
        )

    def step(self) -> SegmentOutcome:
        """
        Process the current segment and advance to the next one.

        Returns:
            Outcome of the processed segment

        Raises:
            StopIteration: If every segment has been processed
            TransportError: If the server connection fails
            ProtocolViolationError: If the server breaks the protocol
        """
        if self.finished:
            raise StopIteration("all segments processed")

        segment_id = self.current_segment_id
        self.key_frame_index = (segment_id - 1) * self.frames_per_segment

        outcome = self._graph.process(segment_id, self.key_frame_index, self.mode)

        self.current_segment_id = segment_id + 1
        self.key_frame_index = segment_id * self.frames_per_segment
        return outcome

    @property
    def finished(self) -> bool:
        return self.current_segment_id > self.manifest.segment_count

    def run(self) -> SessionReport:
        """
        Process every remaining segment in order.

        The transport is closed when the session ends, normally or not.

        Returns:
            Report with one outcome per processed segment
        """
        report = SessionReport(mode=self.mode)
        start = time.perf_counter()

        try:
            while not self.finished:
                outcome = self.step()
                report.outcomes.append(outcome)
                report.round_trips += outcome.round_trips
        finally:
            self.close()

        logger.info(
            f"Session finished: segments={report.segments_processed}, "
            f"round_trips={report.round_trips}, "
            f"elapsed={time.perf_counter() - start:.2f}s"
        )
        return report

    def close(self) -> None:
        """Release the server connection."""
        if self.transport is not None:
            self.transport.close()
