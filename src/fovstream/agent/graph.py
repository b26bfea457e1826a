"""
Segment Fetch Graph
===================

LangGraph state machine for the per-segment fetch decision protocol.

LangGraph is used for CONTROL FLOW only. The graph is invoked once per
segment; run state that spans segments lives on FetchSession.

Graph Structure (SVR):
    START → await_trace → request_decision ─┬─ FULL ─→ full_fetch ──────────────→ segment_done → END
                                            └─ FOV ──→ fov_verify ─┬─ GOOD ──────→ segment_done
                                                                   └─ BAD → fallback_fetch → segment_done

Graph Structure (BASELINE):
    START → full_fetch → segment_done → END

Error Policy:
    - TransportError, ProtocolViolationError: propagate (session-fatal)
    - StorageError on a FOV crop: treated as BAD with zero decoded frames
    - StorageError on a full segment: logged, recorded, segment completes
"""

import logging
import operator
import os
from typing import Annotated, Any, Dict, List, Optional, TypedDict, Union

from langgraph.graph import END, StateGraph

from fovstream.agent.verification import VerificationPolicy, VerificationResult
from fovstream.models.manifest import Manifest, UnknownPathError
from fovstream.models.protocol import (
    DecisionMessage,
    FovDecision,
    FullDecision,
    KeyFrameRequest,
    ProtocolViolationError,
    Verdict,
    VerdictMessage,
)
from fovstream.models.session import FetchMode, FetchPhase, SegmentOutcome
from fovstream.models.viewport import ViewportRect
from fovstream.playback.player import Player
from fovstream.storage.naming import SegmentNaming
from fovstream.storage.store import SegmentStore, StorageError
from fovstream.trace.viewport_trace import ViewportTrace
from fovstream.transport.client import Transport


logger = logging.getLogger(__name__)


class SegmentGraphState(TypedDict):
    """
    State passed through the segment graph.

    Attributes:
        segment_id: Segment being processed
        key_frame_index: Absolute index of the segment's first frame
        mode: Session mode
        key_viewport: User viewport at the key frame
        decision: Server decision
        verification: FOV verification result
        decoded_frames: Frames played from the FOV crop
        fallback: Whether the full segment was fetched after BAD
        bytes_fetched: Bytes downloaded for this segment
        fetch_failed: Whether any artifact fetch failed
        round_trips: Server round-trips made for this segment
        phases: Phases visited, appended by each node
    """
    segment_id: int
    key_frame_index: int
    mode: FetchMode
    key_viewport: Optional[ViewportRect]
    decision: Optional[Union[FullDecision, FovDecision]]
    verification: Optional[VerificationResult]
    decoded_frames: int
    fallback: bool
    bytes_fetched: int
    fetch_failed: bool
    round_trips: int
    phases: Annotated[List[FetchPhase], operator.add]


def create_segment_state(segment_id: int, key_frame_index: int, mode: FetchMode) -> SegmentGraphState:
    """Create the input state for one segment."""
    return {
        "segment_id": segment_id,
        "key_frame_index": key_frame_index,
        "mode": mode,
        "key_viewport": None,
        "decision": None,
        "verification": None,
        "decoded_frames": 0,
        "fallback": False,
        "bytes_fetched": 0,
        "fetch_failed": False,
        "round_trips": 0,
        "phases": [],
    }


class SegmentFetchGraph:
    """
    LangGraph-based fetch protocol for one segment at a time.

    Collaborators are injected so the graph can run against fakes:
    transport (server), store (artifacts), player (playback), trace
    (ground truth) and manifest (predicted paths).
    """

    def __init__(
        self,
        manifest: Manifest,
        trace: Optional[ViewportTrace],
        transport: Optional[Transport],
        store: SegmentStore,
        player: Player,
        naming: SegmentNaming,
        policy: VerificationPolicy,
    ) -> None:
        """
        Initialize the segment graph.

        Args:
            manifest: Session manifest
            trace: Ground-truth viewport trace (SVR mode only)
            transport: Server transport (SVR mode only)
            store: Artifact storage
            player: Playback collaborator
            naming: Remote/local artifact names
            policy: FOV verification policy
        """
        self.manifest = manifest
        self.trace = trace
        self.transport = transport
        self.store = store
        self.player = player
        self.naming = naming
        self.policy = policy

        self._graph = self._build_graph()

    @property
    def last_frame(self) -> int:
        """Last frame index within a segment file."""
        return self.policy.frames_per_segment - 1

    def _build_graph(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(SegmentGraphState)

        workflow.add_node("await_trace", self._await_trace_node)
        workflow.add_node("request_decision", self._request_decision_node)
        workflow.add_node("full_fetch", self._full_fetch_node)
        workflow.add_node("fov_verify", self._fov_verify_node)
        workflow.add_node("fallback_fetch", self._fallback_fetch_node)
        workflow.add_node("segment_done", self._segment_done_node)

        workflow.set_conditional_entry_point(
            self._route_mode,
            {"negotiate": "await_trace", "full": "full_fetch"},
        )
        workflow.add_edge("await_trace", "request_decision")
        workflow.add_conditional_edges(
            "request_decision",
            self._route_decision,
            {"fov": "fov_verify", "full": "full_fetch"},
        )
        workflow.add_edge("full_fetch", "segment_done")
        workflow.add_conditional_edges(
            "fov_verify",
            self._route_verdict,
            {"accepted": "segment_done", "rejected": "fallback_fetch"},
        )
        workflow.add_edge("fallback_fetch", "segment_done")
        workflow.add_edge("segment_done", END)

        return workflow.compile()

    # -------------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------------

    @staticmethod
    def _route_mode(state: SegmentGraphState) -> str:
        return "full" if state["mode"] == FetchMode.BASELINE else "negotiate"

    @staticmethod
    def _route_decision(state: SegmentGraphState) -> str:
        return "fov" if isinstance(state["decision"], FovDecision) else "full"

    @staticmethod
    def _route_verdict(state: SegmentGraphState) -> str:
        return "accepted" if state["verification"].verdict == Verdict.GOOD else "rejected"

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def _await_trace_node(self, state: SegmentGraphState) -> Dict[str, Any]:
        """Look up the user viewport at the segment's key frame."""
        viewport = self.trace.get(state["key_frame_index"])
        return {
            "key_viewport": viewport,
            "phases": [FetchPhase.AWAIT_TRACE],
        }

    def _request_decision_node(self, state: SegmentGraphState) -> Dict[str, Any]:
        """Send key-frame metadata and block on the server's decision."""
        segment_id = state["segment_id"]
        request = KeyFrameRequest(segment_id=segment_id, viewport=state["key_viewport"])

        reply = self.transport.request(request, DecisionMessage)
        logger.info(f"[SEGMENT {segment_id}] decision: {reply.decision}")

        return {
            "decision": reply.decision,
            "round_trips": state["round_trips"] + 1,
            "phases": [FetchPhase.REQUEST_SENT, FetchPhase.DECISION_RECEIVED],
        }

    def _full_fetch_node(self, state: SegmentGraphState) -> Dict[str, Any]:
        """Fetch the whole-frame segment and play all of it."""
        segment_id = state["segment_id"]
        local_file = self.naming.local_full(segment_id)

        size = self._fetch(self.naming.remote_full(segment_id), local_file)
        if size is not None:
            self.player.play(local_file, 0, self.last_frame)

        return {
            "bytes_fetched": state["bytes_fetched"] + (size or 0),
            "fetch_failed": state["fetch_failed"] or size is None,
            "phases": [FetchPhase.FULL_FETCH],
        }

    def _fov_verify_node(self, state: SegmentGraphState) -> Dict[str, Any]:
        """Fetch the chosen FOV crop, verify it and report the verdict."""
        segment_id = state["segment_id"]
        path_id = state["decision"].path_id

        try:
            path = self.manifest.path(segment_id, path_id)
        except UnknownPathError as e:
            raise ProtocolViolationError(
                f"Server chose path {path_id} for segment {segment_id}, "
                f"which the manifest does not contain"
            ) from e

        local_file = self.naming.local_fov(segment_id, path_id)
        size = self._fetch(self.naming.remote_fov(segment_id, path_id), local_file)

        if size is None:
            result = VerificationResult(verdict=Verdict.BAD, decoded_frames=0)
        else:
            result = self.policy.verify(path, self.trace, state["key_frame_index"])

        self.transport.send(
            VerdictMessage(
                segment_id=segment_id,
                verdict=result.verdict,
                decoded_frames=result.decoded_frames,
            )
        )
        logger.info(f"[SEGMENT {segment_id}] verdict: {result!r}")

        if result.decoded_frames > 0:
            self.player.play(local_file, 0, result.decoded_frames - 1)

        outcome_phase = FetchPhase.ACCEPTED if result.verdict == Verdict.GOOD else FetchPhase.REJECTED
        return {
            "verification": result,
            "decoded_frames": result.decoded_frames,
            "bytes_fetched": state["bytes_fetched"] + (size or 0),
            "fetch_failed": state["fetch_failed"] or size is None,
            "phases": [FetchPhase.FOV_VERIFY, outcome_phase],
        }

    def _fallback_fetch_node(self, state: SegmentGraphState) -> Dict[str, Any]:
        """Fetch the full segment and resume from the first undecodable frame."""
        segment_id = state["segment_id"]
        start_frame = state["decoded_frames"]
        local_file = self.naming.local_full(segment_id)

        size = self._fetch(self.naming.remote_full(segment_id), local_file)
        if size is not None:
            logger.info(f"[SEGMENT {segment_id}] resuming full segment at frame {start_frame}")
            self.player.play(local_file, start_frame, self.last_frame)

        return {
            "fallback": True,
            "bytes_fetched": state["bytes_fetched"] + (size or 0),
            "fetch_failed": state["fetch_failed"] or size is None,
            "phases": [FetchPhase.FALLBACK_FETCH],
        }

    def _segment_done_node(self, state: SegmentGraphState) -> Dict[str, Any]:
        logger.info(
            f"[SEGMENT {state['segment_id']}] done: "
            f"bytes={state['bytes_fetched']}, fallback={state['fallback']}"
        )
        return {"phases": [FetchPhase.SEGMENT_DONE]}

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _fetch(self, remote_name: str, local_file: str) -> Optional[int]:
        """Fetch an artifact; returns its size, or None if the fetch failed."""
        try:
            self.store.fetch(remote_name, local_file)
        except StorageError as e:
            logger.error(f"Fetch of {remote_name} failed: {e}")
            return None
        try:
            return os.path.getsize(local_file)
        except OSError as e:
            logger.warning(f"Cannot size {local_file} after fetch: {e}")
            return 0

    def process(self, segment_id: int, key_frame_index: int, mode: FetchMode) -> SegmentOutcome:
        """
        Run the protocol for one segment.

        Args:
            segment_id: Segment to process
            key_frame_index: Absolute index of its first frame
            mode: Session mode

        Returns:
            The segment's outcome

        Raises:
            TransportError: If the server connection fails
            ProtocolViolationError: If the server breaks the protocol
        """
        result = self._graph.invoke(create_segment_state(segment_id, key_frame_index, mode))
        verification = result["verification"]

        return SegmentOutcome(
            segment_id=segment_id,
            mode=mode,
            decision=result["decision"],
            verdict=verification.verdict if verification else None,
            decoded_frames=result["decoded_frames"],
            fallback=result["fallback"],
            bytes_fetched=result["bytes_fetched"],
            fetch_failed=result["fetch_failed"],
            round_trips=result["round_trips"],
            phases=result["phases"],
        )
