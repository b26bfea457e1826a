"""
Protocol Tests
==============

Tests for wire messages, fetch modes and FOV verification.
"""

import json

import pytest
from pydantic import ValidationError

from conftest import rect, static_trace


class TestMessages:
    """Tests for protocol message schemas."""

    def test_decision_variants(self):
        """The decision kind selects the variant."""
        from fovstream.models.protocol import DecisionMessage, FovDecision, FullDecision

        fov = DecisionMessage.model_validate_json(
            '{"type": "decision", "decision": {"kind": "fov", "path_id": 3}}'
        )
        full = DecisionMessage.model_validate_json(
            '{"type": "decision", "decision": {"kind": "full"}}'
        )

        assert isinstance(fov.decision, FovDecision)
        assert fov.decision.path_id == 3
        assert isinstance(full.decision, FullDecision)

    @pytest.mark.parametrize(
        "raw",
        [
            '{"type": "decision", "decision": {"kind": "maybe"}}',
            '{"type": "decision", "decision": {"kind": "fov"}}',
            '{"type": "verdict", "decision": {"kind": "full"}}',
        ],
    )
    def test_invalid_decision(self, raw):
        """Unknown kinds, missing path ids and wrong types are rejected."""
        from fovstream.models.protocol import DecisionMessage

        with pytest.raises(ValidationError):
            DecisionMessage.model_validate_json(raw)

    def test_key_frame_request_wire_form(self):
        """Key-frame metadata carries the viewport with its wire names."""
        from fovstream.models.protocol import KeyFrameRequest

        request = KeyFrameRequest(segment_id=2, viewport=rect(15, 1, 2, 30, 40))
        payload = json.loads(request.model_dump_json(by_alias=True))

        assert payload["type"] == "metadata"
        assert payload["segment_id"] == 2
        assert payload["viewport"] == {
            "frameIndex": 15, "x": 1.0, "y": 2.0, "width": 30.0, "height": 40.0,
        }

    def test_verdict_wire_form(self):
        """Verdicts serialize as plain strings."""
        from fovstream.models.protocol import Verdict, VerdictMessage

        payload = json.loads(
            VerdictMessage(segment_id=1, verdict=Verdict.BAD, decoded_frames=5).model_dump_json()
        )
        assert payload == {"type": "verdict", "segment_id": 1, "verdict": "BAD", "decoded_frames": 5}

    def test_decision_str(self, full_decision, fov_decision):
        assert str(full_decision) == "FULL"
        assert str(fov_decision) == "FOV(path=0)"


class TestFetchMode:
    """Tests for FetchMode parsing."""

    @pytest.mark.parametrize("value", ["SVR", "svr", " Svr "])
    def test_parse_svr(self, value):
        from fovstream.models.session import FetchMode

        assert FetchMode.parse(value) == FetchMode.SVR

    def test_parse_baseline(self):
        from fovstream.models.session import FetchMode

        assert FetchMode.parse("baseline") == FetchMode.BASELINE

    def test_parse_unknown(self):
        """Unknown modes raise ValueError naming the valid ones."""
        from fovstream.models.session import FetchMode

        with pytest.raises(ValueError, match="BASELINE"):
            FetchMode.parse("TURBO")


class TestVerificationPolicy:
    """Tests for frame-by-frame FOV verification."""

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_range(self, threshold):
        from fovstream.agent import VerificationPolicy

        with pytest.raises(ValueError):
            VerificationPolicy(threshold, 15)

    def test_frames_per_segment_positive(self):
        from fovstream.agent import VerificationPolicy

        with pytest.raises(ValueError):
            VerificationPolicy(0.8, 0)

    def test_matching_path_is_good(self):
        """A prediction that tracks the user exactly is GOOD."""
        from fovstream.agent import VerificationPolicy
        from fovstream.models.manifest import PredictedPath
        from fovstream.models.protocol import Verdict

        path = PredictedPath(path_id=0, rectangles=[rect(15)])
        result = VerificationPolicy(0.8, 15).verify(path, static_trace(30), key_frame_index=15)

        assert result.verdict == Verdict.GOOD
        assert result.decoded_frames == 15
        assert result.failed_frame is None

    def test_first_failing_frame_stops_verification(self):
        """Frames before the first failure are decodable; the rest are not."""
        from fovstream.agent import VerificationPolicy
        from fovstream.models.manifest import PredictedPath
        from fovstream.models.protocol import Verdict

        # Frame 5 overlaps 0.3, frame 6 recovers but is never checked.
        path = PredictedPath(path_id=0, rectangles=[rect(0), rect(5, x=70), rect(6)])
        result = VerificationPolicy(0.6, 15).verify(path, static_trace(15), key_frame_index=0)

        assert result.verdict == Verdict.BAD
        assert result.decoded_frames == 5
        assert result.failed_frame == 5
        assert result.failed_ratio == pytest.approx(0.3)

    def test_key_frame_failure(self):
        """A miss at the key frame decodes nothing."""
        from fovstream.agent import VerificationPolicy
        from fovstream.models.manifest import PredictedPath
        from fovstream.models.protocol import Verdict

        path = PredictedPath(path_id=0, rectangles=[rect(0, x=500)])
        result = VerificationPolicy(0.8, 15).verify(path, static_trace(15), key_frame_index=0)

        assert result.verdict == Verdict.BAD
        assert result.decoded_frames == 0

    def test_zero_threshold_accepts_anything(self):
        """With threshold 0 even disjoint crops pass."""
        from fovstream.agent import VerificationPolicy
        from fovstream.models.manifest import PredictedPath
        from fovstream.models.protocol import Verdict

        path = PredictedPath(path_id=0, rectangles=[rect(0, x=500)])
        result = VerificationPolicy(0.0, 15).verify(path, static_trace(15), key_frame_index=0)

        assert result.verdict == Verdict.GOOD

    def test_trace_too_short(self):
        """Verification needs ground truth for every checked frame."""
        from fovstream.agent import VerificationPolicy
        from fovstream.models.manifest import PredictedPath
        from fovstream.trace import TraceIndexError

        path = PredictedPath(path_id=0, rectangles=[rect(0)])
        with pytest.raises(TraceIndexError):
            VerificationPolicy(0.8, 15).verify(path, static_trace(10), key_frame_index=0)
