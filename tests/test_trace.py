"""
Viewport Trace Tests
====================

Tests for loading and querying the ground-truth viewport trace.
"""

import pytest

from conftest import rect


class TestViewportTrace:
    """Tests for ViewportTrace."""

    def test_load(self, tmp_path):
        """Comments and blank lines are skipped; sizes default when omitted."""
        from fovstream.trace import ViewportTrace

        path = tmp_path / "rhino-trace.txt"
        path.write_text("# frame x y [w h]\n0 1 2\n\n1 3 4 50 60\n")

        trace = ViewportTrace.load(str(path), width=1280, height=720)

        assert len(trace) == 2
        assert (trace.get(0).x, trace.get(0).width, trace.get(0).height) == (1, 1280, 720)
        assert (trace.get(1).y, trace.get(1).width, trace.get(1).height) == (4, 50, 60)

    def test_frames_must_be_dense(self):
        """A gap in frame indices is rejected."""
        from fovstream.trace import TraceFormatError, ViewportTrace

        with pytest.raises(TraceFormatError):
            ViewportTrace([rect(0), rect(2)])

    def test_samples_are_ordered(self):
        """Samples may be given out of order."""
        from fovstream.trace import ViewportTrace

        trace = ViewportTrace([rect(1, x=5), rect(0)])
        assert [r.frame_index for r in trace] == [0, 1]
        assert trace.get(1).x == 5

    @pytest.mark.parametrize("frame_index", [-1, 3, 100])
    def test_frame_out_of_range(self, frame_index):
        """Lookups outside the trace raise TraceIndexError."""
        from fovstream.trace import TraceIndexError, ViewportTrace

        trace = ViewportTrace([rect(0), rect(1), rect(2)])
        with pytest.raises(TraceIndexError):
            trace.get(frame_index)

    @pytest.mark.parametrize("line", ["0 1", "0 1 2 3", "zero 1 2", "0 1 2 -5 5"])
    def test_malformed_line(self, tmp_path, line):
        """Wrong column counts or values raise TraceFormatError."""
        from fovstream.trace import TraceFormatError, ViewportTrace

        path = tmp_path / "trace.txt"
        path.write_text(line + "\n")
        with pytest.raises(TraceFormatError):
            ViewportTrace.load(str(path), width=1280, height=720)

    def test_missing_file(self, tmp_path):
        """A missing trace file raises FileNotFoundError."""
        from fovstream.trace import ViewportTrace

        with pytest.raises(FileNotFoundError):
            ViewportTrace.load(str(tmp_path / "missing.txt"), width=1280, height=720)
