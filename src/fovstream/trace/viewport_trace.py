"""
Viewport Trace
==============

Ground-truth record of where the viewer actually looked, one rectangle per
frame, looked up by absolute frame index.

Trace File Format:
    One sample per line, whitespace separated:

        frameIndex x y [width height]

    When width/height are omitted, the configured fixed viewport size is
    used. Frames must be dense and start at 0. Blank lines and lines
    starting with '#' are ignored.

Example:
    from fovstream.trace import ViewportTrace

    trace = ViewportTrace.load("rhino-trace.txt", width=1280, height=720)
    key_viewport = trace.get(30)
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List

from fovstream.models.viewport import ViewportRect


logger = logging.getLogger(__name__)


class TraceIndexError(IndexError):
    """Raised when a frame index has no sample in the trace."""
    pass


class TraceFormatError(ValueError):
    """Raised when a trace file line cannot be parsed."""
    pass


class ViewportTrace:
    """
    Read-only, densely frame-indexed sequence of user viewports.

    Attributes:
        source: Where the trace was loaded from (for logging)
    """

    def __init__(self, samples: Iterable[ViewportRect], source: str = "<memory>") -> None:
        """
        Initialize a trace from samples.

        Args:
            samples: Viewport rectangles, one per frame starting at 0
            source: Description of the trace origin

        Raises:
            TraceFormatError: If frame indices are not dense from 0
        """
        ordered = sorted(samples, key=lambda rect: rect.frame_index)
        for expected, rect in enumerate(ordered):
            if rect.frame_index != expected:
                raise TraceFormatError(
                    f"{source}: expected frame {expected}, found frame {rect.frame_index}"
                )

        self.source = source
        self._samples: List[ViewportRect] = ordered

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[ViewportRect]:
        return iter(self._samples)

    def get(self, frame_index: int) -> ViewportRect:
        """
        Get the user viewport at a frame.

        Raises:
            TraceIndexError: If the frame is outside the trace
        """
        if not 0 <= frame_index < len(self._samples):
            raise TraceIndexError(
                f"frame {frame_index} outside trace {self.source} "
                f"({len(self._samples)} frames)"
            )
        return self._samples[frame_index]

    @classmethod
    def load(cls, path: str, width: float, height: float) -> "ViewportTrace":
        """
        Load a trace file.

        Args:
            path: Path to the trace file
            width: Viewport width used when a line omits it
            height: Viewport height used when a line omits it

        Raises:
            FileNotFoundError: If the file does not exist
            TraceFormatError: If a line is malformed or frames are not dense
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Viewport trace not found: {path}")

        samples = []
        with open(file_path, "r") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                samples.append(_parse_line(line, line_no, path, width, height))

        trace = cls(samples, source=str(path))
        logger.info(f"Loaded viewport trace: {path} ({len(trace)} frames)")
        return trace


def _parse_line(line: str, line_no: int, path: str, width: float, height: float) -> ViewportRect:
    columns = line.split()
    if len(columns) not in (3, 5):
        raise TraceFormatError(
            f"{path}:{line_no}: expected 3 or 5 columns, got {len(columns)}"
        )
    try:
        frame_index = int(columns[0])
        values = [float(c) for c in columns[1:]]
        return ViewportRect.from_columns(
            frame_index,
            values[0],
            values[1],
            values[2] if len(values) == 4 else None,
            values[3] if len(values) == 4 else None,
            default_width=width,
            default_height=height,
        )
    except ValueError as e:
        raise TraceFormatError(f"{path}:{line_no}: {e}") from e
