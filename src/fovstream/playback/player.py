"""
Segment Playback
================

Playback collaborators that decode a frame range of a downloaded segment.

The protocol driver treats playback as fire-and-forget: play() enqueues a
request and returns immediately. Correctness of the decision loop never
depends on playback having finished.

Implementations:
    - OpenCVPlayer: decodes on a single background worker (cv2.VideoCapture)
    - NullPlayer: logs requests only (headless runs)

Design Rules:
    - Requests are decoded in the order they were submitted
    - end_frame is inclusive; None means "to the end of the file"
    - Decode failures are logged and counted, never raised to the driver
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

import cv2


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlaybackRequest:
    """
    One frame range of a local segment file to play.

    Attributes:
        local_file: Path of the downloaded segment
        start_frame: First frame to play (0-based, within the file)
        end_frame: Last frame to play, inclusive (None = to the end)
    """

    local_file: str
    start_frame: int
    end_frame: Optional[int]

    def __repr__(self) -> str:
        end = "end" if self.end_frame is None else self.end_frame
        return f"PlaybackRequest({self.local_file}, [{self.start_frame}, {end}])"


class Player(Protocol):
    """Protocol for playback backends."""

    def play(self, local_file: str, start_frame: int, end_frame: Optional[int]) -> None:
        """Schedule playback of a frame range."""
        ...

    def close(self) -> None:
        """Finish pending playback and release resources."""
        ...


class NullPlayer:
    """Player that only logs what would have been played."""

    def play(self, local_file: str, start_frame: int, end_frame: Optional[int]) -> None:
        logger.info(f"Play {PlaybackRequest(local_file, start_frame, end_frame)!r}")

    def close(self) -> None:
        pass


class PlayerMetrics:
    """Metrics for OpenCVPlayer observability."""

    __slots__ = ("requests", "frames_decoded", "failures")

    def __init__(self) -> None:
        self.requests: int = 0
        self.frames_decoded: int = 0
        self.failures: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "requests": self.requests,
            "frames_decoded": self.frames_decoded,
            "failures": self.failures,
        }


class OpenCVPlayer:
    """
    Background segment decoder built on cv2.VideoCapture.

    A single worker thread consumes a bounded queue, so segments play in
    submission order. When display is enabled, frames are shown in a window.

    Example:
        player = OpenCVPlayer(display=False)
        player.play("tmp/full_1.mp4", 0, 14)
        player.close()   # waits for pending requests
        player.metrics.frames_decoded
    """

    _STOP = None

    def __init__(
        self,
        display: bool = False,
        max_queue_size: int = 32,
        window_name: str = "fovstream",
    ) -> None:
        """
        Initialize player and start its worker.

        Args:
            display: Show frames with cv2.imshow
            max_queue_size: Pending requests before play() blocks
            window_name: Window title when displaying
        """
        if max_queue_size < 1:
            raise ValueError("max_queue_size must be >= 1")

        self.display = display
        self.window_name = window_name
        self.metrics = PlayerMetrics()

        self._queue: "queue.Queue[Optional[PlaybackRequest]]" = queue.Queue(maxsize=max_queue_size)
        self._worker = threading.Thread(target=self._run, name="fovstream-player", daemon=True)
        self._closed = False
        self._worker.start()

    def play(self, local_file: str, start_frame: int, end_frame: Optional[int]) -> None:
        """Enqueue a frame range for decoding."""
        if self._closed:
            raise RuntimeError("OpenCVPlayer is closed")
        self.metrics.requests += 1
        self._queue.put(PlaybackRequest(local_file, start_frame, end_frame))

    def close(self) -> None:
        """Drain pending requests and stop the worker."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(self._STOP)
        self._worker.join()
        if self.display:
            cv2.destroyAllWindows()
        logger.info(f"OpenCVPlayer stopped: {self.metrics.to_dict()}")

    def _run(self) -> None:
        while True:
            request = self._queue.get()
            if request is self._STOP:
                break
            try:
                self.metrics.frames_decoded += self._decode(request)
            except (cv2.error, OSError) as e:
                self.metrics.failures += 1
                logger.error(f"Playback failed for {request!r}: {e}")

    def _decode(self, request: PlaybackRequest) -> int:
        capture = cv2.VideoCapture(request.local_file)
        if not capture.isOpened():
            raise OSError(f"cannot open {request.local_file}")

        decoded = 0
        try:
            capture.set(cv2.CAP_PROP_POS_FRAMES, request.start_frame)
            frame_index = request.start_frame
            while request.end_frame is None or frame_index <= request.end_frame:
                ok, frame = capture.read()
                if not ok:
                    break
                decoded += 1
                frame_index += 1
                if self.display:
                    cv2.imshow(self.window_name, frame)
                    cv2.waitKey(1)
        finally:
            capture.release()

        logger.debug(f"Decoded {decoded} frames of {request!r}")
        return decoded
