"""
fovstream Main Application
==========================

Command-line entry point for the FOV streaming client.

Usage:
    fovstream HOST PORT STORAGE_PATH VIDEO_NAME MODE

    fovstream localhost 1988 tmp rhino SVR
    fovstream localhost 1988 tmp rhino BASELINE --trace traces/rhino-trace.txt

Startup:
    1. Load configuration and set up logging
    2. Fetch {video}-manifest.txt from storage and load it
    3. SVR only: load the viewport trace and prepare the server transport
    4. Run the fetch session over every segment
    5. Log session analytics

Exit Codes:
    0 - session completed
    1 - fatal session error (manifest, transport, protocol violation)
    2 - usage error (including an unknown mode)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from fovstream.agent import FetchSession
from fovstream.config import Settings, load_config, setup_logging
from fovstream.config import settings as default_settings
from fovstream.models.manifest import Manifest, ManifestError
from fovstream.models.protocol import ProtocolViolationError
from fovstream.models.session import FetchMode
from fovstream.observability import compute_session_analytics
from fovstream.playback import NullPlayer, OpenCVPlayer
from fovstream.storage import HttpSegmentStore, LocalSegmentStore, SegmentNaming, StorageError
from fovstream.trace import TraceFormatError, TraceIndexError, ViewportTrace
from fovstream.transport import TransportError, WebSocketTransport


logger = logging.getLogger(__name__)


# =============================================================================
# Collaborator factories
# =============================================================================

def create_store(settings: Settings):
    """Create the storage backend named in settings."""
    storage = settings.storage
    if storage.backend == "http":
        return HttpSegmentStore(
            storage.base_url,
            timeout=storage.timeout,
            max_attempts=storage.max_attempts,
            retry_backoff_ms=storage.retry_backoff_ms,
        )
    if storage.backend == "local":
        return LocalSegmentStore(storage.root)
    raise ValueError(f"Unknown storage backend: {storage.backend!r}")


def create_player(settings: Settings):
    """Create the playback backend named in settings."""
    playback = settings.playback
    if playback.backend == "opencv":
        return OpenCVPlayer(display=playback.display, max_queue_size=playback.max_queue_size)
    if playback.backend == "none":
        return NullPlayer()
    raise ValueError(f"Unknown playback backend: {playback.backend!r}")


# =============================================================================
# CLI
# =============================================================================

def _mode_arg(value: str) -> FetchMode:
    try:
        return FetchMode.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fovstream",
        description="Adaptive FOV streaming client for panoramic video",
    )
    parser.add_argument("host", type=str, help="VR server host")
    parser.add_argument("port", type=int, help="VR server port")
    parser.add_argument("storage_path", type=str, help="Local directory for downloaded segments")
    parser.add_argument("video_name", type=str, help="Name of the video (e.g. rhino)")
    parser.add_argument("mode", type=_mode_arg, help="BASELINE or SVR")
    parser.add_argument(
        "--trace",
        type=str,
        default=None,
        help="Viewport trace file (default: {video_name}-trace.txt)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml",
    )
    return parser


def run(args: argparse.Namespace, settings: Settings) -> int:
    """
    Run one streaming session.

    Returns:
        Process exit code
    """
    naming = SegmentNaming(video_name=args.video_name, segment_dir=args.storage_path)
    Path(args.storage_path).mkdir(parents=True, exist_ok=True)

    store = create_store(settings)
    player = create_player(settings)
    transport = None

    try:
        store.fetch(naming.manifest_key, naming.local_manifest)
        manifest = Manifest.load(naming.local_manifest)
        logger.info(f"[STEP 0] Received manifest: {manifest.segment_count} segments")

        trace = None
        if args.mode == FetchMode.SVR:
            trace_path = args.trace or f"{args.video_name}-trace.txt"
            trace = ViewportTrace.load(
                trace_path,
                width=settings.viewport.user_width,
                height=settings.viewport.user_height,
            )
            transport = WebSocketTransport(
                args.host,
                args.port,
                open_timeout=settings.server.open_timeout,
                response_timeout=settings.server.response_timeout,
            )

        session = FetchSession(
            manifest=manifest,
            store=store,
            player=player,
            naming=naming,
            mode=args.mode,
            trace=trace,
            transport=transport,
            frames_per_segment=settings.session.frames_per_segment,
            overlap_threshold=settings.session.overlap_threshold,
        )
        report = session.run()

    except (ManifestError, StorageError, FileNotFoundError, TraceFormatError) as e:
        logger.error(f"Startup failed: {e}")
        return 1
    except (TransportError, ProtocolViolationError, TraceIndexError) as e:
        logger.error(f"Session aborted: {e}")
        return 1
    finally:
        if transport is not None:
            transport.close()
        player.close()

    compute_session_analytics(
        report,
        manifest,
        settings.session.frames_per_segment,
        trace=trace,
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Example: fovstream localhost 1988 tmp rhino SVR
    """
    args = build_parser().parse_args(argv)

    settings = load_config(args.config) if args.config else default_settings
    setup_logging(settings)

    return run(args, settings)


if __name__ == "__main__":
    sys.exit(main())
