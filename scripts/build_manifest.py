#!/usr/bin/env python3
"""
Manifest Builder Script
=======================

Builds the manifest document for a video from its full-size segment
directory and the predicted-path trace, then writes it to disk so it can be
uploaded next to the segments.

Prerequisites:
    - Full-size segments named so the last integer is the segment id
      (e.g. rhino-full/output_1.mp4, output_2.mp4, ...)
    - Install the package: pip install -e .

Usage:
    python scripts/build_manifest.py rhino-full rhino-pred.txt rhino-manifest.txt
    python scripts/build_manifest.py rhino-full rhino-pred.txt out.txt --fov-width 960 --fov-height 960
"""

import argparse
import logging
import os
import sys

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from fovstream.config import settings
from fovstream.manifest import ManifestError, build_manifest


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Build a segment manifest from segment files and predicted paths"
    )
    parser.add_argument(
        "segment_dir",
        type=str,
        help="Directory containing the full-size segment files",
    )
    parser.add_argument(
        "pred_file",
        type=str,
        help="Predicted-path trace (segmentId pathId frameIndex x y [width height])",
    )
    parser.add_argument(
        "output",
        type=str,
        help="Where to write the manifest document",
    )
    parser.add_argument(
        "--fov-width",
        type=float,
        default=settings.viewport.fov_width,
        help=f"FOV crop width when omitted from the trace (default: {settings.viewport.fov_width})",
    )
    parser.add_argument(
        "--fov-height",
        type=float,
        default=settings.viewport.fov_height,
        help=f"FOV crop height when omitted from the trace (default: {settings.viewport.fov_height})",
    )

    args = parser.parse_args()

    try:
        manifest = build_manifest(args.segment_dir, args.pred_file, args.fov_width, args.fov_height)
    except ManifestError as e:
        logger.error(str(e))
        sys.exit(1)

    manifest.save(args.output)
    logger.info(
        f"Manifest: {manifest.segment_count} segments, "
        f"{manifest.total_bytes()} bytes total"
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
