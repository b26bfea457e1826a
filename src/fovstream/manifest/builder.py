"""
Manifest Builder
================

Builds a Manifest from the full-size segment inventory on disk and the
predicted-path trace produced by the path-prediction model.

This module handles:
    - Listing segment files and ordering them by their numeric id
    - Measuring segment sizes
    - Parsing the predicted-path trace into per-segment path tables

Inputs:
    Segment directory:
        One file per full-size segment, named so the LAST integer in the
        file stem is the segment id (e.g. output_1.mp4, output_2.mp4, ...).

    Predicted-path trace, one sample per line, whitespace separated:

        segmentId pathId frameIndex x y [width height]

        Width/height default to the fixed FOV crop size when omitted.
        pathId 0 starts a segment's path records.

Failure Modes:
    - Missing segment directory: ManifestError (the run cannot proceed)
    - Missing or malformed trace: every segment gets no predicted paths
      and only full-size fetch is possible for the session

Example:
    from fovstream.manifest import build_manifest

    manifest = build_manifest("./rhino-full", "./rhino-pred.txt", 1280, 720)
    manifest.save("./rhino-manifest.txt")
"""

import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fovstream.models.manifest import (
    Manifest,
    ManifestError,
    PredictedPath,
    SegmentMetadata,
)
from fovstream.models.viewport import ViewportRect


logger = logging.getLogger(__name__)


_SEGMENT_ID_PATTERN = re.compile(r"(\d+)(?!.*\d)")

# segment id -> path id -> rectangles
PredictionTable = Dict[int, Dict[int, List[ViewportRect]]]


def segment_id_from_name(file_name: str) -> Optional[int]:
    """
    Extract the numeric segment id from a segment file name.

    Args:
        file_name: Name such as "output_12.mp4"

    Returns:
        The segment id, or None if the stem contains no digits
    """
    match = _SEGMENT_ID_PATTERN.search(Path(file_name).stem)
    return int(match.group(1)) if match else None


def list_segment_files(storage_dir: str) -> List[Tuple[int, Path]]:
    """
    List segment files ordered by ascending segment id.

    Args:
        storage_dir: Directory holding one file per full-size segment

    Returns:
        (segment id from file name, path) pairs sorted by id

    Raises:
        ManifestError: If storage_dir does not exist or is not a directory
    """
    directory = Path(storage_dir)
    if not directory.is_dir():
        raise ManifestError(f"{storage_dir} should be a directory!")

    entries = []
    for entry in directory.iterdir():
        if not entry.is_file():
            continue
        file_id = segment_id_from_name(entry.name)
        if file_id is None:
            logger.debug(f"Skipping non-segment file: {entry.name}")
            continue
        entries.append((file_id, entry))

    entries.sort(key=lambda item: item[0])
    return entries


def parse_prediction_file(
    pred_path: Optional[str],
    fov_width: float,
    fov_height: float,
) -> PredictionTable:
    """
    Parse the predicted-path trace.

    A missing or malformed file yields an empty table; the caller falls
    back to full-size-only operation for the session.

    Args:
        pred_path: Path to the predicted-path trace (None to skip)
        fov_width: Crop width used when a line omits it
        fov_height: Crop height used when a line omits it

    Returns:
        Rectangles grouped by segment id then path id
    """
    if pred_path is None:
        return {}

    file_path = Path(pred_path)
    if not file_path.is_file():
        logger.warning(f"Prediction file not found: {pred_path}; FOV paths disabled")
        return {}

    table: PredictionTable = defaultdict(lambda: defaultdict(list))
    line_no = 0
    try:
        with open(file_path, "r") as f:
            for line_no, line in enumerate(f, start=1):
                columns = line.split()
                if not columns:
                    continue
                segment_id, path_id, rect = _parse_prediction_columns(
                    columns, fov_width, fov_height
                )
                table[segment_id][path_id].append(rect)
    except (OSError, ValueError) as e:
        logger.warning(
            f"Malformed prediction file {pred_path} (line {line_no}): {e}; "
            f"FOV paths disabled"
        )
        return {}

    return {seg: dict(paths) for seg, paths in table.items()}


def _parse_prediction_columns(
    columns: List[str],
    fov_width: float,
    fov_height: float,
) -> Tuple[int, int, ViewportRect]:
    if len(columns) not in (5, 7):
        raise ValueError(f"expected 5 or 7 columns, got {len(columns)}")

    segment_id = int(columns[0])
    path_id = int(columns[1])
    frame_index = int(columns[2])
    values = [float(c) for c in columns[3:]]
    rect = ViewportRect.from_columns(
        frame_index,
        values[0],
        values[1],
        values[2] if len(values) == 4 else None,
        values[3] if len(values) == 4 else None,
        default_width=fov_width,
        default_height=fov_height,
    )
    return segment_id, path_id, rect


def build_manifest(
    storage_dir: str,
    pred_path: Optional[str],
    fov_width: float,
    fov_height: float,
) -> Manifest:
    """
    Create a manifest from segment files and the predicted-path trace.

    Segment i (1-based) is the i-th file after sorting by id; its predicted
    paths are the trace lines whose segment id is i.

    Args:
        storage_dir: Directory with one file per full-size segment
        pred_path: Predicted-path trace file (may be missing)
        fov_width: Default FOV crop width
        fov_height: Default FOV crop height

    Returns:
        The built Manifest

    Raises:
        ManifestError: If storage_dir does not exist or is not a directory
    """
    segment_files = list_segment_files(storage_dir)
    predictions = parse_prediction_file(pred_path, fov_width, fov_height)

    segments: Dict[int, SegmentMetadata] = {}
    for segment_id, (_, file_path) in enumerate(segment_files, start=1):
        paths = {
            path_id: PredictedPath(path_id=path_id, rectangles=rects)
            for path_id, rects in predictions.get(segment_id, {}).items()
        }
        segments[segment_id] = SegmentMetadata(
            segment_id=segment_id,
            byte_size=file_path.stat().st_size,
            paths=paths,
        )

    orphaned = sorted(set(predictions) - set(segments))
    if orphaned:
        logger.warning(f"Prediction lines for unknown segments ignored: {orphaned}")

    manifest = Manifest(segments=segments)
    logger.info(
        f"Built manifest: segments={manifest.segment_count}, "
        f"with_prediction={sum(1 for s in segments.values() if s.has_prediction)}"
    )
    return manifest
