"""
Manifest Module
===============

Building the per-session segment manifest from the segment inventory and
the predicted-path trace. The Manifest type itself lives in
fovstream.models.manifest.
"""

from fovstream.manifest.builder import (
    build_manifest,
    list_segment_files,
    parse_prediction_file,
    segment_id_from_name,
)
from fovstream.models.manifest import Manifest, ManifestError

__all__ = [
    "Manifest",
    "ManifestError",
    "build_manifest",
    "list_segment_files",
    "parse_prediction_file",
    "segment_id_from_name",
]
