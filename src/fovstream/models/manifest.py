"""
Manifest Models
===============

This module defines the segment inventory the client negotiates over.

Design Philosophy:
    The manifest is an ARENA-STYLE table: a flat mapping of segment id to
    SegmentMetadata, each holding a flat mapping of path id to PredictedPath.
    It is built (or loaded) once per session and never mutated afterwards.

Serialized Document:
    {
        "length": 2,
        "segments": [
            {"size": -1, "paths": []},
            {"size": 48213, "paths": [
                {"pathId": 0, "rectangles": [{"frameIndex": 0, "x": 0, ...}]}
            ]},
            {"size": 51877, "paths": []}
        ]
    }

    Index 0 of "segments" is a reserved placeholder record and never a real
    segment. A size of -1 means "unknown / not yet measured".
"""

import bisect
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
    model_validator,
)

from fovstream.models.viewport import ViewportRect


logger = logging.getLogger(__name__)


UNKNOWN_SIZE = -1


class ManifestError(Exception):
    """Raised when a manifest cannot be built or loaded."""
    pass


class SegmentOutOfRangeError(IndexError):
    """Raised when a segment id falls outside [1, segment_count]."""
    pass


class UnknownPathError(KeyError):
    """Raised when a segment has no predicted path with the requested id."""
    pass


class PredictedPath(BaseModel):
    """
    One candidate FOV crop for a segment.

    Holds one rectangle per frame, ordered by frame index.

    Attributes:
        path_id: Identifier the server uses to select this crop
        rectangles: Per-frame predicted viewport rectangles
    """

    path_id: int = Field(
        ...,
        ge=0,
        alias="pathId",
        description="Identifier of this predicted path within its segment",
    )

    rectangles: List[ViewportRect] = Field(
        ...,
        min_length=1,
        description="Predicted rectangles ordered by frame index",
    )

    _frames: List[int] = PrivateAttr(default_factory=list)

    class Config:
        """Pydantic model configuration."""

        frozen = True
        populate_by_name = True

    @field_validator("rectangles")
    @classmethod
    def sort_by_frame(cls, v: List[ViewportRect]) -> List[ViewportRect]:
        """Keep rectangles ordered by frame index."""
        return sorted(v, key=lambda rect: rect.frame_index)

    def model_post_init(self, __context) -> None:
        self._frames = [rect.frame_index for rect in self.rectangles]

    def rect_for_frame(self, frame_index: int) -> ViewportRect:
        """
        Get the predicted rectangle covering a frame.

        Uses the exact frame match when present, otherwise the latest
        rectangle before the frame. Frames before the first sample use the
        first rectangle, so a single-rectangle path covers its whole segment.

        Args:
            frame_index: Absolute frame index

        Returns:
            The predicted rectangle for that frame
        """
        position = bisect.bisect_right(self._frames, frame_index) - 1
        return self.rectangles[max(position, 0)]


class SegmentMetadata(BaseModel):
    """
    Metadata for one full-size video segment.

    Attributes:
        segment_id: 1-based segment identifier
        byte_size: Size of the full-size artifact (None if unknown)
        paths: Predicted FOV paths keyed by path id (may be empty)
    """

    segment_id: int = Field(..., ge=1, description="1-based segment identifier")

    byte_size: Optional[int] = Field(
        default=None,
        ge=0,
        description="Full-size segment size in bytes (None if unknown)",
    )

    paths: Dict[int, PredictedPath] = Field(
        default_factory=dict,
        description="Predicted paths keyed by path id",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @property
    def has_prediction(self) -> bool:
        return bool(self.paths)


# =============================================================================
# Serialized document
# =============================================================================

class SegmentRecord(BaseModel):
    """One entry of the serialized manifest's "segments" list."""

    size: int = Field(default=UNKNOWN_SIZE, ge=UNKNOWN_SIZE)
    paths: List[PredictedPath] = Field(default_factory=list)

    @field_validator("paths")
    @classmethod
    def unique_path_ids(cls, v: List[PredictedPath]) -> List[PredictedPath]:
        """Path ids identify a crop within its segment."""
        seen = set()
        for path in v:
            if path.path_id in seen:
                raise ValueError(f"duplicate pathId {path.path_id}")
            seen.add(path.path_id)
        return v


class ManifestDocument(BaseModel):
    """Self-describing JSON form of a manifest."""

    length: int = Field(..., ge=0, description="Number of real segments")
    segments: List[SegmentRecord] = Field(
        ...,
        min_length=1,
        description="Placeholder record followed by one record per segment",
    )

    @model_validator(mode="after")
    def check_length(self) -> "ManifestDocument":
        if self.length != len(self.segments) - 1:
            raise ValueError(
                f"length={self.length} does not match "
                f"{len(self.segments) - 1} segment records"
            )
        return self


# =============================================================================
# Manifest
# =============================================================================

class Manifest(BaseModel):
    """
    Immutable per-session table of segment sizes and predicted paths.

    Segment ids form the contiguous range [1, segment_count]. Equality
    compares real segments only; the serialized placeholder carries no data.

    Example:
        manifest = Manifest.load("rhino-manifest.txt")
        manifest.segment_count
        manifest.segment_byte_size(1)
        manifest.path(1, 0).rect_for_frame(3)
    """

    segments: Dict[int, SegmentMetadata] = Field(default_factory=dict)

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @model_validator(mode="after")
    def check_contiguous(self) -> "Manifest":
        expected = list(range(1, len(self.segments) + 1))
        if sorted(self.segments) != expected:
            raise ValueError("segment ids must form the contiguous range [1, N]")
        for key, segment in self.segments.items():
            if key != segment.segment_id:
                raise ValueError(f"segment keyed {key} has segment_id={segment.segment_id}")
        return self

    @property
    def segment_count(self) -> int:
        """Number of real (non-placeholder) segments."""
        return len(self.segments)

    def segment(self, segment_id: int) -> SegmentMetadata:
        """
        Get metadata for a segment.

        Raises:
            SegmentOutOfRangeError: If segment_id is outside [1, segment_count]
        """
        if not 1 <= segment_id <= self.segment_count:
            raise SegmentOutOfRangeError(
                f"segment {segment_id} outside [1, {self.segment_count}]"
            )
        return self.segments[segment_id]

    def segment_byte_size(self, segment_id: int) -> Optional[int]:
        """Size in bytes of a full-size segment (None if unknown)."""
        return self.segment(segment_id).byte_size

    def path(self, segment_id: int, path_id: int) -> PredictedPath:
        """
        Get a predicted path of a segment.

        Raises:
            SegmentOutOfRangeError: If segment_id is outside [1, segment_count]
            UnknownPathError: If the segment has no path with this id
        """
        segment = self.segment(segment_id)
        try:
            return segment.paths[path_id]
        except KeyError:
            raise UnknownPathError(
                f"segment {segment_id} has no predicted path {path_id} "
                f"(known: {sorted(segment.paths)})"
            ) from None

    def total_bytes(self) -> int:
        """Sum of all known full-size segment sizes."""
        return sum(s.byte_size for s in self.segments.values() if s.byte_size is not None)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_document(self) -> ManifestDocument:
        records = [SegmentRecord()]
        for segment_id in range(1, self.segment_count + 1):
            segment = self.segments[segment_id]
            records.append(
                SegmentRecord(
                    size=UNKNOWN_SIZE if segment.byte_size is None else segment.byte_size,
                    paths=[segment.paths[k] for k in sorted(segment.paths)],
                )
            )
        return ManifestDocument(length=self.segment_count, segments=records)

    @classmethod
    def from_document(cls, document: ManifestDocument) -> "Manifest":
        segments: Dict[int, SegmentMetadata] = {}
        for segment_id, record in enumerate(document.segments[1:], start=1):
            segments[segment_id] = SegmentMetadata(
                segment_id=segment_id,
                byte_size=None if record.size == UNKNOWN_SIZE else record.size,
                paths={p.path_id: p for p in record.paths},
            )
        return cls(segments=segments)

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to the manifest JSON document."""
        return self.to_document().model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, raw: str) -> "Manifest":
        """
        Parse a manifest JSON document.

        Raises:
            ManifestError: If the document is malformed
        """
        try:
            document = ManifestDocument.model_validate_json(raw)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest document: {e}") from e
        return cls.from_document(document)

    def save(self, path: str) -> None:
        """Write the manifest document to a file (UTF-8)."""
        Path(path).write_text(self.to_json(), encoding="utf-8")
        logger.info(f"Wrote manifest with {self.segment_count} segments to {path}")

    @classmethod
    def load(cls, path: str) -> "Manifest":
        """
        Load a manifest document from a file.

        Raises:
            ManifestError: If the file is missing or malformed
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise ManifestError(f"Manifest file not found: {path}")

        manifest = cls.from_json(file_path.read_text(encoding="utf-8"))
        logger.info(f"Loaded manifest: segments={manifest.segment_count}")
        return manifest
