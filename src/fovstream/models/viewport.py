"""
Viewport Models
===============

This module defines the rectangle used for both predicted FOV crops and
ground-truth user viewports.

Coordinates:
    All coordinates share the panorama's IMAGE SPACE (pixels or normalized
    units, as long as predicted and actual traces agree). Origin is the
    top-left corner; X increases rightward, Y increases downward.

Serialized Form (manifest document):
    {
        "frameIndex": 15,
        "x": 320.0,
        "y": 180.0,
        "width": 1280.0,
        "height": 720.0
    }
"""

from typing import Optional

from pydantic import BaseModel, Field


class ViewportRect(BaseModel):
    """
    Axis-aligned viewport rectangle for a single frame.

    Immutable once constructed. Used for predicted path entries in the
    manifest and for samples of the ground-truth viewport trace.

    Attributes:
        frame_index: Absolute frame index within the video
        x: Left edge
        y: Top edge
        width: Horizontal extent (> 0)
        height: Vertical extent (> 0)
    """

    frame_index: int = Field(
        ...,
        ge=0,
        alias="frameIndex",
        description="Absolute frame index within the video",
    )

    x: float = Field(..., description="Left edge of the rectangle")

    y: float = Field(..., description="Top edge of the rectangle")

    width: float = Field(..., gt=0, description="Width of the rectangle")

    height: float = Field(..., gt=0, description="Height of the rectangle")

    class Config:
        """Pydantic model configuration."""

        frozen = True
        populate_by_name = True

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def translated(self, dx: float, dy: float) -> "ViewportRect":
        """Return a copy shifted by (dx, dy)."""
        return self.model_copy(update={"x": self.x + dx, "y": self.y + dy})

    @classmethod
    def from_columns(
        cls,
        frame_index: int,
        x: float,
        y: float,
        width: Optional[float],
        height: Optional[float],
        default_width: float,
        default_height: float,
    ) -> "ViewportRect":
        """
        Build a rectangle from parsed trace columns.

        Trace formats may omit width/height when every viewport has the same
        fixed size; the defaults fill those in.
        """
        return cls(
            frame_index=frame_index,
            x=x,
            y=y,
            width=default_width if width is None else width,
            height=default_height if height is None else height,
        )
