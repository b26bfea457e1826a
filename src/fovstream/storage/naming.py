"""
Artifact Naming
===============

Remote object keys and local file names for a video's artifacts.

Remote layout (object store):
    {video}-manifest.txt            manifest document
    {video}-full/output_{seg}.mp4   full-size segments
    {video}-fov/{seg}/{path}.mp4    FOV crops per predicted path

Local layout (segment directory):
    full_{seg}.mp4
    fov_{seg}_{path}.mp4
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SegmentNaming:
    """Naming scheme for one video in one local segment directory."""

    video_name: str
    segment_dir: str
    full_prefix: str = "output"
    extension: str = "mp4"

    @property
    def manifest_key(self) -> str:
        return f"{self.video_name}-manifest.txt"

    @property
    def local_manifest(self) -> str:
        return os.path.join(self.segment_dir, self.manifest_key)

    def remote_full(self, segment_id: int) -> str:
        return f"{self.video_name}-full/{self.full_prefix}_{segment_id}.{self.extension}"

    def remote_fov(self, segment_id: int, path_id: int) -> str:
        return f"{self.video_name}-fov/{segment_id}/{path_id}.{self.extension}"

    def local_full(self, segment_id: int) -> str:
        return os.path.join(self.segment_dir, f"full_{segment_id}.{self.extension}")

    def local_fov(self, segment_id: int, path_id: int) -> str:
        return os.path.join(self.segment_dir, f"fov_{segment_id}_{path_id}.{self.extension}")
