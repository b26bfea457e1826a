"""
fovstream Configuration
=======================

This module handles configuration loading for the FOV streaming client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    FOVSTREAM_STORAGE_BACKEND    -> storage.backend
    FOVSTREAM_STORAGE_URL        -> storage.base_url
    FOVSTREAM_STORAGE_ROOT       -> storage.root
    FOVSTREAM_OVERLAP_THRESHOLD  -> session.overlap_threshold
    FOVSTREAM_FRAMES_PER_SEGMENT -> session.frames_per_segment
    FOVSTREAM_PLAYBACK_BACKEND   -> playback.backend
    FOVSTREAM_LOG_LEVEL          -> logging.level

Example:
    from fovstream.config import settings

    print(settings.server.response_timeout)
    print(settings.session.overlap_threshold)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServerConfig(BaseModel):
    """Protocol peer (VR server) timeouts. Host and port come from the command line."""

    open_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for the connection handshake",
    )
    response_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a reply to a request",
    )


class StorageConfig(BaseModel):
    """Segment object storage configuration."""

    backend: Literal["http", "local"] = Field(
        default="http",
        description="Storage backend: 'http' or 'local'",
    )
    base_url: str = Field(
        default="http://localhost:9000/vros-video-segments",
        description="Base URL of the HTTP object store (bucket root)",
    )
    root: str = Field(
        default="./segments",
        description="Root directory for the local storage backend",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    max_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per artifact fetch (1 = no retry)",
    )
    retry_backoff_ms: int = Field(
        default=500,
        ge=0,
        description="Backoff in milliseconds between fetch attempts",
    )


class SessionConfig(BaseModel):
    """Fetch decision protocol configuration."""

    frames_per_segment: int = Field(
        default=15,
        ge=1,
        description="Number of frames in every video segment",
    )
    overlap_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Minimum per-frame overlap ratio to keep decoding the FOV crop",
    )


class ViewportConfig(BaseModel):
    """Fixed viewport sizes used when trace lines omit width/height."""

    fov_width: float = Field(default=1280.0, gt=0, description="Predicted FOV crop width")
    fov_height: float = Field(default=720.0, gt=0, description="Predicted FOV crop height")
    user_width: float = Field(default=1280.0, gt=0, description="User viewport width")
    user_height: float = Field(default=720.0, gt=0, description="User viewport height")


class PlaybackConfig(BaseModel):
    """Playback collaborator configuration."""

    backend: Literal["opencv", "none"] = Field(
        default="opencv",
        description="Playback backend: 'opencv' or 'none'",
    )
    display: bool = Field(
        default=False,
        description="Show decoded frames in a window (opencv backend only)",
    )
    max_queue_size: int = Field(
        default=32,
        ge=1,
        description="Maximum pending playback requests",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for fovstream.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Storage settings
    if env_backend := os.environ.get("FOVSTREAM_STORAGE_BACKEND"):
        config_data.setdefault("storage", {})["backend"] = env_backend
    if env_url := os.environ.get("FOVSTREAM_STORAGE_URL"):
        config_data.setdefault("storage", {})["base_url"] = env_url
    if env_root := os.environ.get("FOVSTREAM_STORAGE_ROOT"):
        config_data.setdefault("storage", {})["root"] = env_root

    # Session settings
    if env_threshold := os.environ.get("FOVSTREAM_OVERLAP_THRESHOLD"):
        config_data.setdefault("session", {})["overlap_threshold"] = float(env_threshold)
    if env_frames := os.environ.get("FOVSTREAM_FRAMES_PER_SEGMENT"):
        config_data.setdefault("session", {})["frames_per_segment"] = int(env_frames)

    # Playback settings
    if env_playback := os.environ.get("FOVSTREAM_PLAYBACK_BACKEND"):
        config_data.setdefault("playback", {})["backend"] = env_playback

    # Logging settings
    if env_log := os.environ.get("FOVSTREAM_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Loaded on import; the CLI calls setup_logging() once it starts.
settings = load_config()
