"""
Core module for yt-play.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - manifest: Persisted cache state of a playlist
    - cache: Manifest storage and track paths
    - logger: Logging system with multiple outputs
    - tools: Detection of mpv and ffmpeg

Usage:
    from yt_play.core import (
        Config, load_config,
        CacheManager, Manifest,
        setup_logging, get_logger,
        YtPlayError, ConfigError
    )
"""

from yt_play.core.config import (
    CacheConfig,
    Config,
    DownloadConfig,
    PlayerConfig,
    load_config,
)
from yt_play.core.exceptions import (
    ConfigError,
    CorruptManifestError,
    DownloadError,
    InvalidUrlError,
    ListingError,
    MissingToolError,
    PlaybackError,
    YtPlayError,
)
from yt_play.core.logger import (
    get_logger,
    log_download_failure,
    setup_logging,
    shutdown_logging,
)
from yt_play.core.manifest import Manifest, TrackRecord
from yt_play.core.cache import CacheManager
from yt_play.core.tools import ensure_tools, find_tool

__all__ = [
    # Config
    "Config",
    "CacheConfig",
    "DownloadConfig",
    "PlayerConfig",
    "load_config",
    # Cache
    "CacheManager",
    "Manifest",
    "TrackRecord",
    # Exceptions
    "YtPlayError",
    "ConfigError",
    "InvalidUrlError",
    "MissingToolError",
    "CorruptManifestError",
    "ListingError",
    "DownloadError",
    "PlaybackError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_download_failure",
    "shutdown_logging",
    # Tools
    "ensure_tools",
    "find_tool",
]
