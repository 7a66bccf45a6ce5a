"""
yt-play: Play YouTube and YouTube Music playlists with mpv.

This package caches playlists locally with yt-dlp so they can be played
(also offline) with mpv, and keeps the cache in sync with the remote
playlist on request.

Architecture:
    youtube/    - URL resolution and remote playlist listing (yt-dlp)
    core/       - Configuration, cache + manifest, logging, exceptions
    download/   - Parallel audio downloads (yt-dlp + FFmpeg)
    sync/       - FirstRun / Refresh synchronization of the cache
    playback/   - Play queue and mpv invocation
    cli.py      - Command-line interface

Usage:
    Command Line:
        yt-play "https://music.youtube.com/playlist?list=..."
        yt-play --refresh --shuffle "https://www.youtube.com/playlist?list=..."

    Python API:
        from yt_play.core import CacheManager, load_config
        from yt_play.download import Downloader
        from yt_play.playback import build_queue, play
        from yt_play.sync import PlaylistSynchronizer
        from yt_play.youtube import PlaylistLister, resolve_playlist_url

        config = load_config()
        cache = CacheManager(config.cache.directory, config.download.audio_format)
        cache.initialize()

        key = resolve_playlist_url(url)
        synchronizer = PlaylistSynchronizer(cache, PlaylistLister(), Downloader(cache))
        result = synchronizer.sync(key, cache.load(key))
        play(build_queue(result.manifest, shuffle=True))

Dependencies:
    - yt-dlp: Playlist listing and audio download
    - click: CLI framework
    - rich-click: CLI colors
    - rich: Progress bars
    - tqdm: tqdm-safe console logging
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "yt-play"
__license__ = "MIT"

from yt_play.core import (
    CacheManager,
    Config,
    ConfigError,
    Manifest,
    TrackRecord,
    YtPlayError,
    load_config,
)
from yt_play.youtube import PlaylistKey, SourceType, resolve_playlist_url

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "CacheManager",
    "Manifest",
    "TrackRecord",
    # Exceptions
    "YtPlayError",
    "ConfigError",
    # Playlists
    "PlaylistKey",
    "SourceType",
    "resolve_playlist_url",
]
