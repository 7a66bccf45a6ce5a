"""
YouTube module for yt-play.

Components:
    - resolve_playlist_url: URL -> PlaylistKey (source type + playlist ID)
    - PlaylistLister: Remote listing of a playlist via yt-dlp
    - RemoteListing / RemoteEntry: What the remote playlist contains

Usage:
    from yt_play.youtube import PlaylistLister, resolve_playlist_url

    key = resolve_playlist_url("https://music.youtube.com/playlist?list=OLAK5uy_...")
    listing = PlaylistLister()(key)
"""

from yt_play.youtube.resolver import PlaylistKey, SourceType, resolve_playlist_url
from yt_play.youtube.models import RemoteEntry, RemoteListing
from yt_play.youtube.listing import PlaylistLister

__all__ = [
    "PlaylistKey",
    "SourceType",
    "resolve_playlist_url",
    "RemoteEntry",
    "RemoteListing",
    "PlaylistLister",
]
