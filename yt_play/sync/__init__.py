"""
Sync module for yt-play.

Keeps the local cache of a playlist in line with the remote playlist.

Usage:
    from yt_play.sync import PlaylistSynchronizer

    result = PlaylistSynchronizer(cache, lister, downloader).sync(key, manifest)
    print(result.summary)
"""

from yt_play.sync.synchronizer import (
    PlaylistSynchronizer,
    SyncMode,
    SyncPlan,
    SyncResult,
    plan_sync,
)

__all__ = [
    "PlaylistSynchronizer",
    "SyncMode",
    "SyncPlan",
    "SyncResult",
    "plan_sync",
]
