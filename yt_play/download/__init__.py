"""
Download module for yt-play.

Components:
    - Downloader: Parallel audio downloads into the cache
    - DownloadOutcome: Per-track result returned to the synchronizer
    - classify_error / calculate_backoff: Retry strategy helpers

Usage:
    from yt_play.download import Downloader

    downloader = Downloader(cache, num_threads=4)
    outcomes = downloader.download_entries(key, entries)
"""

from yt_play.download.downloader import (
    DownloadOutcome,
    Downloader,
    ErrorType,
    calculate_backoff,
    classify_error,
)

__all__ = [
    "Downloader",
    "DownloadOutcome",
    "ErrorType",
    "classify_error",
    "calculate_backoff",
]
