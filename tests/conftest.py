"""Test configuration and fixtures"""

import pytest
from pathlib import Path

from yt_play.core.cache import CacheManager
from yt_play.core.logger import shutdown_logging
from yt_play.core.manifest import Manifest, TrackRecord
from yt_play.download.downloader import DownloadOutcome
from yt_play.youtube.models import RemoteEntry, RemoteListing
from yt_play.youtube.resolver import PlaylistKey, SourceType


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real config and cache directories"""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config-home"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache-home"))
    yield
    shutdown_logging()


@pytest.fixture
def key():
    """A YouTube playlist key"""
    return PlaylistKey(source=SourceType.YOUTUBE, playlist_id="PLtest123")


@pytest.fixture
def cache(tmp_path):
    """Initialized cache manager in a temporary directory"""
    manager = CacheManager(tmp_path / "cache", audio_format="m4a")
    manager.initialize()
    return manager


def make_listing(*track_ids, title="Test Playlist"):
    """Build a RemoteListing with one entry per ID, in the given order"""
    return RemoteListing(
        title=title,
        entries=tuple(
            RemoteEntry(track_id=tid, title=f"Song {tid}", position=i)
            for i, tid in enumerate(track_ids)
        )
    )


def make_manifest(cache, key, *track_ids, write_files=True):
    """Build a synced manifest whose files exist on disk"""
    tracks = []
    for i, tid in enumerate(track_ids):
        path = cache.track_path(key, tid)
        if write_files:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"audio " + tid.encode())
        tracks.append(TrackRecord(
            track_id=tid,
            title=f"Song {tid}",
            file_path=path,
            downloaded_at="2026-01-01T00:00:00+00:00",
            position=i
        ))
    return Manifest(
        key=key,
        title="Test Playlist",
        tracks=tuple(tracks),
        last_synced="2026-01-01T00:00:00+00:00"
    )


class FakeDownloader:
    """
    Stands in for Downloader: writes a small file at the track path
    instead of calling yt-dlp. IDs in fail_ids produce failed outcomes.
    """

    def __init__(self, cache, fail_ids=()):
        self.cache = cache
        self.fail_ids = set(fail_ids)
        self.requested = []

    def download_entries(self, key, entries):
        outcomes = []
        for entry in entries:
            self.requested.append(entry.track_id)
            if entry.track_id in self.fail_ids:
                outcomes.append(DownloadOutcome(
                    entry=entry, file_path=None, error="Video unavailable", attempts=1
                ))
                continue
            path = self.cache.track_path(key, entry.track_id)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"audio " + entry.track_id.encode())
            outcomes.append(DownloadOutcome(entry=entry, file_path=path, attempts=1))
        return outcomes


class FakeLister:
    """Returns a fixed listing and counts calls"""

    def __init__(self, listing):
        self.listing = listing
        self.calls = 0

    def __call__(self, key):
        self.calls += 1
        return self.listing


@pytest.fixture
def fake_downloader(cache):
    return FakeDownloader(cache)
