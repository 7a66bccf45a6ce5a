"""
Manifest data model for yt-play.

A manifest is the persisted cache state of one playlist: which remote items
have been downloaded, where their files are, and when the playlist was last
synchronized. It is stored as JSON by CacheManager.

Manifest File Format (version 1):
    {
      "version": 1,
      "key": "youtube_music:OLAK5uy_abc",
      "title": "My Playlist",
      "last_synced": "2026-10-17T12:00:00+00:00",
      "tracks": [
        {
          "track_id": "dQw4w9WgXcQ",
          "title": "Never Gonna Give You Up",
          "file_path": "/home/me/.cache/yt-play/youtube_music-OLAK5uy_abc/tracks/dQw4w9WgXcQ.m4a",
          "downloaded_at": "2026-10-17T11:59:12+00:00",
          "position": 0
        }
      ]
    }
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from yt_play.youtube.resolver import PlaylistKey


MANIFEST_VERSION = 1


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class TrackRecord:
    """
    Persisted metadata for one downloaded playlist item.

    Attributes:
        track_id: Remote video ID, unique within its manifest.
        title: Title as listed remotely when the track was downloaded.
        file_path: Absolute path of the local audio file.
        downloaded_at: UTC ISO-8601 timestamp of the download.
        position: Index in the remote playlist as of the last sync.
    """
    track_id: str
    title: str
    file_path: Path
    downloaded_at: str
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "track_id": self.track_id,
            "title": self.title,
            "file_path": str(self.file_path),
            "downloaded_at": self.downloaded_at,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackRecord":
        """
        Raises:
            KeyError, TypeError, ValueError: If required fields are missing
            or have the wrong type. CacheManager turns these into
            CorruptManifestError.
        """
        track_id = data["track_id"]
        title = data["title"]
        file_path = data["file_path"]
        downloaded_at = data["downloaded_at"]
        position = data["position"]

        for name, value in (
            ("track_id", track_id),
            ("title", title),
            ("file_path", file_path),
            ("downloaded_at", downloaded_at),
        ):
            if not isinstance(value, str):
                raise TypeError(f"'{name}' must be a string")
        if isinstance(position, bool) or not isinstance(position, int):
            raise TypeError("'position' must be an integer")

        return cls(
            track_id=track_id,
            title=title,
            file_path=Path(file_path),
            downloaded_at=downloaded_at,
            position=position
        )


@dataclass(frozen=True)
class Manifest:
    """
    Cache state of one playlist.

    A manifest with last_synced=None is the "empty" manifest returned for
    a playlist that has never been synchronized (first run).

    Attributes:
        key: Playlist this manifest belongs to.
        title: Playlist title from the last listing.
        tracks: Track records in playback order (remote order as of last sync).
        last_synced: UTC ISO-8601 timestamp of the last completed sync.
    """
    key: PlaylistKey
    title: str = ""
    tracks: tuple[TrackRecord, ...] = field(default_factory=tuple)
    last_synced: str | None = None

    def __post_init__(self) -> None:
        ids = [track.track_id for track in self.tracks]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate track IDs in manifest for {self.key}")

    @classmethod
    def empty(cls, key: PlaylistKey) -> "Manifest":
        return cls(key=key)

    @property
    def is_new(self) -> bool:
        """True if this playlist has never been synchronized."""
        return self.last_synced is None

    @property
    def track_ids(self) -> list[str]:
        return [track.track_id for track in self.tracks]

    def get(self, track_id: str) -> TrackRecord | None:
        for track in self.tracks:
            if track.track_id == track_id:
                return track
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "key": str(self.key),
            "title": self.title,
            "last_synced": self.last_synced,
            "tracks": [track.to_dict() for track in self.tracks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        """
        Raises:
            KeyError, TypeError, ValueError: On any structural problem.
        """
        if not isinstance(data, dict):
            raise TypeError("Manifest must be a JSON object")

        version = data.get("version")
        if version != MANIFEST_VERSION:
            raise ValueError(f"Unsupported manifest version: {version!r}")

        tracks_data = data["tracks"]
        if not isinstance(tracks_data, list):
            raise TypeError("'tracks' must be a list")

        title = data.get("title") or ""
        last_synced = data.get("last_synced")
        if last_synced is not None and not isinstance(last_synced, str):
            raise TypeError("'last_synced' must be a string or null")

        return cls(
            key=PlaylistKey.parse(data["key"]),
            title=str(title),
            tracks=tuple(TrackRecord.from_dict(t) for t in tracks_data),
            last_synced=last_synced
        )
