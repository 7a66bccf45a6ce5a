"""
Data models for remote playlist listings.

These dataclasses describe what yt-dlp reports about a playlist before
anything is downloaded: the playlist title and its entries, in remote order.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RemoteEntry:
    """
    One item of a remote playlist.

    Attributes:
        track_id: YouTube video ID (11-character string).
                  Example: "dQw4w9WgXcQ"
        title: Title as listed in the playlist. Unavailable items show up
               with placeholder titles such as "[Private video]".
        position: 0-based index in the remote playlist.
    """
    track_id: str
    title: str
    position: int

    @classmethod
    def from_flat_entry(cls, entry: dict[str, Any], position: int) -> "RemoteEntry | None":
        """
        Create a RemoteEntry from a yt-dlp flat playlist entry.

        Returns None for entries without an ID (yt-dlp yields those for
        some unavailable items).
        """
        track_id = entry.get("id")
        if not track_id or not isinstance(track_id, str):
            return None

        title = entry.get("title") or track_id
        return cls(track_id=track_id, title=str(title), position=position)


@dataclass(frozen=True)
class RemoteListing:
    """
    Full remote playlist listing.

    Attributes:
        title: Playlist title, or "" if yt-dlp did not report one.
        entries: Entries in remote order. IDs are unique; when a video
                 appears more than once only the first occurrence is kept.
    """
    title: str
    entries: tuple[RemoteEntry, ...]

    @property
    def track_ids(self) -> list[str]:
        return [entry.track_id for entry in self.entries]

    @classmethod
    def from_info_dict(cls, info: dict[str, Any]) -> "RemoteListing":
        """
        Build a listing from the info dict returned by
        YoutubeDL.extract_info(..., download=False) with flat extraction.

        Positions are reassigned after dropping ID-less and duplicate entries,
        so they are always 0..n-1.
        """
        seen: set[str] = set()
        entries: list[RemoteEntry] = []

        for raw_entry in info.get("entries") or []:
            if not isinstance(raw_entry, dict):
                continue
            entry = RemoteEntry.from_flat_entry(raw_entry, position=len(entries))
            if entry is None or entry.track_id in seen:
                continue
            seen.add(entry.track_id)
            entries.append(entry)

        return cls(title=str(info.get("title") or ""), entries=tuple(entries))
