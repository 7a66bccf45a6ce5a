"""
Playlist URL resolution for yt-play.

Turns a user-supplied URL into a PlaylistKey: the source type (YouTube or
YouTube Music) plus the remote playlist ID. The key is the lookup key of
the local cache, so the same playlist URL always maps to the same cache
directory.

Accepted URLs:
    https://www.youtube.com/playlist?list=PLxxxx
    https://www.youtube.com/watch?v=xxxx&list=PLxxxx
    https://m.youtube.com/playlist?list=PLxxxx
    https://youtu.be/xxxx?list=PLxxxx
    https://music.youtube.com/playlist?list=OLAKxxxx
    music.youtube.com/playlist?list=...    (scheme is optional)

Other query parameters (index, si, feature, ...) are ignored.
"""

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, urlsplit

from yt_play.core.exceptions import InvalidUrlError


PLAYLIST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class SourceType(Enum):
    """The two known playlist sources."""
    YOUTUBE = "youtube"
    YOUTUBE_MUSIC = "youtube_music"

    @property
    def base_url(self) -> str:
        if self is SourceType.YOUTUBE_MUSIC:
            return "https://music.youtube.com"
        return "https://www.youtube.com"


_HOST_SOURCES = {
    "youtube.com": SourceType.YOUTUBE,
    "www.youtube.com": SourceType.YOUTUBE,
    "m.youtube.com": SourceType.YOUTUBE,
    "youtu.be": SourceType.YOUTUBE,
    "music.youtube.com": SourceType.YOUTUBE_MUSIC,
}


@dataclass(frozen=True)
class PlaylistKey:
    """
    Normalized identifier of a playlist's local cache.

    Attributes:
        source: Whether the playlist was given as a YouTube or YouTube Music URL.
        playlist_id: Remote playlist ID (the 'list' query parameter).
    """
    source: SourceType
    playlist_id: str

    def __str__(self) -> str:
        return f"{self.source.value}:{self.playlist_id}"

    @property
    def dirname(self) -> str:
        """Directory name of this playlist inside the cache directory."""
        return f"{self.source.value}-{self.playlist_id}"

    @property
    def playlist_url(self) -> str:
        """Canonical playlist URL handed to yt-dlp for listing."""
        return f"{self.source.base_url}/playlist?list={self.playlist_id}"

    def watch_url(self, track_id: str) -> str:
        """URL of a single playlist item, on the same site as the playlist."""
        return f"{self.source.base_url}/watch?v={track_id}"

    @classmethod
    def parse(cls, value: str) -> "PlaylistKey":
        """Inverse of str(key), used when reading manifests back."""
        source_value, sep, playlist_id = value.partition(":")
        if not sep or not PLAYLIST_ID_PATTERN.match(playlist_id):
            raise ValueError(f"Malformed playlist key: {value!r}")
        return cls(source=SourceType(source_value), playlist_id=playlist_id)


def resolve_playlist_url(url: str) -> PlaylistKey:
    """
    Resolve a playlist URL into its PlaylistKey.

    Args:
        url: YouTube or YouTube Music URL containing a 'list' parameter.

    Returns:
        PlaylistKey for the playlist.

    Raises:
        InvalidUrlError: If the host is not a YouTube domain, or the URL has
                         no usable 'list' parameter.

    Example:
        key = resolve_playlist_url("https://music.youtube.com/playlist?list=OLAK5uy_abc")
        str(key)  # "youtube_music:OLAK5uy_abc"
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidUrlError("No playlist URL given", details={"url": url})

    if "://" not in candidate:
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
    except ValueError as e:
        raise InvalidUrlError(
            f"Invalid URL format: {url}",
            details={"url": url, "original_error": str(e)}
        ) from e

    if parts.scheme not in ("http", "https"):
        raise InvalidUrlError(
            f"Unsupported URL scheme '{parts.scheme}': {url}",
            details={"url": url}
        )

    host = (parts.hostname or "").lower()
    source = _HOST_SOURCES.get(host)
    if source is None:
        raise InvalidUrlError(
            f"Not a YouTube or YouTube Music URL: {url}",
            details={"url": url, "host": host}
        )

    list_values = parse_qs(parts.query).get("list", [])
    if not list_values:
        raise InvalidUrlError(
            "Could not find a 'list' parameter in the URL",
            details={"url": url}
        )

    playlist_id = list_values[0].strip()
    if not PLAYLIST_ID_PATTERN.match(playlist_id):
        raise InvalidUrlError(
            f"Malformed playlist ID '{playlist_id}'",
            details={"url": url, "playlist_id": playlist_id}
        )

    return PlaylistKey(source=source, playlist_id=playlist_id)
