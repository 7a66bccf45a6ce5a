"""
Remote playlist listing for yt-play.

Fetches the current contents of a playlist (IDs and titles, in remote order)
without downloading anything, using yt-dlp's flat playlist extraction. This
is the library equivalent of `yt-dlp --flat-playlist -J <playlist-url>`.

Usage:
    from yt_play.youtube.listing import PlaylistLister

    lister = PlaylistLister(cookie_file=None, extra_options={})
    listing = lister.fetch(key)
    print(f"{listing.title}: {len(listing.entries)} entries")
"""

from pathlib import Path
from typing import Any

from yt_dlp import YoutubeDL
from yt_dlp.utils import YoutubeDLError

from yt_play.core.exceptions import ListingError
from yt_play.core.logger import get_logger
from yt_play.utils import YtDlpLogger
from yt_play.youtube.models import RemoteListing
from yt_play.youtube.resolver import PlaylistKey

logger = get_logger(__name__)


class PlaylistLister:
    """
    Lists remote playlist entries with yt-dlp.

    Attributes:
        _cookie_file: Optional cookies.txt (needed for private playlists).
        _extra_options: YoutubeDL params from --yt-dlp-arguments,
                        applied over the defaults.
    """

    def __init__(
        self,
        cookie_file: Path | None = None,
        extra_options: dict[str, Any] | None = None
    ) -> None:
        self._cookie_file = cookie_file
        self._extra_options = dict(extra_options or {})

    def __call__(self, key: PlaylistKey) -> RemoteListing:
        return self.fetch(key)

    def fetch(self, key: PlaylistKey) -> RemoteListing:
        """
        Fetch the full remote listing of a playlist.

        Args:
            key: Playlist to list.

        Returns:
            RemoteListing with unique entries in remote order.

        Raises:
            ListingError: If yt-dlp fails, returns nothing, or the URL does
                          not resolve to a playlist.
        """
        url = key.playlist_url
        logger.info(f"Fetching playlist listing: {url}")

        yt_logger = YtDlpLogger(show_errors=False)
        try:
            with YoutubeDL(self._get_options(yt_logger)) as ydl:
                info = ydl.extract_info(url, download=False)
                if info is not None:
                    # Resolves lazy entry generators and normalizes the dict
                    info = ydl.sanitize_info(info)
        except YoutubeDLError as e:
            raise ListingError(
                f"Could not fetch playlist {key}: {yt_logger.last_error or e}",
                details={"url": url, "original_error": str(e)}
            ) from e

        if not info:
            raise ListingError(
                f"yt-dlp returned no information for playlist {key}",
                details={"url": url}
            )

        if info.get("_type") not in (None, "playlist") or "entries" not in info:
            raise ListingError(
                f"URL did not resolve to a playlist: {url}",
                details={"url": url, "type": info.get("_type")}
            )

        listing = RemoteListing.from_info_dict(info)
        logger.debug(f"Listed {len(listing.entries)} entries for '{listing.title}'")
        return listing

    def _get_options(self, yt_logger: YtDlpLogger) -> dict[str, Any]:
        options: dict[str, Any] = {
            "extract_flat": "in_playlist",
            "skip_download": True,
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "logger": yt_logger,
        }
        if self._cookie_file is not None:
            options["cookiefile"] = str(self._cookie_file)

        options.update(self._extra_options)
        # These are what make this a listing; user arguments cannot turn them off
        options["extract_flat"] = "in_playlist"
        options["skip_download"] = True
        return options
