# tests/test_listing.py
"""Test remote playlist listing"""

import pytest
from unittest.mock import patch

from yt_dlp.utils import DownloadError as YtDlpDownloadError

from yt_play.core.exceptions import ListingError
from yt_play.youtube.listing import PlaylistLister
from yt_play.youtube.models import RemoteEntry, RemoteListing


def flat_playlist(*entries, title="Mix"):
    return {"_type": "playlist", "id": "PLtest123", "title": title, "entries": list(entries)}


@pytest.fixture
def mock_ydl():
    with patch("yt_play.youtube.listing.YoutubeDL") as mock_class:
        instance = mock_class.return_value.__enter__.return_value
        instance.sanitize_info.side_effect = lambda info: info
        yield mock_class, instance


class TestRemoteListing:
    """Test listing models"""

    def test_from_info_dict(self):
        """Test entries keep remote order"""
        listing = RemoteListing.from_info_dict(flat_playlist(
            {"id": "a", "title": "Song A"},
            {"id": "b", "title": "Song B"},
        ))
        assert listing.title == "Mix"
        assert listing.entries == (
            RemoteEntry("a", "Song A", 0),
            RemoteEntry("b", "Song B", 1),
        )

    def test_duplicates_and_missing_ids(self):
        """Test first occurrence wins and ID-less entries are dropped"""
        listing = RemoteListing.from_info_dict(flat_playlist(
            {"id": "a", "title": "first"},
            {"title": "[Deleted video]"},
            None,
            {"id": "b"},
            {"id": "a", "title": "second"},
        ))
        assert listing.track_ids == ["a", "b"]
        assert listing.entries[0].title == "first"
        assert listing.entries[1] == RemoteEntry("b", "b", 1)


class TestPlaylistLister:
    """Test PlaylistLister against a mocked YoutubeDL"""

    def test_fetch(self, mock_ydl, key):
        mock_class, instance = mock_ydl
        instance.extract_info.return_value = flat_playlist({"id": "a", "title": "A"})

        listing = PlaylistLister()(key)

        assert listing.track_ids == ["a"]
        instance.extract_info.assert_called_once_with(key.playlist_url, download=False)
        options = mock_class.call_args.args[0]
        assert options["extract_flat"] == "in_playlist"
        assert options["skip_download"] is True

    def test_user_options_cannot_disable_flat_listing(self, mock_ydl, key, tmp_path):
        mock_class, instance = mock_ydl
        instance.extract_info.return_value = flat_playlist()

        PlaylistLister(
            cookie_file=tmp_path / "cookies.txt",
            extra_options={"extract_flat": False, "proxy": "http://proxy:3128"}
        ).fetch(key)

        options = mock_class.call_args.args[0]
        assert options["extract_flat"] == "in_playlist"
        assert options["proxy"] == "http://proxy:3128"
        assert options["cookiefile"] == str(tmp_path / "cookies.txt")

    def test_yt_dlp_error(self, mock_ydl, key):
        _, instance = mock_ydl
        instance.extract_info.side_effect = YtDlpDownloadError("ERROR: The playlist does not exist")
        with pytest.raises(ListingError):
            PlaylistLister().fetch(key)

    def test_no_info(self, mock_ydl, key):
        _, instance = mock_ydl
        instance.extract_info.return_value = None
        with pytest.raises(ListingError):
            PlaylistLister().fetch(key)

    def test_not_a_playlist(self, mock_ydl, key):
        _, instance = mock_ydl
        instance.extract_info.return_value = {"_type": "video", "id": "a"}
        with pytest.raises(ListingError):
            PlaylistLister().fetch(key)
