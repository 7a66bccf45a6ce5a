# tests/test_cache.py
"""Test the local playlist cache"""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

from yt_play.core.cache import MANIFEST_FILENAME, CacheManager
from yt_play.core.exceptions import CorruptManifestError, YtPlayError
from yt_play.core.manifest import Manifest
from yt_play.utils import ensure_directory
from yt_play.youtube.resolver import PlaylistKey, SourceType

from conftest import make_manifest


class TestPaths:
    """Test deterministic cache paths"""

    def test_track_path(self, cache, key):
        """Test track path layout"""
        path = cache.track_path(key, "dQw4w9WgXcQ")
        assert path == cache.cache_dir / "youtube-PLtest123" / "tracks" / "dQw4w9WgXcQ.m4a"
        assert cache.track_path(key, "dQw4w9WgXcQ") == path

    def test_audio_format_sets_extension(self, tmp_path, key):
        """Test the extension follows the configured format"""
        manager = CacheManager(tmp_path, audio_format="opus")
        assert manager.track_path(key, "abc").suffix == ".opus"

    def test_initialize_required(self, tmp_path, key):
        """Test load/save refuse to run before initialize()"""
        manager = CacheManager(tmp_path / "c")
        with pytest.raises(RuntimeError):
            manager.load(key)
        assert not (tmp_path / "c").exists()

    def test_initialize_creates_nested_directory(self, tmp_path):
        manager = CacheManager(tmp_path / "a" / "b" / "cache")
        with patch("yt_play.core.cache.ensure_directory", wraps=ensure_directory) as mocked:
            manager.initialize()
        mocked.assert_called_once_with(tmp_path / "a" / "b" / "cache")
        assert (tmp_path / "a" / "b" / "cache").is_dir()

    def test_initialize_failure(self, tmp_path):
        """Test an unusable cache directory raises YtPlayError"""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(YtPlayError):
            CacheManager(blocker / "cache").initialize()


class TestLoadSave:
    """Test manifest persistence"""

    def test_load_missing_returns_empty(self, cache, key):
        """Test a playlist without manifest loads as empty"""
        manifest = cache.load(key)
        assert manifest == Manifest.empty(key)
        assert manifest.is_new

    def test_save_then_load(self, cache, key):
        """Test a saved manifest loads back equal"""
        manifest = make_manifest(cache, key, "a", "b", "c")
        cache.save(key, manifest)
        assert cache.load(key) == manifest
        assert cache.manifest_path(key).exists()

    def test_save_leaves_no_temp_files(self, cache, key):
        """Test the temporary file is renamed away"""
        cache.save(key, make_manifest(cache, key, "a"))
        names = [p.name for p in cache.playlist_dir(key).iterdir() if p.is_file()]
        assert names == [MANIFEST_FILENAME]

    def test_save_wrong_key(self, cache, key):
        """Test a manifest cannot be saved under another key"""
        other = PlaylistKey(SourceType.YOUTUBE_MUSIC, "OLAKother")
        with pytest.raises(ValueError):
            cache.save(other, Manifest.empty(key))

    def test_interrupted_save_keeps_old_manifest(self, cache, key):
        """Test a crash before the rename leaves the previous manifest intact"""
        old = make_manifest(cache, key, "a", "b")
        cache.save(key, old)

        new = make_manifest(cache, key, "a", "b", "c")
        with patch("yt_play.core.cache.os.replace", side_effect=KeyboardInterrupt):
            with pytest.raises(KeyboardInterrupt):
                cache.save(key, new)

        assert cache.load(key) == old
        leftovers = [p.name for p in cache.playlist_dir(key).iterdir() if p.is_file()]
        assert leftovers == [MANIFEST_FILENAME]

    def test_failed_write_raises(self, cache, key):
        """Test OS errors during save become YtPlayError"""
        with patch("yt_play.core.cache.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(YtPlayError):
                cache.save(key, make_manifest(cache, key, "a"))
        assert not cache.manifest_path(key).exists()


class TestCorruptManifest:
    """Test unreadable manifests"""

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"version": 1, "key": "youtube:PLtest123"}',
        '{"version": 7, "key": "youtube:PLtest123", "tracks": []}',
    ])
    def test_corrupt_content(self, cache, key, content):
        """Test broken files raise CorruptManifestError"""
        path = cache.manifest_path(key)
        path.parent.mkdir(parents=True)
        path.write_text(content, encoding="utf-8")
        with pytest.raises(CorruptManifestError):
            cache.load(key)

    def test_key_mismatch(self, cache, key):
        """Test a manifest of another playlist is rejected"""
        other = PlaylistKey(SourceType.YOUTUBE, "PLother")
        path = cache.manifest_path(key)
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps(Manifest.empty(other).to_dict()), encoding="utf-8")
        with pytest.raises(CorruptManifestError):
            cache.load(key)

    def test_quarantine(self, cache, key):
        """Test the corrupt file is renamed aside, not deleted"""
        path = cache.manifest_path(key)
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        moved = cache.quarantine(key)

        assert not path.exists()
        assert moved.read_text(encoding="utf-8") == "{not json"
        assert moved.name.startswith(f"{MANIFEST_FILENAME}.corrupt-")
        assert cache.load(key).is_new


class TestTrackFiles:
    """Test track file helpers"""

    def test_delete_track_file(self, cache, key):
        """Test deletion, including of missing files"""
        manifest = make_manifest(cache, key, "a")
        path = manifest.tracks[0].file_path
        assert cache.delete_track_file(path)
        assert not path.exists()
        assert cache.delete_track_file(path)

    def test_orphaned_files(self, cache, key):
        """Test unreferenced files are reported, hidden ones ignored"""
        manifest = make_manifest(cache, key, "a", "b")
        tracks_dir = cache.tracks_dir(key)
        (tracks_dir / "zzz.m4a").write_bytes(b"x")
        (tracks_dir / ".dl-tmp").mkdir()
        (tracks_dir / ".partial").write_bytes(b"x")

        assert cache.orphaned_files(key, manifest) == [tracks_dir / "zzz.m4a"]

    def test_orphaned_files_no_directory(self, cache, key):
        assert cache.orphaned_files(key, Manifest.empty(key)) == []
