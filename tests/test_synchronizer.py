# tests/test_synchronizer.py
"""Test playlist synchronization"""

import pytest
from unittest.mock import Mock, patch

from yt_play.core.exceptions import ListingError, YtPlayError
from yt_play.core.manifest import Manifest
from yt_play.sync.synchronizer import PlaylistSynchronizer, SyncMode, plan_sync

from conftest import FakeDownloader, FakeLister, make_listing, make_manifest


def synchronizer_for(cache, listing, downloader):
    return PlaylistSynchronizer(cache, FakeLister(listing), downloader)


class TestPlanSync:
    """Test the manifest/listing diff"""

    def test_diff(self, cache, key):
        """Test cached {A,B,C} against remote {B,C,D}"""
        manifest = make_manifest(cache, key, "A", "B", "C")
        plan = plan_sync(manifest, make_listing("B", "C", "D"))

        assert [e.track_id for e in plan.to_download] == ["D"]
        assert [t.track_id for t in plan.to_remove] == ["A"]
        assert plan.kept == ("B", "C")
        assert not plan.is_noop

    def test_first_run_downloads_everything(self, key):
        plan = plan_sync(Manifest.empty(key), make_listing("A", "B"))
        assert [e.track_id for e in plan.to_download] == ["A", "B"]
        assert plan.to_remove == ()

    def test_no_change(self, cache, key):
        manifest = make_manifest(cache, key, "A", "B")
        assert plan_sync(manifest, make_listing("B", "A")).is_noop

    def test_missing_file_is_downloaded_again(self, cache, key):
        """Test a record whose file was deleted is not counted as kept"""
        manifest = make_manifest(cache, key, "A", "B")
        manifest.get("A").file_path.unlink()

        plan = plan_sync(manifest, make_listing("A", "B"))

        assert [e.track_id for e in plan.to_download] == ["A"]
        assert plan.to_remove == ()
        assert plan.kept == ("B",)


class TestFirstRun:
    """Test synchronization of a never-cached playlist"""

    def test_downloads_all_in_remote_order(self, cache, key, fake_downloader):
        """Test every item is downloaded and recorded in remote order"""
        synchronizer = synchronizer_for(cache, make_listing("A", "B", "C"), fake_downloader)

        result = synchronizer.sync(key, Manifest.empty(key))

        assert result.mode == SyncMode.FIRST_RUN
        assert result.manifest.track_ids == ["A", "B", "C"]
        assert [t.position for t in result.manifest.tracks] == [0, 1, 2]
        assert result.manifest.title == "Test Playlist"
        assert not result.manifest.is_new
        assert all(t.file_path.exists() for t in result.manifest.tracks)
        assert result.added == ["A", "B", "C"]
        assert fake_downloader.requested == ["A", "B", "C"]

    def test_manifest_saved(self, cache, key, fake_downloader):
        """Test the result is persisted"""
        result = synchronizer_for(cache, make_listing("A", "B"), fake_downloader).sync(key, Manifest.empty(key))
        assert cache.load(key) == result.manifest

    def test_empty_playlist(self, cache, key, fake_downloader):
        """Test an empty remote playlist still produces a synced manifest"""
        result = synchronizer_for(cache, make_listing(), fake_downloader).sync(key, Manifest.empty(key))
        assert result.manifest.tracks == ()
        assert not cache.load(key).is_new


class TestRefresh:
    """Test synchronization of a cached playlist"""

    def test_addition_and_removal(self, cache, key):
        """Test cached {A,B,C}, remote {B,C,D}: A removed, D added, B and C untouched"""
        manifest = make_manifest(cache, key, "A", "B", "C")
        cache.save(key, manifest)
        removed_file = manifest.get("A").file_path
        downloader = FakeDownloader(cache)

        result = synchronizer_for(cache, make_listing("B", "C", "D"), downloader).sync(key, manifest)

        assert result.mode == SyncMode.REFRESH
        assert result.manifest.track_ids == ["B", "C", "D"]
        assert result.added == ["D"]
        assert result.removed == ["A"]
        assert result.kept == ["B", "C"]
        assert downloader.requested == ["D"]
        assert not removed_file.exists()
        assert result.manifest.get("B").downloaded_at == manifest.get("B").downloaded_at
        assert result.manifest.get("B").file_path == manifest.get("B").file_path
        assert cache.load(key) == result.manifest

    def test_refresh_twice_is_idempotent(self, cache, key):
        """Test a second refresh without remote changes changes nothing"""
        listing = make_listing("A", "B", "C")
        downloader = FakeDownloader(cache)
        synchronizer = synchronizer_for(cache, listing, downloader)

        first = synchronizer.sync(key, Manifest.empty(key))
        second = synchronizer.sync(key, first.manifest)

        assert second.manifest.tracks == first.manifest.tracks
        assert second.manifest.title == first.manifest.title
        assert second.added == []
        assert second.removed == []
        assert downloader.requested == ["A", "B", "C"]

    def test_reorder_updates_positions(self, cache, key):
        """Test kept records follow the new remote order"""
        manifest = make_manifest(cache, key, "A", "B", "C")
        result = synchronizer_for(cache, make_listing("C", "A", "B"), FakeDownloader(cache)).sync(key, manifest)

        assert result.manifest.track_ids == ["C", "A", "B"]
        assert [t.position for t in result.manifest.tracks] == [0, 1, 2]

    def test_missing_file_restored(self, cache, key):
        """Test a cached track whose file was deleted is downloaded again"""
        manifest = make_manifest(cache, key, "A", "B")
        cache.save(key, manifest)
        missing = manifest.get("A").file_path
        missing.unlink()
        downloader = FakeDownloader(cache)

        result = synchronizer_for(cache, make_listing("A", "B"), downloader).sync(key, manifest)

        assert downloader.requested == ["A"]
        assert missing.exists()
        assert result.manifest.track_ids == ["A", "B"]
        assert result.added == []
        assert result.kept == ["B"]
        assert cache.load(key).track_ids == ["A", "B"]

    def test_missing_file_dropped_when_download_fails(self, cache, key):
        """Test a record is not kept pointing at a file that is still missing"""
        manifest = make_manifest(cache, key, "A", "B")
        manifest.get("A").file_path.unlink()
        downloader = FakeDownloader(cache, fail_ids={"A"})

        result = synchronizer_for(cache, make_listing("A", "B"), downloader).sync(key, manifest)

        assert result.manifest.track_ids == ["B"]
        assert [o.entry.track_id for o in result.failed] == ["A"]
        assert all(t.file_path.exists() for t in result.manifest.tracks)

    def test_orphan_files_removed(self, cache, key, fake_downloader):
        """Test unreferenced files in the tracks directory are deleted"""
        manifest = make_manifest(cache, key, "A")
        orphan = cache.tracks_dir(key) / "leftover.m4a"
        orphan.write_bytes(b"x")

        result = synchronizer_for(cache, make_listing("A"), fake_downloader).sync(key, manifest)

        assert not orphan.exists()
        assert result.orphans_removed == 1
        assert manifest.get("A").file_path.exists()


class TestFailures:
    """Test failure handling"""

    def test_download_failure_isolated(self, cache, key):
        """Test a failed item is skipped and reported, the rest are kept"""
        downloader = FakeDownloader(cache, fail_ids={"B"})
        result = synchronizer_for(cache, make_listing("A", "B", "C"), downloader).sync(key, Manifest.empty(key))

        assert result.manifest.track_ids == ["A", "C"]
        assert [o.entry.track_id for o in result.failed] == ["B"]
        assert result.failed[0].error == "Video unavailable"
        assert "1 failed" in result.summary

    def test_failed_item_retried_on_next_refresh(self, cache, key):
        """Test an item without record is downloaded again next time"""
        listing = make_listing("A", "B")
        first = synchronizer_for(cache, listing, FakeDownloader(cache, fail_ids={"B"})).sync(key, Manifest.empty(key))

        downloader = FakeDownloader(cache)
        second = synchronizer_for(cache, listing, downloader).sync(key, first.manifest)

        assert downloader.requested == ["B"]
        assert second.manifest.track_ids == ["A", "B"]

    def test_listing_failure_leaves_manifest_untouched(self, cache, key):
        """Test a listing error is fatal and nothing is written"""
        manifest = make_manifest(cache, key, "A", "B")
        cache.save(key, manifest)
        before = cache.manifest_path(key).read_bytes()

        lister = Mock(side_effect=ListingError("boom"))
        downloader = Mock()
        synchronizer = PlaylistSynchronizer(cache, lister, downloader)

        with pytest.raises(ListingError):
            synchronizer.sync(key, manifest)

        downloader.download_entries.assert_not_called()
        assert cache.manifest_path(key).read_bytes() == before
        assert all(t.file_path.exists() for t in manifest.tracks)

    def test_failed_save_keeps_removed_files(self, cache, key):
        """Test no file is deleted when the new manifest cannot be saved"""
        manifest = make_manifest(cache, key, "A", "B", "C")
        cache.save(key, manifest)
        orphan = cache.tracks_dir(key) / "leftover.m4a"
        orphan.write_bytes(b"x")
        synchronizer = synchronizer_for(cache, make_listing("B", "C"), FakeDownloader(cache))

        with patch.object(cache, "save", side_effect=YtPlayError("disk full")):
            with pytest.raises(YtPlayError):
                synchronizer.sync(key, manifest)

        assert manifest.get("A").file_path.exists()
        assert orphan.exists()
        assert cache.load(key).track_ids == ["A", "B", "C"]

    def test_interrupted_downloads_do_not_save(self, cache, key):
        """Test an interrupt during downloads leaves the manifest as it was"""
        manifest = make_manifest(cache, key, "A")
        cache.save(key, manifest)

        downloader = Mock()
        downloader.download_entries.side_effect = KeyboardInterrupt
        synchronizer = synchronizer_for(cache, make_listing("B"), downloader)

        with pytest.raises(KeyboardInterrupt):
            synchronizer.sync(key, manifest)

        assert cache.load(key) == manifest
        assert manifest.get("A").file_path.exists()
