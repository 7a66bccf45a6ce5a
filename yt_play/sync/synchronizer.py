"""
Playlist synchronization for yt-play.

Brings the local cache of one playlist in line with its remote listing.

Modes:
    FIRST_RUN: The playlist has never been synchronized. Every remote entry
               is downloaded and the manifest is created in remote order.
    REFRESH:   The playlist has a manifest. The remote listing is diffed
               against it by track ID:
                 - remote only  -> download, add record
                 - cache only   -> remove record, delete file
                 - both         -> keep record, no download (unless
                                   its file is missing, then download)
               Files in the tracks directory that no record references
               (left behind by interrupted syncs) are deleted.

Both modes share one pipeline; FIRST_RUN is simply a diff against an empty
manifest. Download outcomes are aggregated in a single place after the
whole batch finished, then the manifest is saved once. If the listing
fails, nothing is written.

Usage:
    synchronizer = PlaylistSynchronizer(cache, lister, downloader)
    result = synchronizer.sync(key, cache.load(key))
    for outcome in result.failed:
        ...
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from yt_play.core.cache import CacheManager
from yt_play.core.logger import get_logger
from yt_play.core.manifest import Manifest, TrackRecord, now_iso
from yt_play.download.downloader import DownloadOutcome, Downloader
from yt_play.youtube.models import RemoteEntry, RemoteListing
from yt_play.youtube.resolver import PlaylistKey

logger = get_logger(__name__)


class SyncMode(Enum):
    FIRST_RUN = "first_run"
    REFRESH = "refresh"


@dataclass(frozen=True)
class SyncPlan:
    """
    Diff between a manifest and a remote listing.

    Attributes:
        to_download: Remote entries with no record or whose file is missing,
                     in remote order.
        to_remove: Records whose track is no longer listed remotely.
        kept: Track IDs present on both sides with their file on disk.
    """
    to_download: tuple[RemoteEntry, ...]
    to_remove: tuple[TrackRecord, ...]
    kept: tuple[str, ...]

    @property
    def is_noop(self) -> bool:
        return not self.to_download and not self.to_remove


def plan_sync(manifest: Manifest, listing: RemoteListing) -> SyncPlan:
    """
    Compute which entries to download and which records to drop.

    A listed entry whose record points at a file that no longer exists is
    downloaded again instead of being kept.
    """
    remote_ids = set(listing.track_ids)
    present_ids = {
        t.track_id for t in manifest.tracks
        if Path(t.file_path).is_file()
    }

    return SyncPlan(
        to_download=tuple(e for e in listing.entries if e.track_id not in present_ids),
        to_remove=tuple(t for t in manifest.tracks if t.track_id not in remote_ids),
        kept=tuple(e.track_id for e in listing.entries if e.track_id in present_ids),
    )


@dataclass
class SyncResult:
    """
    Outcome of one synchronization.

    Attributes:
        mode: FIRST_RUN or REFRESH.
        manifest: The manifest that was saved.
        added: Track IDs that now have a record and were not cached before.
        removed: Track IDs whose record was dropped.
        kept: Track IDs that were already cached and are still listed.
        failed: Outcomes of downloads that failed after all retries.
        orphans_removed: Number of unreferenced files deleted.
    """
    mode: SyncMode
    manifest: Manifest
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    failed: list[DownloadOutcome] = field(default_factory=list)
    orphans_removed: int = 0

    @property
    def summary(self) -> str:
        parts = [f"{len(self.manifest.tracks)} tracks cached"]
        if self.added:
            parts.append(f"{len(self.added)} added")
        if self.removed:
            parts.append(f"{len(self.removed)} removed")
        if self.failed:
            parts.append(f"{len(self.failed)} failed")
        return ", ".join(parts)


class PlaylistSynchronizer:
    """
    Orchestrates listing, downloading and manifest reconciliation.

    Attributes:
        _cache: CacheManager used for paths, file removal and the final save.
        _fetch_listing: Callable returning the RemoteListing of a key
                        (normally a PlaylistLister). Raises ListingError.
        _downloader: Downloader used for the entries to add.
    """

    def __init__(
        self,
        cache: CacheManager,
        fetch_listing: Callable[[PlaylistKey], RemoteListing],
        downloader: Downloader
    ) -> None:
        self._cache = cache
        self._fetch_listing = fetch_listing
        self._downloader = downloader

    def sync(self, key: PlaylistKey, manifest: Manifest) -> SyncResult:
        """
        Synchronize one playlist and save its manifest.

        Args:
            key: Playlist to synchronize.
            manifest: Current manifest (Manifest.empty(key) on first run).

        Returns:
            SyncResult with the saved manifest.

        Raises:
            ListingError: If the remote listing cannot be fetched. The stored
                          manifest is left untouched.
            KeyboardInterrupt: If interrupted during downloads. The stored
                               manifest is left untouched; completed files stay
                               on disk and are adopted by the next sync.
        """
        mode = SyncMode.FIRST_RUN if manifest.is_new else SyncMode.REFRESH
        logger.info(f"Fetching playlist {key}")

        listing = self._fetch_listing(key)
        logger.info(f"Playlist '{listing.title or key}': {len(listing.entries)} tracks")

        plan = plan_sync(manifest, listing)
        if mode == SyncMode.REFRESH:
            logger.info(
                f"Refresh: {len(plan.to_download)} to download, "
                f"{len(plan.to_remove)} removed, {len(plan.kept)} unchanged"
            )

        outcomes = self._downloader.download_entries(key, plan.to_download)

        # Single aggregation point: nothing below runs if downloads were interrupted
        downloaded = {o.entry.track_id: o for o in outcomes if o.ok}
        failed = [o for o in outcomes if not o.ok]

        new_manifest = self._build_manifest(key, listing, manifest, downloaded)

        # Files are only deleted once the manifest no longer references them
        self._cache.save(key, new_manifest)

        for record in plan.to_remove:
            logger.info(f"Removed from playlist: {record.title}")
            self._cache.delete_track_file(Path(record.file_path))

        orphans_removed = self._remove_orphans(key, new_manifest)

        cached_ids = set(manifest.track_ids)
        result = SyncResult(
            mode=mode,
            manifest=new_manifest,
            added=[tid for tid in new_manifest.track_ids if tid in downloaded and tid not in cached_ids],
            removed=[record.track_id for record in plan.to_remove],
            kept=list(plan.kept),
            failed=failed,
            orphans_removed=orphans_removed
        )

        self._log_summary(result)
        return result

    def _build_manifest(
        self,
        key: PlaylistKey,
        listing: RemoteListing,
        manifest: Manifest,
        downloaded: dict[str, DownloadOutcome]
    ) -> Manifest:
        """
        Build the new manifest in remote order.

        Kept records keep their file and download time; only the position
        hint changes. Failed downloads get no record, and neither does a
        record whose file went missing and could not be downloaded again.
        """
        timestamp = now_iso()
        tracks: list[TrackRecord] = []

        for entry in listing.entries:
            existing = manifest.get(entry.track_id)
            position = len(tracks)

            if entry.track_id in downloaded:
                tracks.append(TrackRecord(
                    track_id=entry.track_id,
                    title=entry.title,
                    file_path=downloaded[entry.track_id].file_path,
                    downloaded_at=timestamp,
                    position=position
                ))
            elif existing is not None and Path(existing.file_path).is_file():
                tracks.append(TrackRecord(
                    track_id=existing.track_id,
                    title=existing.title,
                    file_path=existing.file_path,
                    downloaded_at=existing.downloaded_at,
                    position=position
                ))

        return Manifest(
            key=key,
            title=listing.title or manifest.title,
            tracks=tuple(tracks),
            last_synced=timestamp
        )

    def _remove_orphans(self, key: PlaylistKey, manifest: Manifest) -> int:
        removed = 0
        for path in self._cache.orphaned_files(key, manifest):
            logger.debug(f"Removing unreferenced file: {path.name}")
            if self._cache.delete_track_file(path):
                removed += 1
        if removed:
            logger.info(f"Removed {removed} unreferenced files")
        return removed

    def _log_summary(self, result: SyncResult) -> None:
        logger.info(f"Sync complete: {result.summary}")
        if result.failed:
            logger.warning(f"{len(result.failed)} tracks could not be downloaded:")
            for outcome in result.failed:
                logger.warning(f"  - {outcome.entry.title}: {outcome.error}")
