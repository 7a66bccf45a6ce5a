"""
Local playlist cache for yt-play.

Layout:
    cache_dir/
    ├── logs/
    ├── youtube-PLxxxx/
    │   ├── manifest.json
    │   └── tracks/
    │       ├── dQw4w9WgXcQ.m4a
    │       └── 9bZkp7q19f0.m4a
    └── youtube_music-OLAKxxxx/
        ├── manifest.json
        └── tracks/

Writes are atomic: a manifest is written to a temporary file in the same
directory, fsynced, then renamed over manifest.json with os.replace(). A
crash at any point leaves either the old or the new manifest on disk,
never a mix.

Usage:
    cache = CacheManager(config.cache.directory, audio_format="m4a")
    cache.initialize()

    manifest = cache.load(key)
    ...
    cache.save(key, new_manifest)
"""

import json
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

from yt_play.core.exceptions import CorruptManifestError, YtPlayError
from yt_play.core.logger import get_logger
from yt_play.core.manifest import Manifest
from yt_play.utils import ensure_directory
from yt_play.youtube.resolver import PlaylistKey

logger = get_logger(__name__)


MANIFEST_FILENAME = "manifest.json"
TRACKS_DIRNAME = "tracks"
LOGS_DIRNAME = "logs"


class CacheManager:
    """
    Loads and saves per-playlist manifests and maps tracks to file paths.

    The cache directory is explicit configuration: nothing touches the disk
    until initialize() is called.

    Attributes:
        cache_dir: Root of the cache.
        audio_format: Extension of downloaded audio files.

    Thread Safety:
        save() is serialized with a lock. The synchronizer is still the only
        writer; the lock only keeps two saves from racing on the temp file.
    """

    def __init__(self, cache_dir: Path, audio_format: str = "m4a") -> None:
        self.cache_dir = cache_dir
        self.audio_format = audio_format
        self._lock = threading.Lock()
        self._initialized = False

    def initialize(self) -> None:
        """
        Create the cache directory.

        Raises:
            YtPlayError: If the directory cannot be created.
        """
        try:
            ensure_directory(self.cache_dir)
        except OSError as e:
            raise YtPlayError(
                f"Failed to create cache directory at {self.cache_dir}: {e}",
                details={"path": str(self.cache_dir), "original_error": str(e)}
            ) from e
        self._initialized = True
        logger.debug(f"Using cache directory: {self.cache_dir}")

    @property
    def logs_dir(self) -> Path:
        return self.cache_dir / LOGS_DIRNAME

    def playlist_dir(self, key: PlaylistKey) -> Path:
        return self.cache_dir / key.dirname

    def tracks_dir(self, key: PlaylistKey) -> Path:
        return self.playlist_dir(key) / TRACKS_DIRNAME

    def manifest_path(self, key: PlaylistKey) -> Path:
        return self.playlist_dir(key) / MANIFEST_FILENAME

    def track_path(self, key: PlaylistKey, track_id: str) -> Path:
        """
        Deterministic local file location of a track.

        Used both as the download target and by playback.

        Example:
            cache.track_path(key, "dQw4w9WgXcQ")
            # <cache_dir>/youtube-PLxxxx/tracks/dQw4w9WgXcQ.m4a
        """
        return self.tracks_dir(key) / f"{track_id}.{self.audio_format}"

    def load(self, key: PlaylistKey) -> Manifest:
        """
        Load the manifest of a playlist.

        Returns:
            The stored manifest, or Manifest.empty(key) if none exists yet.

        Raises:
            CorruptManifestError: If the file exists but cannot be read,
                                  parsed, or belongs to another playlist.
        """
        self._check_initialized()
        path = self.manifest_path(key)

        if not path.exists():
            logger.debug(f"No manifest for {key}, starting empty")
            return Manifest.empty(key)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            manifest = Manifest.from_dict(data)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptManifestError(
                f"Cannot read manifest for {key}: {e}",
                details={"path": str(path), "original_error": str(e)}
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptManifestError(
                f"Invalid manifest for {key}: {e}",
                details={"path": str(path), "original_error": str(e)}
            ) from e

        if manifest.key != key:
            raise CorruptManifestError(
                f"Manifest at {path} belongs to {manifest.key}, expected {key}",
                details={"path": str(path), "found": str(manifest.key)}
            )

        logger.debug(f"Loaded manifest for {key}: {len(manifest.tracks)} tracks")
        return manifest

    def save(self, key: PlaylistKey, manifest: Manifest) -> None:
        """
        Atomically persist a manifest.

        Raises:
            YtPlayError: If the manifest cannot be written. The previous
                         manifest (if any) is left in place.
        """
        self._check_initialized()
        if manifest.key != key:
            raise ValueError(f"Manifest for {manifest.key} saved under {key}")

        path = self.manifest_path(key)
        payload = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False)

        with self._lock:
            ensure_directory(path.parent)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{MANIFEST_FILENAME}.", suffix=".tmp", dir=path.parent
            )
            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                raise YtPlayError(
                    f"Failed to save manifest for {key}: {e}",
                    details={"path": str(path), "original_error": str(e)}
                ) from e
            except BaseException:
                # KeyboardInterrupt mid-write: drop the temp file, keep the old manifest
                tmp_path.unlink(missing_ok=True)
                raise

            self._fsync_directory(path.parent)

        logger.debug(f"Saved manifest for {key}: {len(manifest.tracks)} tracks")

    def quarantine(self, key: PlaylistKey) -> Path:
        """
        Move an unreadable manifest aside so the playlist can be rebuilt.

        Returns:
            New path of the quarantined file.

        Raises:
            YtPlayError: If the file cannot be renamed.
        """
        self._check_initialized()
        path = self.manifest_path(key)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = path.with_name(f"{MANIFEST_FILENAME}.corrupt-{stamp}")

        try:
            os.replace(path, target)
        except OSError as e:
            raise YtPlayError(
                f"Failed to move corrupt manifest aside: {e}",
                details={"path": str(path), "original_error": str(e)}
            ) from e

        logger.warning(f"Corrupt manifest moved to {target}")
        return target

    def delete_track_file(self, path: Path) -> bool:
        """
        Best-effort removal of a track file. Failures are logged, not raised.

        Returns:
            True if the file is gone afterwards.
        """
        try:
            path.unlink(missing_ok=True)
            logger.debug(f"Deleted {path}")
            return True
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")
            return False

    def orphaned_files(self, key: PlaylistKey, manifest: Manifest) -> list[Path]:
        """
        Files in the tracks directory that no record of the manifest references.

        These come from interrupted syncs or a changed audio format.
        Hidden files (in-progress downloads) are ignored.
        """
        tracks_dir = self.tracks_dir(key)
        if not tracks_dir.is_dir():
            return []

        referenced = {Path(track.file_path).name for track in manifest.tracks}
        return sorted(
            entry for entry in tracks_dir.iterdir()
            if entry.is_file()
            and not entry.name.startswith(".")
            and entry.name not in referenced
        )

    def _check_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("CacheManager.initialize() must be called first")

    @staticmethod
    def _fsync_directory(directory: Path) -> None:
        # Makes the rename itself durable; not supported on every platform
        try:
            fd = os.open(directory, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(fd)
        except OSError:
            pass
        finally:
            os.close(fd)
