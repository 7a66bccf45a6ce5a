"""
Audio downloader for yt-play.

Downloads playlist items with yt-dlp into their cache track path.

Workflow per track:
    1. If a file already exists at the track path, adopt it (no download)
    2. Download the best audio stream into a hidden temp directory
       inside the tracks directory (same filesystem as the target)
    3. Convert to the configured audio format with FFmpeg (yt-dlp postprocessor)
    4. Move the result to its track path with os.replace()
    5. Clean up the temp directory

Concurrency:
    Tracks are downloaded by a bounded ThreadPoolExecutor. Workers never
    touch the manifest: each returns a DownloadOutcome, and the caller
    applies all outcomes once the whole batch is done.

Retries:
    Each track gets a bounded number of attempts. Errors are classified
    from yt-dlp's message; unavailable videos fail immediately, transient
    errors are retried with exponential backoff and jitter.

Cancellation:
    cancel() sets an event that a yt-dlp progress hook checks on every
    progress update, raising yt_dlp.utils.DownloadCancelled inside the
    worker. A KeyboardInterrupt while waiting for a batch cancels all
    in-flight and pending downloads before it propagates.

Usage:
    downloader = Downloader(cache, cookie_file=None, num_threads=4)
    outcomes = downloader.download_entries(key, listing.entries)
    failed = [o for o in outcomes if not o.ok]
"""

import os
import random
import shutil
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any, Callable

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadCancelled

from yt_play.core.cache import CacheManager
from yt_play.core.exceptions import DownloadError
from yt_play.core.logger import get_logger, log_download_failure
from yt_play.core.progress import DownloadProgressBar
from yt_play.utils import YtDlpLogger, ensure_directory
from yt_play.youtube.models import RemoteEntry
from yt_play.youtube.resolver import PlaylistKey

logger = get_logger(__name__)


# =============================================================================
# Retry Configuration
# =============================================================================

DEFAULT_ATTEMPTS = 3
BASE_DELAY = 1.5  # seconds
RATE_LIMIT_DELAY = 10.0  # seconds
MAX_DELAY = 30.0  # seconds
JITTER_FACTOR = 0.3


class ErrorType(Enum):
    """Classification of yt-dlp errors for the retry strategy."""
    RATE_LIMITED = auto()       # 429 - retry with a long delay
    FORBIDDEN = auto()          # 403 / no data - retry with backoff
    NETWORK_ERROR = auto()      # Connection issues - retry with backoff
    AGE_RESTRICTED = auto()     # Requires sign-in - no retry
    VIDEO_UNAVAILABLE = auto()  # Removed/private - no retry
    EMPTY_FILE = auto()         # Conversion produced nothing - retry
    UNKNOWN = auto()            # Anything else - retry with backoff


def classify_error(error_message: str) -> ErrorType:
    """
    Classify a yt-dlp error message.

    Rate limiting is checked first: YouTube's rate-limit page also says
    "video unavailable".
    """
    msg = error_message.lower()

    if any(x in msg for x in ("rate-limited", "rate limit", "429", "too many requests")):
        return ErrorType.RATE_LIMITED

    if "403" in msg or "forbidden" in msg or "did not get any data" in msg:
        return ErrorType.FORBIDDEN

    if "sign in to confirm your age" in msg or "age-restricted" in msg or "age restricted" in msg:
        return ErrorType.AGE_RESTRICTED

    if any(x in msg for x in ("connection", "timed out", "timeout", "network", "urlopen error")):
        return ErrorType.NETWORK_ERROR

    if any(x in msg for x in (
        "video unavailable", "private video", "has been removed", "been terminated",
        "not available in your country", "this video is no longer available",
    )):
        return ErrorType.VIDEO_UNAVAILABLE

    if "file is empty" in msg or "empty file" in msg:
        return ErrorType.EMPTY_FILE

    return ErrorType.UNKNOWN


def calculate_backoff(attempt: int, base_delay: float = BASE_DELAY) -> float:
    """
    Exponential backoff with jitter.

    Args:
        attempt: Attempt number that just failed (0-indexed).
        base_delay: Delay after the first failure, in seconds.

    Returns:
        Delay in seconds, at least 0.5.
    """
    delay = min(base_delay * (2 ** attempt), MAX_DELAY)
    jitter = delay * JITTER_FACTOR * (2 * random.random() - 1)
    return max(0.5, delay + jitter)


def retry_delay(error_type: ErrorType, attempt: int) -> float | None:
    """
    Delay before the next attempt, or None if the error is not worth retrying.
    """
    if error_type in (ErrorType.VIDEO_UNAVAILABLE, ErrorType.AGE_RESTRICTED):
        return None
    if error_type == ErrorType.RATE_LIMITED:
        return calculate_backoff(attempt, base_delay=RATE_LIMIT_DELAY)
    return calculate_backoff(attempt)


@dataclass(frozen=True)
class DownloadOutcome:
    """
    Result of downloading one playlist entry.

    Attributes:
        entry: The remote entry this outcome is for.
        file_path: Track path of the audio file, or None on failure.
        error: Final error message on failure.
        adopted: True if the file was already on disk and nothing was downloaded.
        attempts: Number of yt-dlp attempts made.
    """
    entry: RemoteEntry
    file_path: Path | None
    error: str | None = None
    adopted: bool = False
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.file_path is not None


class Downloader:
    """
    Downloads playlist entries into their cache track paths.

    Attributes:
        _cache: CacheManager providing track paths.
        _cookie_file: Optional cookies.txt for yt-dlp.
        _num_threads: Number of parallel downloads.
        _max_attempts: Total yt-dlp attempts per track.
        _extra_options: YoutubeDL params from --yt-dlp-arguments.
        _show_progress: Whether to render the progress bar.

    Thread Safety:
        download_entry() is thread-safe; each call works in its own temp directory.
    """

    def __init__(
        self,
        cache: CacheManager,
        cookie_file: Path | None = None,
        num_threads: int = 4,
        max_attempts: int = DEFAULT_ATTEMPTS,
        extra_options: dict[str, Any] | None = None,
        show_progress: bool = True,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        self._cache = cache
        self._cookie_file = cookie_file
        self._num_threads = max(1, num_threads)
        self._max_attempts = max(1, max_attempts)
        self._extra_options = dict(extra_options or {})
        self._show_progress = show_progress
        self._sleep = sleep
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Abort in-flight downloads and skip pending ones."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def download_entries(
        self,
        key: PlaylistKey,
        entries: list[RemoteEntry] | tuple[RemoteEntry, ...]
    ) -> list[DownloadOutcome]:
        """
        Download several entries in parallel.

        Args:
            key: Playlist the entries belong to.
            entries: Entries to download.

        Returns:
            One DownloadOutcome per entry, in the same order as entries.

        Raises:
            KeyboardInterrupt: Re-raised after all workers have been cancelled.
        """
        if not entries:
            return []

        ensure_directory(self._cache.tracks_dir(key))
        threads = min(self._num_threads, len(entries))
        logger.info(f"Downloading {len(entries)} tracks with {threads} threads")

        results: dict[str, DownloadOutcome] = {}

        with DownloadProgressBar(total=len(entries), disable=not self._show_progress) as progress:
            executor = ThreadPoolExecutor(max_workers=threads, thread_name_prefix="yt-play-dl")
            try:
                future_to_entry = {
                    executor.submit(self.download_entry, key, entry): entry
                    for entry in entries
                }
                for future in as_completed(future_to_entry):
                    entry = future_to_entry[future]
                    try:
                        outcome = future.result()
                    except Exception as e:
                        logger.error(f"Unexpected error downloading {entry.title}: {e}")
                        outcome = DownloadOutcome(entry=entry, file_path=None, error=str(e))
                    results[entry.track_id] = outcome
                    progress.update(success=outcome.ok, adopted=outcome.adopted)
            except BaseException:
                self.cancel()
                executor.shutdown(wait=True, cancel_futures=True)
                raise
            executor.shutdown(wait=True)

        return [results[entry.track_id] for entry in entries]

    def download_entry(self, key: PlaylistKey, entry: RemoteEntry) -> DownloadOutcome:
        """
        Download a single entry to its track path.

        Never raises for download problems: failures are logged to the
        download failures report and returned as a failed outcome.
        """
        target = self._cache.track_path(key, entry.track_id)
        url = key.watch_url(entry.track_id)

        if target.exists() and target.stat().st_size > 0:
            logger.debug(f"Already on disk: {entry.title} -> {target.name}")
            return DownloadOutcome(entry=entry, file_path=target, adopted=True)

        if self.cancelled:
            return DownloadOutcome(entry=entry, file_path=None, error="Cancelled")

        logger.debug(f"Downloading: {entry.title} ({url})")
        ensure_directory(target.parent)
        temp_dir = Path(tempfile.mkdtemp(prefix=f".dl-{entry.track_id}-", dir=target.parent))

        try:
            downloaded, attempts = self._download_audio(url, temp_dir)
            os.replace(downloaded, target)
            logger.debug(f"Downloaded: {entry.title} -> {target.name}")
            return DownloadOutcome(entry=entry, file_path=target, attempts=attempts)

        except DownloadCancelled:
            logger.debug(f"Cancelled: {entry.title}")
            return DownloadOutcome(entry=entry, file_path=None, error="Cancelled")

        except DownloadError as e:
            if not self.cancelled:
                log_download_failure(
                    logger,
                    track_id=entry.track_id,
                    title=entry.title,
                    url=url,
                    error_message=e.message,
                    position=entry.position
                )
            return DownloadOutcome(
                entry=entry,
                file_path=None,
                error=e.message,
                attempts=e.details.get("attempts", 0)
            )

        except OSError as e:
            log_download_failure(
                logger,
                track_id=entry.track_id,
                title=entry.title,
                url=url,
                error_message=f"Could not store file: {e}",
                position=entry.position
            )
            return DownloadOutcome(entry=entry, file_path=None, error=str(e))

        finally:
            self._cleanup_temp_dir(temp_dir)

    def _download_audio(self, url: str, temp_dir: Path) -> tuple[Path, int]:
        """
        Download with retries.

        Returns:
            (path of the converted audio file inside temp_dir, attempts made)

        Raises:
            DownloadError: When attempts are exhausted or the error is permanent.
            DownloadCancelled: When cancel() was called.
        """
        last_error = "unknown error"

        for attempt in range(self._max_attempts):
            if self.cancelled:
                raise DownloadCancelled("Interrupted by user")

            is_last_attempt = attempt == self._max_attempts - 1
            yt_logger = YtDlpLogger(show_errors=False)

            try:
                return self._download_once(url, temp_dir, yt_logger), attempt + 1
            except DownloadCancelled:
                raise
            except Exception as e:
                error_msg = str(e)
                if yt_logger.last_error and yt_logger.last_error not in error_msg:
                    error_msg = f"{error_msg} | {yt_logger.last_error}"
                last_error = error_msg

                if self.cancelled:
                    raise DownloadCancelled("Interrupted by user") from e

                error_type = classify_error(error_msg)
                delay = retry_delay(error_type, attempt)

                if delay is None:
                    raise DownloadError(
                        f"yt-dlp error: {error_msg}",
                        details={"url": url, "attempts": attempt + 1, "error_type": error_type.name}
                    ) from e

                if not is_last_attempt:
                    logger.debug(
                        f"Retry {attempt + 1}/{self._max_attempts - 1} for {url} "
                        f"after {delay:.1f}s ({error_type.name})"
                    )
                    self._cleanup_partial_downloads(temp_dir)
                    self._sleep(delay)

        raise DownloadError(
            f"yt-dlp error after {self._max_attempts} attempts: {last_error}",
            details={"url": url, "attempts": self._max_attempts}
        )

    def _download_once(self, url: str, temp_dir: Path, yt_logger: YtDlpLogger) -> Path:
        """One yt-dlp download + conversion. Returns the converted file."""
        with YoutubeDL(self._get_yt_dlp_options(temp_dir, yt_logger)) as ydl:
            info = ydl.extract_info(url, download=True)

        if info is None:
            raise DownloadError("yt-dlp returned no info", details={"url": url})

        return self._find_downloaded_file(temp_dir, info.get("id") or "")

    def _progress_hook(self, status: dict[str, Any]) -> None:
        if self._cancel.is_set():
            raise DownloadCancelled("Interrupted by user")

    def _find_downloaded_file(self, temp_dir: Path, video_id: str) -> Path:
        audio_format = self._cache.audio_format
        expected = temp_dir / f"{video_id}.{audio_format}"
        if expected.exists():
            candidate = expected
        else:
            matches = sorted(temp_dir.glob(f"*.{audio_format}"))
            if not matches:
                raise DownloadError(
                    f"Downloaded file not found in {temp_dir}",
                    details={"path": str(temp_dir)}
                )
            candidate = matches[0]

        if candidate.stat().st_size == 0:
            raise DownloadError("Downloaded file is empty", details={"path": str(candidate)})

        return candidate

    def _get_yt_dlp_options(self, temp_dir: Path, yt_logger: YtDlpLogger) -> dict[str, Any]:
        """
        Build the YoutubeDL params for one attempt.

        User-supplied options are applied over the defaults, except for the
        output template, the audio extraction step and the hooks, which the
        cache layout depends on.
        """
        extract_audio = {
            "key": "FFmpegExtractAudio",
            "preferredcodec": self._cache.audio_format,
            "preferredquality": "0",  # Best quality
        }

        options: dict[str, Any] = {
            "format": "bestaudio/best",
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "encoding": "UTF-8",
            # yt-dlp internal retries for HTTP and fragments
            "retries": 3,
            "fragment_retries": 3,
            "keepvideo": False,
            "overwrites": True,
        }

        if self._cookie_file is not None:
            options["cookiefile"] = str(self._cookie_file)

        options.update(self._extra_options)

        user_postprocessors = [
            pp for pp in self._extra_options.get("postprocessors", [])
            if pp.get("key") != "FFmpegExtractAudio"
        ]
        options["postprocessors"] = [extract_audio, *user_postprocessors]
        options["outtmpl"] = {"default": str(temp_dir / "%(id)s.%(ext)s")}
        options["paths"] = {}
        options["progress_hooks"] = [
            *self._extra_options.get("progress_hooks", []),
            self._progress_hook,
        ]
        options["logger"] = yt_logger

        return options

    def _cleanup_partial_downloads(self, temp_dir: Path) -> None:
        """Remove leftovers of a failed attempt before retrying."""
        for entry in temp_dir.iterdir():
            try:
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                logger.debug(f"Failed to remove partial file {entry}: {e}")

    def _cleanup_temp_dir(self, temp_dir: Path) -> None:
        try:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
        except OSError as e:
            logger.debug(f"Failed to clean up temp directory {temp_dir}: {e}")
