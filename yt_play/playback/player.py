"""
Playback for yt-play.

Builds the play queue from a manifest and hands it to mpv.

The whole queue goes to a single blocking mpv process through a temporary
playlist file (one absolute path per line), so mpv's own playlist controls
(next/previous track) work as usual. Audio only: mpv runs with --no-video.

Ctrl+C during playback is a normal way to stop listening, not an error:
play() terminates mpv and returns PlaybackOutcome.INTERRUPTED.
"""

import os
import random
import subprocess
import tempfile
from enum import Enum
from pathlib import Path

from yt_play.core.exceptions import PlaybackError
from yt_play.core.logger import get_logger
from yt_play.core.manifest import Manifest
from yt_play.utils import split_arguments

logger = get_logger(__name__)


# mpv exit status when it was asked to quit by a signal (e.g. SIGINT, SIGTERM)
MPV_EXIT_QUIT_BY_SIGNAL = 4

TERMINATE_TIMEOUT = 5  # seconds


class PlaybackOutcome(Enum):
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    EMPTY = "empty"


def build_queue(
    manifest: Manifest,
    shuffle: bool = False,
    rng: random.Random | None = None
) -> list[Path]:
    """
    List the files to play.

    Args:
        manifest: Manifest of the playlist.
        shuffle: Randomize the order instead of following the manifest.
        rng: Random generator to use for shuffling. A fresh, OS-seeded one
             is created for every call when omitted.

    Returns:
        File paths in play order. Records whose file is missing on disk are
        skipped with a warning.
    """
    queue: list[Path] = []
    for track in manifest.tracks:
        path = Path(track.file_path)
        if path.is_file():
            queue.append(path)
        else:
            logger.warning(f"Skipping '{track.title}': file missing at {path}")

    if shuffle:
        (rng or random.Random()).shuffle(queue)

    return queue


def play(
    queue: list[Path],
    mpv_arguments: str = "",
    mpv_path: str | Path = "mpv"
) -> PlaybackOutcome:
    """
    Play a queue with mpv and wait for it to exit.

    Args:
        queue: Files in play order.
        mpv_arguments: Extra mpv command-line arguments, shell-quoted.
        mpv_path: mpv executable.

    Returns:
        COMPLETED when mpv exits normally, INTERRUPTED on Ctrl+C,
        EMPTY if there was nothing to play.

    Raises:
        PlaybackError: If mpv cannot be started or exits with an error.
        ConfigError: If mpv_arguments cannot be parsed.
    """
    if not queue:
        logger.warning("Nothing to play")
        return PlaybackOutcome.EMPTY

    extra_args = split_arguments(mpv_arguments, "--mpv-arguments")

    fd, playlist_name = tempfile.mkstemp(prefix="yt-play-", suffix=".m3u")
    playlist_file = Path(playlist_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for path in queue:
                f.write(f"{path.resolve()}\n")

        command = [str(mpv_path), "--no-video", f"--playlist={playlist_file}", *extra_args]
        logger.info(f"Playing {len(queue)} tracks")
        logger.debug(f"Running: {' '.join(command)}")

        return _run_player(command)
    finally:
        playlist_file.unlink(missing_ok=True)


def _run_player(command: list[str]) -> PlaybackOutcome:
    try:
        process = subprocess.Popen(command)
    except OSError as e:
        raise PlaybackError(
            f"Failed to start mpv: {e}",
            details={"command": command[0], "original_error": str(e)}
        ) from e

    try:
        returncode = process.wait()
    except KeyboardInterrupt:
        logger.info("Playback interrupted")
        _terminate(process)
        return PlaybackOutcome.INTERRUPTED

    if returncode == MPV_EXIT_QUIT_BY_SIGNAL:
        return PlaybackOutcome.INTERRUPTED
    if returncode != 0:
        raise PlaybackError(
            f"mpv exited with status {returncode}",
            returncode=returncode
        )

    return PlaybackOutcome.COMPLETED


def _terminate(process: subprocess.Popen) -> None:
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_TIMEOUT)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
