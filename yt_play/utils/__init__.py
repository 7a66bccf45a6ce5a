"""
Utility functions for yt-play.

This module provides helpers shared by the listing, download and playback code:
    - ensure_directory: mkdir -p helper
    - split_arguments: shell-style splitting of user-supplied argument strings
    - parse_yt_dlp_arguments: yt-dlp command-line options -> YoutubeDL params
    - YtDlpLogger: routes yt-dlp's own output into our logging

Usage:
    from yt_play.utils import ensure_directory, parse_yt_dlp_arguments
"""

import optparse
import shlex
from pathlib import Path
from typing import Any

import yt_dlp

from yt_play.core.exceptions import ConfigError
from yt_play.core.logger import get_logger

logger = get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it (and parents) if necessary.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If the directory cannot be created.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def split_arguments(arguments: str, option_name: str) -> list[str]:
    """
    Split a user-supplied argument string the way a POSIX shell would.

    Args:
        arguments: e.g. '--volume=70 --af="lavfi=[loudnorm]"'
        option_name: Name of the option the string came from, for errors.

    Raises:
        ConfigError: If the string has unbalanced quotes.
    """
    if not arguments:
        return []
    try:
        return shlex.split(arguments)
    except ValueError as e:
        raise ConfigError(
            f"Could not parse {option_name}: {e}",
            details={"field": option_name, "value": arguments}
        ) from e


def parse_yt_dlp_arguments(arguments: str) -> dict[str, Any]:
    """
    Convert yt-dlp command-line options into YoutubeDL params.

    Only the params that differ from yt-dlp's own defaults are returned, so
    the result can be merged over our options as a set of overrides.

    Args:
        arguments: yt-dlp options as typed on the command line,
                   e.g. "--limit-rate 2M --proxy socks5://127.0.0.1:9050".

    Returns:
        Dictionary of overriding YoutubeDL params (empty for "").

    Raises:
        ConfigError: If yt-dlp rejects the options.

    Example:
        parse_yt_dlp_arguments("--limit-rate 2M")
        # {'ratelimit': 2097152}
    """
    argv = split_arguments(arguments, "yt_dlp_arguments")
    if not argv:
        return {}

    try:
        defaults = yt_dlp.parse_options([]).ydl_opts
        parsed = yt_dlp.parse_options(argv)
    except (SystemExit, optparse.OptParseError, ValueError) as e:
        # optparse exits on unknown options, yt-dlp raises on invalid values
        raise ConfigError(
            f"Invalid yt-dlp arguments: {arguments}",
            details={"field": "yt_dlp_arguments", "value": arguments}
        ) from e

    if parsed.urls:
        raise ConfigError(
            "yt-dlp arguments must not contain URLs",
            details={"field": "yt_dlp_arguments", "urls": list(parsed.urls)}
        )

    overrides = {
        key: value
        for key, value in parsed.ydl_opts.items()
        if defaults.get(key) != value
    }
    logger.debug(f"yt-dlp overrides: {overrides}")
    return overrides


class YtDlpLogger:
    """
    Logger object for YoutubeDL's 'logger' param.

    yt-dlp prints some errors to stderr even with quiet=True. This routes
    everything into our log instead. Errors are kept in last_error so the
    downloader can classify them; they are only logged at ERROR level when
    show_errors is set (the final retry attempt).
    """

    def __init__(self, show_errors: bool = False) -> None:
        self.show_errors = show_errors
        self.last_error: str | None = None

    def debug(self, msg: str) -> None:
        # yt-dlp sends both debug and info lines here; info lines lack the prefix
        if msg.startswith("[debug] "):
            logger.debug(msg)

    def info(self, msg: str) -> None:
        logger.debug(msg)

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp warning: {msg}")

    def error(self, msg: str) -> None:
        self.last_error = msg
        if self.show_errors:
            logger.error(msg)
        else:
            logger.debug(f"yt-dlp error: {msg}")
