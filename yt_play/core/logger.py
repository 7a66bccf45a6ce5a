"""
Logging configuration for yt-play.

This module sets up the logging system with multiple outputs:
    - Console: Colored, tqdm-compatible messages (INFO, or DEBUG with --verbose)
    - log_full_{timestamp}.log: Complete log of all events (DEBUG and above)
    - log_errors_{timestamp}.log: Only ERROR and CRITICAL level messages
    - download_failures_{timestamp}.log: Tracks skipped during a sync

Log File Locations:
    All log files are created in the logs/ subdirectory of the cache
    directory. Each run creates new files with a unique timestamp.

Usage:
    from yt_play.core.logger import setup_logging, get_logger

    setup_logging(cache_dir / "logs")  # Call once at startup
    logger = get_logger(__name__)      # Get logger for each module

    logger.info("Starting sync")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that prefixes each message with a colored level name.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to the console without breaking progress bars.

    Uses tqdm.write(), which prints above any active progress bar instead
    of interleaving with its carriage-return updates.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream if stream is not None else sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class DownloadFailedTrackHandler(logging.Handler):
    """
    Handler that collects skipped tracks into the download failures report.

    Only records carrying the 'download_failed_track_id' extra field are
    written. The report format is one block per track:

        003 Song Title [dQw4w9WgXcQ]
        https://music.youtube.com/watch?v=dQw4w9WgXcQ
        Video unavailable

    Extra fields read from the record:
        - 'download_failed_track_id': Remote video ID
        - 'download_failed_track_title': Track title
        - 'download_failed_track_url': Watch URL used for the download
        - 'download_failed_track_position': Remote position (optional)
        - 'download_failed_reason': Final error message

    Use log_download_failure() instead of setting these fields by hand.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "download_failed_track_id"):
            return

        if self.report_file is None:
            return

        try:
            track_id = getattr(record, "download_failed_track_id", "")
            title = getattr(record, "download_failed_track_title", "Unknown")
            url = getattr(record, "download_failed_track_url", "")
            position = getattr(record, "download_failed_track_position", None)
            reason = getattr(record, "download_failed_reason", "")

            prefix = f"{position + 1:03d} " if position is not None else ""
            self.report_file.write(f"{prefix}{title} [{track_id}]\n")
            self.report_file.write(f"{url}\n")
            self.report_file.write(f"{reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        log_dir: Directory where log files will be created. Created if missing.
        verbose: If True, the console shows DEBUG messages as well.

    Behavior:
        1. Create log_dir if it doesn't exist
        2. Configure root logger level to DEBUG and drop existing handlers
        3. Console handler (TqdmLoggingHandler), INFO or DEBUG
        4. Full log file handler, DEBUG
        5. Error log file handler, filtered to ERROR+
        6. Download failures report handler

    Thread Safety:
        NOT thread-safe. Call from the main thread before starting workers.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_handler = logging.FileHandler(
        log_dir / f"log_full_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"log_errors_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    download_handler = DownloadFailedTrackHandler(
        log_dir / f"download_failures_{timestamp}.log"
    )
    download_handler.open()
    root_logger.addHandler(download_handler)

    # yt-dlp and urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        of their own and propagate to whatever the root logger has.
    """
    return logging.getLogger(name)


def log_download_failure(
    logger: logging.Logger,
    track_id: str,
    title: str,
    url: str,
    error_message: str,
    position: int | None = None
) -> None:
    """
    Log a track that was skipped after its download attempts failed.

    Logs a WARNING (per-track failures are not fatal) and attaches the extra
    fields DownloadFailedTrackHandler uses to write the failures report.

    Example:
        log_download_failure(
            logger,
            track_id="dQw4w9WgXcQ",
            title="Never Gonna Give You Up",
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            error_message="Video unavailable",
            position=2
        )
    """
    logger.warning(
        f"Download failed: {title} - {error_message}",
        extra={
            "download_failed_track_id": track_id,
            "download_failed_track_title": title,
            "download_failed_track_url": url,
            "download_failed_track_position": position,
            "download_failed_reason": error_message,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove all root handlers.

    Called from the CLI's finally block. Logging produces no output after this.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
