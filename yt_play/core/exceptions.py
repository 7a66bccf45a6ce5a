"""
Exception classes for yt-play.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message and an optional details
dictionary, so the CLI can report the problem and the log files can keep
the context.

Exception Hierarchy:
    YtPlayError (base)
        ConfigError - Configuration file issues
        InvalidUrlError - URL is not a supported playlist URL
        MissingToolError - mpv / ffmpeg not found on PATH
        CorruptManifestError - Persisted manifest cannot be read
        ListingError - Remote playlist listing could not be fetched
        DownloadError - A single track could not be downloaded
        PlaybackError - The player exited abnormally

Note:
    A user interrupting playback is not an error. The player reports it
    through PlaybackOutcome.INTERRUPTED instead of raising.
"""


class YtPlayError(Exception):
    """
    Base exception for all yt-play errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., URL, path).

    Example:
        try:
            key = resolve_playlist_url(url)
        except YtPlayError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description shown to the user.
            details: Optional dictionary with additional context. Common keys:
                     - 'url': URL involved in the error
                     - 'path': Filesystem path involved in the error
                     - 'original_error': The wrapped exception as a string
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(YtPlayError):
    """
    Raised when the configuration file is missing, unreadable or invalid.

    This is a CRITICAL error that stops program execution.

    Common causes:
        - --config points to a file that does not exist
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., negative thread count, unknown audio format)
    """
    pass


class InvalidUrlError(YtPlayError):
    """
    Raised when a URL is not a recognized YouTube or YouTube Music playlist URL.

    Common causes:
        - Host is not a YouTube domain
        - The 'list' query parameter is missing or malformed
        - The string is not a URL at all
    """
    pass


class MissingToolError(YtPlayError):
    """
    Raised when a required external executable cannot be found on PATH.

    Attributes:
        tool: Name of the missing executable (e.g., "mpv").
        hint: Installation guidance shown to the user.
    """

    def __init__(self, tool: str, hint: str, details: dict | None = None) -> None:
        super().__init__(
            f"Required tool '{tool}' was not found on PATH",
            details={"tool": tool, **(details or {})}
        )
        self.tool = tool
        self.hint = hint


class CorruptManifestError(YtPlayError):
    """
    Raised when a manifest file exists but cannot be parsed or validated.

    The CLI recovers from this by quarantining the file (renaming it aside)
    and rebuilding the playlist cache as a first run.
    """
    pass


class ListingError(YtPlayError):
    """
    Raised when the remote playlist listing cannot be fetched at all.

    This is fatal for the current sync. The existing manifest is left untouched.
    """
    pass


class DownloadError(YtPlayError):
    """
    Raised when a single track cannot be downloaded.

    This error is isolated per track: the synchronizer records the track as
    failed and continues with the rest of the playlist.

    Common causes:
        - Video unavailable, private or removed
        - Network errors or rate limiting after all retries
        - FFmpeg conversion produced no file
    """
    pass


class PlaybackError(YtPlayError):
    """
    Raised when the media player fails to start or exits with an error status.

    Attributes:
        returncode: Exit status of the player process, if it ran.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        returncode: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.returncode = returncode
