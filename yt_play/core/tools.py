"""
External tool detection for yt-play.

yt-play drives two native programs:
    - mpv: plays the cached tracks
    - ffmpeg: used by yt-dlp to extract and convert the audio stream

Both must be on PATH. They are checked once at startup so a missing tool
fails before any network access, with a hint on how to install it.
"""

import shutil
from pathlib import Path

from yt_play.core.exceptions import MissingToolError
from yt_play.core.logger import get_logger

logger = get_logger(__name__)


REQUIRED_TOOLS = ("mpv", "ffmpeg")

INSTALL_HINTS = {
    "mpv": "Install mpv from https://mpv.io/installation/ "
           "(e.g. 'apt install mpv' or 'brew install mpv')",
    "ffmpeg": "Install FFmpeg from https://ffmpeg.org/download.html "
              "(e.g. 'apt install ffmpeg' or 'brew install ffmpeg')",
}


def find_tool(name: str) -> Path:
    """
    Locate an executable on PATH.

    Raises:
        MissingToolError: If the executable cannot be found.
    """
    location = shutil.which(name)
    if location is None:
        raise MissingToolError(
            name,
            hint=INSTALL_HINTS.get(name, f"Install '{name}' and make sure it is on PATH")
        )
    return Path(location)


def ensure_tools(names: tuple[str, ...] = REQUIRED_TOOLS) -> dict[str, Path]:
    """
    Check that every required executable is available.

    Returns:
        Mapping of tool name to its resolved path.

    Raises:
        MissingToolError: For the first tool that is missing.
    """
    found = {}
    for name in names:
        found[name] = find_tool(name)
        logger.debug(f"Found {name}: {found[name]}")
    return found
