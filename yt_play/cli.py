"""
Command-line interface for yt-play.

This module implements the CLI using Click, with rich-click for the output
colors. A single command caches a YouTube or YouTube Music playlist and
plays it with mpv.

Usage:
    yt-play <playlist-url>                  Play, downloading first if not cached
    yt-play --refresh <playlist-url>        Sync with the remote playlist, then play
    yt-play --shuffle <playlist-url>        Play in random order

Options:
    --verbose                               Debug output on the console
    --yt-dlp-arguments "<args>"             Extra yt-dlp options
    --mpv-arguments "<args>"                Extra mpv options
    --threads <n>                           Parallel downloads
    --config <path>                         Configuration file

Workflow:
    1. Load configuration and set up the cache and logging
    2. Check that mpv and ffmpeg are installed
    3. Resolve the URL to a playlist key
    4. Load the cached manifest (a corrupt one is moved aside and rebuilt)
    5. Synchronize if the playlist was never cached or --refresh was given
    6. Build the play queue and run mpv

Exit Codes:
    0    Success (also when playback is stopped with Ctrl+C)
    1    Configuration error
    2    Invalid playlist URL
    3    mpv or ffmpeg not installed
    4    Playlist listing failed
    5    Other errors (cache, playback)
    130  Interrupted during synchronization
"""

from pathlib import Path
from typing import Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Playback",
            "options": ["--refresh", "--shuffle"],
        },
        {
            "name": "Advanced Options",
            "options": ["--yt-dlp-arguments", "--mpv-arguments", "--threads", "--config"],
        },
        {
            "name": "Info",
            "options": ["--verbose", "--version", "--help"],
        },
    ],
}

from yt_play import __version__
from yt_play.core.cache import CacheManager
from yt_play.core.config import Config, load_config
from yt_play.core.exceptions import (
    ConfigError,
    CorruptManifestError,
    InvalidUrlError,
    ListingError,
    MissingToolError,
    YtPlayError,
)
from yt_play.core.logger import get_logger, setup_logging, shutdown_logging
from yt_play.core.manifest import Manifest
from yt_play.core.tools import ensure_tools
from yt_play.download.downloader import Downloader
from yt_play.playback.player import PlaybackOutcome, build_queue, play
from yt_play.sync.synchronizer import PlaylistSynchronizer
from yt_play.utils import parse_yt_dlp_arguments
from yt_play.youtube.listing import PlaylistLister
from yt_play.youtube.resolver import PlaylistKey, resolve_playlist_url

logger = get_logger(__name__)


EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_INVALID_URL = 2
EXIT_MISSING_TOOL = 3
EXIT_LISTING = 4
EXIT_ERROR = 5
EXIT_INTERRUPTED = 130


@click.command()
@click.argument("url", required=False, metavar="<playlist-url>")
@click.option(
    "--refresh", "-r",
    is_flag=True,
    help="Sync the cache with the remote playlist before playing"
)
@click.option(
    "--shuffle", "-s",
    is_flag=True,
    help="Play tracks in random order"
)
@click.option(
    "--yt-dlp-arguments",
    type=str,
    default=None,
    metavar="<args>",
    help="Extra yt-dlp options, e.g. \"--limit-rate 1M\""
)
@click.option(
    "--mpv-arguments",
    type=str,
    default=None,
    metavar="<args>",
    help="Extra mpv options, e.g. \"--volume=50\""
)
@click.option(
    "--threads",
    type=int,
    default=None,
    metavar="<n>",
    help="Number of parallel downloads"
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug output"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    url: Optional[str],
    refresh: bool,
    shuffle: bool,
    yt_dlp_arguments: Optional[str],
    mpv_arguments: Optional[str],
    threads: Optional[int],
    config_path: Optional[Path],
    verbose: bool,
    version: bool
) -> None:
    """
    yt-play: Play YouTube and YouTube Music playlists with mpv.

    The first time a playlist is played, all its tracks are downloaded
    with yt-dlp into a local cache. Later runs play straight from the cache,
    also offline. Use --refresh to pick up tracks added to or removed from
    the playlist.

    \b
    BASIC USAGE:
        yt-play "https://music.youtube.com/playlist?list=..."
        yt-play --shuffle "https://www.youtube.com/playlist?list=..."
        yt-play --refresh "https://www.youtube.com/playlist?list=..."

    \b
    ADVANCED:
        yt-play --yt-dlp-arguments "--limit-rate 2M" "https://..."
        yt-play --mpv-arguments "--volume=60 --loop-playlist" "https://..."
    """
    if version:
        click.echo(f"yt-play {__version__}")
        ctx.exit(0)

    if not url:
        click.echo(ctx.get_help())
        ctx.exit(0)

    exit_code = _run(
        url=url,
        refresh=refresh,
        shuffle=shuffle,
        yt_dlp_arguments=yt_dlp_arguments,
        mpv_arguments=mpv_arguments,
        threads=threads,
        config_path=config_path,
        verbose=verbose
    )
    ctx.exit(exit_code)


def _run(
    url: str,
    refresh: bool,
    shuffle: bool,
    yt_dlp_arguments: str | None,
    mpv_arguments: str | None,
    threads: int | None,
    config_path: Path | None,
    verbose: bool
) -> int:
    """
    Execute the cache-then-play workflow.

    Returns:
        Process exit code (see module docstring).
    """
    try:
        config = load_config(config_path).with_overrides(
            threads=threads,
            yt_dlp_arguments=yt_dlp_arguments,
            mpv_arguments=mpv_arguments
        )

        cache = CacheManager(config.cache.directory, audio_format=config.download.audio_format)
        cache.initialize()

        setup_logging(cache.logs_dir, verbose=verbose)
        logger.debug(f"yt-play {__version__} starting")

        tools = ensure_tools()
        key = resolve_playlist_url(url)
        logger.debug(f"Playlist key: {key}")

        manifest = _load_manifest(cache, key)

        if manifest.is_new or refresh:
            manifest = _synchronize(config, cache, key, manifest)
        else:
            logger.info(f"Playing '{manifest.title or key}' from cache ({len(manifest.tracks)} tracks)")

        queue = build_queue(manifest, shuffle=shuffle)
        outcome = play(queue, mpv_arguments=config.player.mpv_arguments, mpv_path=tools["mpv"])
        if outcome == PlaybackOutcome.INTERRUPTED:
            logger.info("Playback stopped")

        return EXIT_OK

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        return EXIT_CONFIG

    except InvalidUrlError as e:
        click.echo(f"Invalid URL: {e.message}", err=True)
        return EXIT_INVALID_URL

    except MissingToolError as e:
        click.echo(f"Error: {e.message}", err=True)
        if e.tool == "ffmpeg":
            click.echo("yt-dlp needs FFmpeg to extract the audio track.", err=True)
        click.echo(e.hint, err=True)
        return EXIT_MISSING_TOOL

    except ListingError as e:
        click.echo(f"Could not list playlist: {e.message}", err=True)
        logger.error(f"Listing error: {e.message}", exc_info=True)
        return EXIT_LISTING

    except YtPlayError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        return EXIT_ERROR

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        return EXIT_ERROR

    finally:
        shutdown_logging()


def _load_manifest(cache: CacheManager, key: PlaylistKey) -> Manifest:
    """
    Load the cached manifest, recovering from a corrupt file.

    A corrupt manifest is moved aside (never deleted) and the playlist is
    rebuilt as on first run. Tracks already on disk are adopted by the
    downloader instead of being downloaded again.
    """
    try:
        return cache.load(key)
    except CorruptManifestError as e:
        logger.warning(f"{e.message}. Rebuilding the playlist cache.")
        cache.quarantine(key)
        return Manifest.empty(key)


def _synchronize(config: Config, cache: CacheManager, key: PlaylistKey, manifest: Manifest) -> Manifest:
    extra_options = parse_yt_dlp_arguments(config.download.yt_dlp_arguments)

    lister = PlaylistLister(
        cookie_file=config.download.cookie_file,
        extra_options=extra_options
    )
    downloader = Downloader(
        cache,
        cookie_file=config.download.cookie_file,
        num_threads=config.download.threads,
        max_attempts=config.download.retries,
        extra_options=extra_options
    )
    synchronizer = PlaylistSynchronizer(cache, lister, downloader)

    result = synchronizer.sync(key, manifest)
    return result.manifest


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `yt-play` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
