"""
Configuration management for yt-play.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file is optional. When no file is found every setting
falls back to its default, so `yt-play <url>` works out of the box.

Configuration File Location (first match wins):
    1. The path given with --config (must exist)
    2. $XDG_CONFIG_HOME/yt-play/config.yaml
    3. ~/.config/yt-play/config.yaml

Example config.yaml:
    cache:
      directory: "~/.cache/yt-play"

    download:
      threads: 4
      retries: 3
      audio_format: m4a
      cookie_file: null  # Optional: path to cookies.txt
      yt_dlp_arguments: "--limit-rate 2M"

    player:
      mpv_arguments: "--volume=70"
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from yt_play.core.exceptions import ConfigError


APP_NAME = "yt-play"
CONFIG_FILENAME = "config.yaml"

# Codecs whose output file extension equals the codec name, so the
# track path of a record can be computed before the download happens.
SUPPORTED_AUDIO_FORMATS = ("m4a", "mp3", "opus", "flac", "wav")

DEFAULT_THREADS = 4
DEFAULT_RETRIES = 3
DEFAULT_AUDIO_FORMAT = "m4a"


def default_cache_dir() -> Path:
    """Return $XDG_CACHE_HOME/yt-play, or ~/.cache/yt-play."""
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return (root / APP_NAME).expanduser()


def default_config_path() -> Path:
    """Return $XDG_CONFIG_HOME/yt-play/config.yaml, or ~/.config/yt-play/config.yaml."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return (root / APP_NAME / CONFIG_FILENAME).expanduser()


@dataclass(frozen=True)
class CacheConfig:
    """
    Local cache configuration.

    Attributes:
        directory: Absolute path of the cache root. Holds one directory per
                   playlist (manifest + tracks) and the logs/ directory.
    """
    directory: Path


@dataclass(frozen=True)
class DownloadConfig:
    """
    Download behavior configuration.

    Attributes:
        threads: Number of parallel download workers. Default: 4.
        retries: Total attempts per track before it is skipped. Default: 3.
        audio_format: Audio codec/extension produced by yt-dlp's
                      FFmpegExtractAudio postprocessor. Default: m4a.
        cookie_file: Optional cookies.txt passed to yt-dlp.
        yt_dlp_arguments: Extra yt-dlp command-line options, merged into
                          the options used for listing and downloading.
    """
    threads: int
    retries: int
    audio_format: str
    cookie_file: Path | None
    yt_dlp_arguments: str


@dataclass(frozen=True)
class PlayerConfig:
    """
    Player configuration.

    Attributes:
        mpv_arguments: Extra mpv command-line arguments (shell-style string).
    """
    mpv_arguments: str


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable. CLI overrides are
    applied with with_overrides(), which returns a new object.

    Example:
        config = load_config()
        print(f"Cache: {config.cache.directory}")
        print(f"Using {config.download.threads} threads")
    """
    cache: CacheConfig
    download: DownloadConfig
    player: PlayerConfig

    def with_overrides(
        self,
        threads: int | None = None,
        yt_dlp_arguments: str | None = None,
        mpv_arguments: str | None = None
    ) -> "Config":
        """Return a copy with the given command-line overrides applied."""
        download = self.download
        player = self.player

        if threads is not None:
            if threads < 1:
                raise ConfigError(
                    "--threads must be a positive integer",
                    details={"value": threads}
                )
            download = replace(download, threads=threads)
        if yt_dlp_arguments is not None:
            download = replace(download, yt_dlp_arguments=yt_dlp_arguments)
        if mpv_arguments is not None:
            player = replace(player, mpv_arguments=mpv_arguments)

        return replace(self, download=download, player=player)


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration.

    Args:
        config_path: Optional explicit path to a config file. It must exist.
                     If None, the default location is used when present,
                     otherwise defaults apply.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit file is missing, the YAML is invalid,
                     or a value fails validation.
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        raw_config = _read_yaml(config_path)
    else:
        default_path = default_config_path()
        raw_config = _read_yaml(default_path) if default_path.exists() else {}

    return Config(
        cache=_parse_cache_config(_section(raw_config, "cache")),
        download=_parse_download_config(_section(raw_config, "download")),
        player=_parse_player_config(_section(raw_config, "player"))
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is a valid "all defaults" configuration
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return raw_config


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_cache_config(cache_section: dict[str, Any]) -> CacheConfig:
    """
    Parse the cache section. Expands ~ but does NOT create the directory
    (CacheManager.initialize() does that).
    """
    directory = cache_section.get("directory")

    if directory is None:
        return CacheConfig(directory=default_cache_dir().resolve())

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'cache.directory' must be a non-empty string",
            details={"field": "cache.directory"}
        )

    return CacheConfig(directory=Path(directory.strip()).expanduser().resolve())


def _positive_int(section: dict[str, Any], field: str, default: int) -> int:
    value = section.get(field)
    if value is None:
        return default
    # bool is an int subclass; "threads: yes" is a mistake, not 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(
            f"'download.{field}' must be a positive integer",
            details={"field": f"download.{field}", "value": value}
        )
    return value


def _optional_str(section: dict[str, Any], field: str, qualified: str) -> str:
    value = section.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(
            f"'{qualified}' must be a string",
            details={"field": qualified}
        )
    return value.strip()


def _parse_download_config(download_section: dict[str, Any]) -> DownloadConfig:
    """
    Parse and validate the download section, applying defaults.

    Raises:
        ConfigError: If threads/retries are not positive integers, the audio
                     format is unsupported, or cookie_file does not exist.
    """
    threads = _positive_int(download_section, "threads", DEFAULT_THREADS)
    retries = _positive_int(download_section, "retries", DEFAULT_RETRIES)

    audio_format = download_section.get("audio_format", DEFAULT_AUDIO_FORMAT)
    if not isinstance(audio_format, str) or audio_format.lower() not in SUPPORTED_AUDIO_FORMATS:
        raise ConfigError(
            f"'download.audio_format' must be one of: {', '.join(SUPPORTED_AUDIO_FORMATS)}",
            details={"field": "download.audio_format", "value": audio_format}
        )

    cookie_file = None
    raw_cookie = download_section.get("cookie_file")
    if raw_cookie is not None:
        if not isinstance(raw_cookie, str):
            raise ConfigError(
                "'download.cookie_file' must be a string path or null",
                details={"field": "download.cookie_file"}
            )
        cookie_path = Path(raw_cookie).expanduser().resolve()
        if not cookie_path.exists():
            raise ConfigError(
                f"Cookie file not found: {cookie_path}",
                details={"field": "download.cookie_file", "path": str(cookie_path)}
            )
        cookie_file = cookie_path

    return DownloadConfig(
        threads=threads,
        retries=retries,
        audio_format=audio_format.lower(),
        cookie_file=cookie_file,
        yt_dlp_arguments=_optional_str(
            download_section, "yt_dlp_arguments", "download.yt_dlp_arguments"
        )
    )


def _parse_player_config(player_section: dict[str, Any]) -> PlayerConfig:
    return PlayerConfig(
        mpv_arguments=_optional_str(player_section, "mpv_arguments", "player.mpv_arguments")
    )
