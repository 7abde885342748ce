"""
Jukebox Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import RepeatMode

logger = logging.getLogger(__name__)


# Audio formats tried in priority order
DEFAULT_AUDIO_FORMATS = ["mp3", "ogg", "m4a"]
DEFAULT_AUDIO_BASE_URL = "https://koders.cloud/global/content/audio/"
DEFAULT_ARTWORK_BASE_URL = "https://koders.cloud/global/content/images/albumCovers/"

# PortAudio block size limits
MIN_BUFFER_SIZE = 64
MAX_BUFFER_SIZE = 16384

# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

_FORMAT_PATTERN = re.compile(r"^[a-z0-9]+$")

# Environment variable mappings
ENV_MAPPINGS = {
    # Audio
    "JUKEBOX_BASE_URL": ("audio", "base_url"),
    "JUKEBOX_AUDIO_DEVICE": ("audio", "device"),
    "JUKEBOX_BUFFER_SIZE": ("audio", "buffer_size"),
    "JUKEBOX_LOAD_TIMEOUT": ("audio", "load_timeout"),
    # Library
    "JUKEBOX_LIBRARY": ("library", "path"),
    # Playback
    "JUKEBOX_REPEAT": ("playback", "repeat"),
    "JUKEBOX_SHUFFLE": ("playback", "shuffle"),
    # Storage
    "JUKEBOX_DATA_DIR": ("storage", "path"),
    # Logging
    "JUKEBOX_LOG_LEVEL": ("logging", "level"),
}

_INT_ENV_VARS = {"JUKEBOX_BUFFER_SIZE"}
_FLOAT_ENV_VARS = {"JUKEBOX_LOAD_TIMEOUT"}
_BOOL_ENV_VARS = {"JUKEBOX_SHUFFLE"}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class AudioConfig:
    """Audio resource and output device configuration."""

    base_url: str = DEFAULT_AUDIO_BASE_URL
    formats: list[str] = field(default_factory=lambda: list(DEFAULT_AUDIO_FORMATS))
    load_timeout: float = 15.0  # Seconds per format candidate
    device: str = "default"
    buffer_size: int = 2048


@dataclass
class LibraryConfig:
    """Music library configuration."""

    path: str = ""
    artwork_base_url: str = DEFAULT_ARTWORK_BASE_URL


@dataclass
class PlaybackConfig:
    """Transport defaults."""

    repeat: str = "off"
    shuffle: bool = False
    history_size: int = 50  # In-memory recently played cap
    history_persisted: int = 20  # Entries written to storage
    seek_offset: float = 10.0  # Default media key seek step (seconds)
    exit_on_finish: bool = True


@dataclass
class StorageConfig:
    """Persistence configuration. An empty path keeps state in memory."""

    path: str = "~/.jukebox"
    debounce_seconds: float = 0.5


@dataclass
class NotificationsConfig:
    """Transient notification configuration."""

    duration_ms: int = 5000
    min_duration_ms: int = 1200
    dismiss_threshold: float = 56.0  # Horizontal drag distance in px
    fps: int = 60


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete Jukebox configuration."""

    audio: AudioConfig = field(default_factory=AudioConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Audio
    if not config.audio.base_url:
        errors.append("Audio base_url is required")
    if not config.audio.formats:
        errors.append("At least one audio format is required")
    for fmt in config.audio.formats:
        if not isinstance(fmt, str) or not _FORMAT_PATTERN.match(fmt):
            errors.append(f"Invalid audio format: {fmt!r}")
    if config.audio.load_timeout <= 0:
        errors.append(f"Invalid load_timeout: {config.audio.load_timeout}")
    if not MIN_BUFFER_SIZE <= config.audio.buffer_size <= MAX_BUFFER_SIZE:
        errors.append(
            f"Invalid buffer_size: {config.audio.buffer_size}. "
            f"Must be between {MIN_BUFFER_SIZE} and {MAX_BUFFER_SIZE}"
        )

    # Playback
    try:
        RepeatMode.parse(config.playback.repeat)
    except ValueError:
        errors.append(
            f"Invalid repeat mode: {config.playback.repeat}. "
            f"Valid values: {[m.value for m in RepeatMode]}"
        )
    if config.playback.history_size < 1:
        errors.append(f"Invalid history_size: {config.playback.history_size}")
    if not 0 <= config.playback.history_persisted <= config.playback.history_size:
        errors.append(
            f"Invalid history_persisted: {config.playback.history_persisted}. "
            f"Must be between 0 and history_size ({config.playback.history_size})"
        )
    if config.playback.seek_offset <= 0:
        errors.append(f"Invalid seek_offset: {config.playback.seek_offset}")

    # Storage
    if config.storage.debounce_seconds < 0:
        errors.append(f"Invalid debounce_seconds: {config.storage.debounce_seconds}")

    # Notifications
    n = config.notifications
    if n.min_duration_ms <= 0:
        errors.append(f"Invalid min_duration_ms: {n.min_duration_ms}")
    if n.duration_ms < n.min_duration_ms:
        errors.append(
            f"Invalid duration_ms: {n.duration_ms}. "
            f"Must be at least min_duration_ms ({n.min_duration_ms})"
        )
    if n.dismiss_threshold <= 0:
        errors.append(f"Invalid dismiss_threshold: {n.dismiss_threshold}")
    if not 1 <= n.fps <= 240:
        errors.append(f"Invalid fps: {n.fps}")

    # Logging
    if config.logging.level.lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping, got {type(data).__name__}")
    return data


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue

        if env_var in _INT_ENV_VARS:
            try:
                value = int(value)
            except ValueError:
                logger.warning(f"Invalid integer for {env_var}: {value}")
                continue
        elif env_var in _FLOAT_ENV_VARS:
            try:
                value = float(value)
            except ValueError:
                logger.warning(f"Invalid number for {env_var}: {value}")
                continue
        elif env_var in _BOOL_ENV_VARS:
            value = value.lower() in ("true", "1", "yes", "on")

        _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def _parse_formats(value: Any) -> list[str]:
    """Accept a list or a comma-separated string of formats."""
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip().lower() for v in value if str(v).strip()]


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # Audio
    if "audio" in d:
        a = d["audio"]
        config.audio.base_url = a.get("base_url", config.audio.base_url)
        if "formats" in a:
            config.audio.formats = _parse_formats(a["formats"])
        config.audio.load_timeout = float(a.get("load_timeout", config.audio.load_timeout))
        config.audio.device = str(a.get("device", config.audio.device))
        config.audio.buffer_size = int(a.get("buffer_size", config.audio.buffer_size))

    # Library
    if "library" in d:
        lib = d["library"]
        config.library.path = lib.get("path", config.library.path) or ""
        config.library.artwork_base_url = lib.get(
            "artwork_base_url", config.library.artwork_base_url
        )

    # Playback
    if "playback" in d:
        p = d["playback"]
        config.playback.repeat = str(p.get("repeat", config.playback.repeat)).lower()
        config.playback.shuffle = bool(p.get("shuffle", config.playback.shuffle))
        config.playback.history_size = int(p.get("history_size", config.playback.history_size))
        config.playback.history_persisted = int(
            p.get("history_persisted", config.playback.history_persisted)
        )
        config.playback.seek_offset = float(p.get("seek_offset", config.playback.seek_offset))
        config.playback.exit_on_finish = bool(
            p.get("exit_on_finish", config.playback.exit_on_finish)
        )

    # Storage
    if "storage" in d:
        s = d["storage"]
        path = s.get("path", config.storage.path)
        config.storage.path = "" if path is None else str(path)
        config.storage.debounce_seconds = float(
            s.get("debounce_seconds", config.storage.debounce_seconds)
        )

    # Notifications
    if "notifications" in d:
        n = d["notifications"]
        config.notifications.duration_ms = int(
            n.get("duration_ms", config.notifications.duration_ms)
        )
        config.notifications.min_duration_ms = int(
            n.get("min_duration_ms", config.notifications.min_duration_ms)
        )
        config.notifications.dismiss_threshold = float(
            n.get("dismiss_threshold", config.notifications.dismiss_threshold)
        )
        config.notifications.fps = int(n.get("fps", config.notifications.fps))

    # Logging
    if "logging" in d:
        config.logging.level = d["logging"].get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        cli_args: Dictionary of CLI arguments

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    # 1. Load from file (lowest priority of explicit configs)
    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    # 2. Load from environment
    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    # 3. Load from CLI (highest priority)
    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}

    try:
        config = dict_to_config(merged)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}")

    validate_config(config)

    return config
