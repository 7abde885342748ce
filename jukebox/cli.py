"""
Jukebox CLI entry point.

Provides command-line interface for running the player.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from jukebox import __version__
from jukebox.app import JukeboxApp
from jukebox.config import Config, ConfigError, load_config
from jukebox.errors import LibraryError, OutputError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_LIBRARY_ERROR = 2
EXIT_AUDIO_ERROR = 3


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jukebox",
        description="Headless music player with queue, history, repeat and shuffle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jukebox --list-devices
  jukebox --library music.json --artist "Queen" --album "A Night at the Opera"
  jukebox --library music.json --shuffle-all --repeat all
  jukebox --config config.yaml

Environment Variables:
  JUKEBOX_BASE_URL, JUKEBOX_AUDIO_DEVICE, JUKEBOX_BUFFER_SIZE, JUKEBOX_LOAD_TIMEOUT
  JUKEBOX_LIBRARY, JUKEBOX_REPEAT, JUKEBOX_SHUFFLE, JUKEBOX_DATA_DIR, JUKEBOX_LOG_LEVEL
""",
    )

    # General
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Device listing mode
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio output devices and exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON (used with --list-devices)",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )

    # Selection
    selection_group = parser.add_argument_group("Selection")
    selection_group.add_argument(
        "--library",
        metavar="PATH",
        help="Library JSON file",
    )
    selection_group.add_argument(
        "--artist",
        metavar="TEXT",
        help="Artist to play (first album unless --album is given)",
    )
    selection_group.add_argument(
        "--album",
        metavar="TEXT",
        help="Album to play",
    )
    selection_group.add_argument(
        "--shuffle-all",
        action="store_true",
        help="Queue the whole library in random order",
    )

    # Playback
    playback_group = parser.add_argument_group("Playback")
    playback_group.add_argument(
        "--shuffle",
        action="store_true",
        help="Start with shuffle enabled",
    )
    playback_group.add_argument(
        "--repeat",
        choices=["off", "all", "one"],
        metavar="MODE",
        help="Repeat mode: off, all, one",
    )
    playback_group.add_argument(
        "--keep-running",
        action="store_true",
        help="Stay running when playback finishes",
    )

    # Audio
    audio_group = parser.add_argument_group("Audio")
    audio_group.add_argument(
        "--base-url",
        metavar="URL",
        help="Base URL of the audio files",
    )
    audio_group.add_argument(
        "--device",
        metavar="TEXT",
        help="Audio output device: 'default', an index or a name",
    )
    audio_group.add_argument(
        "--buffer-size",
        type=int,
        metavar="INT",
        help="Output block size in frames (default: 2048)",
    )

    # Storage
    parser.add_argument(
        "--data-dir",
        metavar="PATH",
        help="Directory for queue, history and favorites (default: ~/.jukebox)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    # Map CLI args to config paths
    mappings = {
        "library": ("library", "path"),
        "repeat": ("playback", "repeat"),
        "base_url": ("audio", "base_url"),
        "device": ("audio", "device"),
        "buffer_size": ("audio", "buffer_size"),
        "data_dir": ("storage", "path"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            _set_nested(result, path, value)

    # Flags only override when given
    if getattr(args, "shuffle", False):
        _set_nested(result, ("playback", "shuffle"), True)
    if getattr(args, "keep_running", False):
        _set_nested(result, ("playback", "exit_on_finish"), False)

    return result


def log_config(config: Config) -> None:
    """Log configuration summary."""
    logger.info(f"Audio source: {config.audio.base_url} ({', '.join(config.audio.formats)})")
    logger.info(f"Output device: {config.audio.device}")
    logger.info(f"Library: {config.library.path or '(none)'}")
    logger.info(
        f"Repeat: {config.playback.repeat}, shuffle: {'on' if config.playback.shuffle else 'off'}"
    )


def run_list_devices(json_output: bool) -> int:
    """
    List audio output devices.

    Returns:
        Exit code
    """
    from jukebox.output.local.device import list_output_devices

    try:
        devices = list_output_devices()
    except ImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_AUDIO_ERROR

    if json_output:
        output = {
            "devices": [
                {
                    "index": d.index,
                    "name": d.name,
                    "channels": d.channels,
                    "sample_rate": d.default_samplerate,
                    "default": d.is_default,
                }
                for d in devices
            ],
            "count": len(devices),
        }
        print(json.dumps(output, indent=2))
        return EXIT_SUCCESS

    if not devices:
        print("No audio output devices found.")
        return EXIT_SUCCESS

    print(f"Found {len(devices)} output device(s):\n")
    for d in devices:
        print(f"  {d.describe()}")
    print("\nUse --device with an index or a name.")
    return EXIT_SUCCESS


def run_player(args: argparse.Namespace) -> int:
    """
    Run the player.

    Returns:
        Exit code
    """
    # Setup basic logging first (will be reconfigured after config load)
    setup_logging("info")

    logger.info(f"Jukebox v{__version__}")

    try:
        cli_config = args_to_dict(args)
        config = load_config(args.config, cli_config)

        setup_logging(config.logging.level)

        log_config(config)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        app = JukeboxApp(config)
        asyncio.run(app.run(artist=args.artist, album=args.album, shuffle_all=args.shuffle_all))
        return EXIT_SUCCESS

    except LibraryError as e:
        logger.error(f"Library error: {e}")
        return EXIT_LIBRARY_ERROR

    except OutputError as e:
        logger.error(f"Audio error: {e}")
        return EXIT_AUDIO_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_AUDIO_ERROR


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 2=library error, 3=audio error
    """
    args = parse_args(argv)

    if args.list_devices:
        return run_list_devices(args.json_output)
    return run_player(args)


if __name__ == "__main__":
    sys.exit(main())
