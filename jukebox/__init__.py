"""
Jukebox - headless music player core.

Transport, queue, history, repeat/shuffle and media session handling on
top of a local audio output.
"""

__version__ = "0.1.0"

from .app import JukeboxApp
from .config import Config, ConfigError, load_config

__all__ = [
    "__version__",
    "JukeboxApp",
    "Config",
    "load_config",
    "ConfigError",
]
