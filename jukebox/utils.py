"""
Locator and formatting helpers shared by the engine, library and media session.
"""

import math
import re
from typing import Any

DEFAULT_ALBUM_IMAGE = "default-album.png"
DEFAULT_ARTIST_IMAGE = "default-artist.png"

# Word characters are ASCII only; accented letters are dropped
_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def normalize_for_url(text: Any) -> str:
    """
    Normalize a title or name into a locator-safe token.

    "Don't Stop Me Now" -> "dontstopmenow"
    """
    value = str(text).lower().strip()
    value = _NON_WORD.sub("", value)
    return _WHITESPACE.sub("", value)


def _join(base_url: str, name: str) -> str:
    if base_url and not base_url.endswith("/"):
        base_url += "/"
    return f"{base_url}{name}"


def audio_url(base_url: str, title: str, audio_format: str) -> str:
    """Build the audio resource locator for one format candidate."""
    return _join(base_url, f"{normalize_for_url(title)}.{audio_format}")


def album_image_url(base_url: str, album_name: str) -> str:
    """Album cover locator, or the default cover when album is empty."""
    if not album_name:
        return _join(base_url, DEFAULT_ALBUM_IMAGE)
    return _join(base_url, f"{normalize_for_url(album_name)}.png")


def artist_image_url(base_url: str, artist_name: str) -> str:
    """Artist portrait locator, or the default portrait when name is empty."""
    if not artist_name:
        return _join(base_url, DEFAULT_ARTIST_IMAGE)
    return _join(base_url, f"{normalize_for_url(artist_name)}.png")


def format_time(seconds: Any) -> str:
    """Format seconds as m:ss. Invalid or negative input renders as 0:00."""
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return "0:00"
    if not math.isfinite(value) or value < 0:
        return "0:00"
    minutes = int(value // 60)
    secs = int(value % 60)
    return f"{minutes}:{secs:02d}"


def parse_duration(value: Any) -> float:
    """
    Parse a library duration.

    Accepts seconds (int/float/numeric string) or "m:ss" / "h:mm:ss".
    Anything unparseable is 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) and value > 0 else 0.0

    text = str(value).strip()
    if ":" in text:
        total = 0.0
        try:
            for part in text.split(":"):
                total = total * 60 + float(part)
        except ValueError:
            return 0.0
        return total if total > 0 else 0.0

    try:
        parsed = float(text)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) and parsed > 0 else 0.0
