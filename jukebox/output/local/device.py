"""
Output device discovery.

Enumerates PortAudio output devices through sounddevice and resolves the
configured device string ("default", an index, or a name) to one of them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class OutputDevice:
    """A PortAudio device with at least one output channel."""

    index: int
    name: str
    channels: int
    default_samplerate: float
    is_default: bool

    def describe(self) -> str:
        marker = " (default)" if self.is_default else ""
        return (
            f"[{self.index}] {self.name}{marker} "
            f"- {self.channels}ch, {int(self.default_samplerate)}Hz"
        )


def _import_sounddevice():
    """Lazy import of sounddevice (loads the PortAudio library)."""
    try:
        import sounddevice as sd
    except (ImportError, OSError) as e:
        raise ImportError(
            f"sounddevice/PortAudio is not available ({e}). "
            "Install with: pip install sounddevice"
        )
    return sd


def list_output_devices() -> list[OutputDevice]:
    """List devices that can play audio."""
    sd = _import_sounddevice()
    default_index = sd.default.device[1]

    return [
        OutputDevice(
            index=i,
            name=dev["name"],
            channels=dev["max_output_channels"],
            default_samplerate=dev["default_samplerate"],
            is_default=(i == default_index),
        )
        for i, dev in enumerate(sd.query_devices())
        if dev["max_output_channels"] > 0
    ]


def resolve_device(spec: str) -> OutputDevice:
    """
    Resolve a device string to an output device.

    Args:
        spec: "default", a device index, an exact name or a name substring
              (matching is case-insensitive)

    Raises:
        ValueError: If nothing matches; the message lists available devices
    """
    devices = list_output_devices()
    if not devices:
        raise ValueError("No audio output devices found on this system")

    wanted = spec.strip().lower()

    if wanted == "default":
        chosen = next((d for d in devices if d.is_default), None)
        if chosen is None:
            logger.warning("No default output device, using first available")
            chosen = devices[0]
        return chosen

    if wanted.isdigit():
        index = int(wanted)
        chosen = next((d for d in devices if d.index == index), None)
        if chosen is None:
            raise ValueError(
                f"No audio output device at index {index}. "
                f"Available devices:\n{format_device_list(devices)}"
            )
        return chosen

    exact = [d for d in devices if d.name.lower() == wanted]
    if exact:
        return exact[0]

    partial = [d for d in devices if wanted in d.name.lower()]
    if partial:
        if len(partial) > 1:
            logger.warning(f"Several devices match '{spec}', using {partial[0].name}")
        return partial[0]

    raise ValueError(
        f"No audio device matching '{spec}'. "
        f"Available devices:\n{format_device_list(devices)}"
    )


def format_device_list(devices: Optional[list[OutputDevice]] = None) -> str:
    """One line per device, for error messages and --list-devices."""
    if devices is None:
        devices = list_output_devices()
    return "\n".join(f"  {d.describe()}" for d in devices)
