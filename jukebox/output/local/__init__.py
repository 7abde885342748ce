"""Local sound device output (sounddevice/PortAudio)."""

from .device import OutputDevice, format_device_list, list_output_devices, resolve_device
from .output import LocalAudioOutput

__all__ = [
    "LocalAudioOutput",
    "OutputDevice",
    "format_device_list",
    "list_output_devices",
    "resolve_device",
]
