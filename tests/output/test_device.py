"""Tests for output device discovery and selection."""

from unittest.mock import MagicMock, patch

import pytest

from jukebox.output.local.device import (
    OutputDevice,
    format_device_list,
    list_output_devices,
    resolve_device,
)

_SD_PATCH = "jukebox.output.local.device._import_sounddevice"

DEVICES = [
    {"name": "Speakers", "max_output_channels": 2, "default_samplerate": 48000.0},
    {"name": "Microphone", "max_output_channels": 0, "default_samplerate": 48000.0},
    {"name": "USB DAC", "max_output_channels": 2, "default_samplerate": 96000.0},
    {"name": "USB Headset", "max_output_channels": 2, "default_samplerate": 44100.0},
]


def _sounddevice(default_output: int = 0, devices=None) -> MagicMock:
    sd = MagicMock()
    sd.query_devices.return_value = DEVICES if devices is None else devices
    sd.default.device = (1, default_output)
    return sd


class TestListOutputDevices:
    def test_skips_input_only(self) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice()):
            devices = list_output_devices()
        assert [d.index for d in devices] == [0, 2, 3]
        assert devices[0].is_default

    def test_describe(self) -> None:
        device = OutputDevice(2, "USB DAC", 2, 96000.0, is_default=True)
        assert device.describe() == "[2] USB DAC (default) - 2ch, 96000Hz"

    def test_import_error_propagates(self) -> None:
        with patch(_SD_PATCH, side_effect=ImportError("no PortAudio")):
            with pytest.raises(ImportError):
                list_output_devices()

    def test_format_device_list(self) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice()):
            text = format_device_list()
        assert text.count("\n") == 2
        assert "Microphone" not in text


class TestResolveDevice:
    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("default", "Speakers"),
            ("Default", "Speakers"),
            ("2", "USB DAC"),
            ("usb dac", "USB DAC"),
            ("headset", "USB Headset"),
            ("USB", "USB DAC"),
        ],
    )
    def test_resolves(self, spec: str, expected: str) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice()):
            assert resolve_device(spec).name == expected

    def test_default_falls_back_to_first(self) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice(default_output=-1)):
            assert resolve_device("default").name == "Speakers"

    def test_input_only_index(self) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice()):
            with pytest.raises(ValueError, match="No audio output device at index 1"):
                resolve_device("1")

    def test_no_match_lists_devices(self) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice()):
            with pytest.raises(ValueError, match="Available devices") as exc_info:
                resolve_device("Bluetooth")
        assert "USB Headset" in str(exc_info.value)

    def test_no_devices(self) -> None:
        with patch(_SD_PATCH, return_value=_sounddevice(devices=[])):
            with pytest.raises(ValueError, match="No audio output devices"):
                resolve_device("default")
