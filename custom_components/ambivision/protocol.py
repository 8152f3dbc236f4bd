"""Wire protocol for AmbiVision PRO appliances.

This module handles:
- Mode and sub-mode vocabularies (sub-modes are tagged by their mode)
- Command encoding (mode, sub-mode, brightness, color, discovery ping)
- Discovery reply parsing

All commands are plaintext UDP datagrams sent to port 45457. The
appliance never acknowledges a command or reports its status.
"""

from __future__ import annotations

import colorsys
import ipaddress
import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Self, Union

from .const import (
    DEVICE_SIGNATURE,
    MAX_CHANNEL,
    MAX_PERCENT,
    PING_MESSAGE,
    PREFIX_BRIGHTNESS,
    PREFIX_COLOR,
    PREFIX_MODE,
    PREFIX_SUB_MODE,
)
from .exceptions import InvalidArgument, MalformedReply

_LOGGER = logging.getLogger(__name__)

# Reply example: AmbiVision(605533_V.18) MagicLink(21393430v7)
DISCOVERY_REPLY_PATTERN = re.compile(r"AmbiVision\((\d+)_V\.(\d+)\)")


class _CodedEnum(Enum):
    """Enum whose members carry a wire code and a display label."""

    def __init__(self, code: int, label: str) -> None:
        self.code = code
        self.label = label

    @classmethod
    def from_label(cls, label: str) -> Self:
        """Return the member with the given display label."""
        for member in cls:
            if member.label == label:
                return member
        raise InvalidArgument(f"Invalid {cls.__name__}: {label!r}")

    @classmethod
    def from_code(cls, code: int) -> Self:
        """Return the member with the given wire code."""
        for member in cls:
            if member.code == code:
                return member
        raise InvalidArgument(f"Invalid {cls.__name__} code: {code!r}")

    @classmethod
    def labels(cls) -> list[str]:
        """Return all display labels in wire-code order."""
        return [member.label for member in cls]


class CaptureSubMode(_CodedEnum):
    """Sub-modes available while in Capture mode."""

    INTELLIGENT = (1, "Intelligent")
    SMOOTH = (2, "Smooth")
    FAST = (3, "Fast")
    AVERAGE = (4, "Average")
    USER = (5, "User")


class MoodSubMode(_CodedEnum):
    """Sub-modes available while in Mood mode."""

    MANUAL = (1, "Manual")
    DISCO = (2, "Disco")
    RAINBOW = (3, "Rainbow")
    NATURE = (4, "Nature")
    RELAX = (5, "Relax")


class AudioSubMode(_CodedEnum):
    """Sub-modes available while in Audio mode."""

    LEVEL_BINS = (1, "Level Bins")
    MIXED_BINS = (2, "Mixed Bins")
    LAMP = (3, "Lamp")
    STROBO = (4, "Strobo")
    FREQ_BINS = (5, "Freq Bins")


SubMode = Union[CaptureSubMode, MoodSubMode, AudioSubMode]


class Mode(_CodedEnum):
    """Primary operating mode."""

    CAPTURE = (1, "Capture")
    MOOD = (2, "Mood")
    AUDIO = (3, "Audio")
    OFF = (4, "Off")

    @property
    def sub_mode_type(self) -> type[_CodedEnum] | None:
        """Return the sub-mode vocabulary of this mode (None for Off)."""
        return SUB_MODE_TYPES.get(self)


SUB_MODE_TYPES: dict[Mode, type[_CodedEnum]] = {
    Mode.CAPTURE: CaptureSubMode,
    Mode.MOOD: MoodSubMode,
    Mode.AUDIO: AudioSubMode,
}


def mode_from_name(name: str) -> Mode:
    """Look up a mode by its display name."""
    return Mode.from_label(name)


def sub_mode_from_name(mode: Mode, name: str) -> SubMode:
    """Look up a sub-mode by display name within the vocabulary of a mode.

    Raises:
        InvalidArgument: If the mode has no sub-modes or the name is not
            part of its vocabulary (e.g. "Disco" under Audio).
    """
    sub_mode_type = mode.sub_mode_type
    if sub_mode_type is None:
        raise InvalidArgument(f"Mode {mode.label} has no sub-modes")
    try:
        return sub_mode_type.from_label(name)
    except InvalidArgument as err:
        raise InvalidArgument(
            f"Invalid {mode.label} sub-mode: {name!r}"
        ) from err


def is_sub_mode_of(sub_mode: SubMode, mode: Mode) -> bool:
    """Return True if the sub-mode belongs to the vocabulary of the mode."""
    return isinstance(sub_mode, _CodedEnum) and type(sub_mode) is mode.sub_mode_type


def clamp(value: Any, lower: int, upper: int) -> int:
    """Clamp a numeric value to an integer range.

    Infinite and out-of-range values saturate at the bounds.
    """
    if isinstance(value, int):
        return max(lower, min(upper, int(value)))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as err:
        raise InvalidArgument(f"Not a number: {value!r}") from err
    if math.isnan(number):
        raise InvalidArgument(f"Not a number: {value!r}")
    if number <= lower:
        return lower
    if number >= upper:
        return upper
    return int(round(number))


# =============================================================================
# COMMAND ENCODING
# =============================================================================


def encode_mode(mode: Mode | str) -> bytes:
    """Encode a mode switch, e.g. ``AmbiVision22`` for Mood."""
    if isinstance(mode, str):
        mode = mode_from_name(mode)
    if not isinstance(mode, Mode):
        raise InvalidArgument(f"Invalid mode: {mode!r}")
    return f"{PREFIX_MODE}{mode.code}".encode()


def encode_sub_mode(sub_mode: SubMode) -> bytes:
    """Encode a sub-mode switch, e.g. ``AmbiVision31``.

    The wire code means different things depending on the mode the
    appliance is in; compatibility is not checked here.
    """
    if not isinstance(sub_mode, (CaptureSubMode, MoodSubMode, AudioSubMode)):
        raise InvalidArgument(f"Invalid sub-mode: {sub_mode!r}")
    return f"{PREFIX_SUB_MODE}{sub_mode.code}".encode()


def encode_brightness(level: Any) -> bytes:
    """Encode an overall brightness command (0-100, clamped)."""
    level = clamp(level, 0, MAX_PERCENT)
    return f"{PREFIX_BRIGHTNESS} OVERALL_BRIGHTNESS={{{level}}} \n".encode()


def encode_color(r: Any, g: Any, b: Any) -> bytes:
    """Encode a direct RGB color command (each channel 0-255, clamped)."""
    r = clamp(r, 0, MAX_CHANNEL)
    g = clamp(g, 0, MAX_CHANNEL)
    b = clamp(b, 0, MAX_CHANNEL)
    return f"{PREFIX_COLOR} R{{{r}}} G{{{g}}} B{{{b}}} \n".encode()


def encode_ping() -> bytes:
    """Return the discovery broadcast payload."""
    return PING_MESSAGE


# =============================================================================
# COLOR CONVERSION
# =============================================================================


def hsv_to_rgb(hue: Any, saturation: Any, level: Any) -> tuple[int, int, int]:
    """Convert HSV (each 0-100) to RGB (0-255)."""
    h = clamp(hue, 0, MAX_PERCENT) / 100.0
    s = clamp(saturation, 0, MAX_PERCENT) / 100.0
    v = clamp(level, 0, MAX_PERCENT) / 100.0
    r, g, b = colorsys.hsv_to_rgb(h % 1.0, s, v)
    return (round(r * MAX_CHANNEL), round(g * MAX_CHANNEL), round(b * MAX_CHANNEL))


# =============================================================================
# DISCOVERY REPLY PARSING
# =============================================================================


@dataclass(frozen=True)
class DiscoveryRecord:
    """A parsed discovery reply."""

    device_id: str
    firmware_version: str
    ip: str


def parse_discovery_reply(payload: bytes, source_ip: str) -> DiscoveryRecord | None:
    """Parse one UDP payload received on the discovery socket.

    The address is the datagram's sender, never a value from the payload.

    Args:
        payload: Raw datagram bytes.
        source_ip: Sender address reported by the transport.

    Returns:
        DiscoveryRecord, or None if the payload is not a discovery reply.

    Raises:
        MalformedReply: If the signature is present but the reply does not
            have the ``AmbiVision(<id>_V.<fw>)`` structure, or the sender
            address is not an IPv4 address.
    """
    text = payload.decode("utf-8", errors="replace")
    if DEVICE_SIGNATURE not in text:
        return None

    match = DISCOVERY_REPLY_PATTERN.search(text)
    if match is None:
        raise MalformedReply(f"Unrecognized discovery reply from {source_ip}: {text!r}")

    try:
        ip = str(ipaddress.IPv4Address(source_ip))
    except ValueError as err:
        raise MalformedReply(f"Invalid sender address: {source_ip!r}") from err

    device_id, firmware = match.groups()
    return DiscoveryRecord(device_id=device_id, firmware_version=f"V.{firmware}", ip=ip)
