#!/usr/bin/env python3
"""
Microleaf Panel Protocol Library

Shared protocol implementation for Nanoleaf-style panel communication.
Provides constants, error types, validated commands, JSON body encoders and
the custom effect animation codec.

API documentation: https://forum.nanoleaf.me/docs/openapi
"""

import struct
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union


# =============================================================================
# Protocol Constants
# =============================================================================

DEFAULT_PORT = 16021
API_PREFIX = "api/v1"

# Resources (relative to the authenticated base URL)
STATE_PATH = "state"
EFFECTS_PATH = "effects"
EFFECTS_LIST_PATH = "effects/effectsList"
INFO_PATH = ""


# =============================================================================
# Value Ranges (inclusive)
# =============================================================================

HUE_RANGE = (0, 360)
SATURATION_RANGE = (0, 100)
LIGHTNESS_RANGE = (0, 100)
BRIGHTNESS_RANGE = (0, 100)
CHANNEL_RANGE = (0, 0xFF)
TEMPERATURE_RANGE = (1200, 6500)
PANEL_ID_RANGE = (0, 0xFFFF)
TRANSITION_RANGE = (0, 0xFFFF)


# =============================================================================
# Animation Data Layout
# =============================================================================

# Panel count header: uint16 big-endian
ANIM_HEADER = struct.Struct('>H')

# Per-panel record (10 bytes):
#   panel id (uint16), frame count (uint16), red, green, blue, pad (uint8 each),
#   transition time in 100ms ticks (uint16)
ANIM_FRAME = struct.Struct('>HHBBBBH')

# Only one keyframe per panel is sent
FRAMES_PER_PANEL = 1
MAX_PANELS = 0xFFFF


# =============================================================================
# Exceptions
# =============================================================================

class MicroleafError(Exception):
    """Base class for all microleaf errors."""


class OutOfRange(MicroleafError, ValueError):
    """Raised when an input value lies outside its accepted range."""

    def __init__(self, field: str, value, minimum: int, maximum: int):
        self.field = field
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"{field} must be an integer {minimum}-{maximum}, got {value!r}"
        )


class InvalidEffect(MicroleafError, ValueError):
    """Raised when a custom effect stream is empty or malformed."""


class MalformedResponse(MicroleafError):
    """Raised when a device document cannot be decoded."""

    def __init__(self, path: str, reason: str = "missing required field"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}" if path else reason)


class TransportError(MicroleafError):
    """Raised when the panel could not be reached."""


class DeviceError(MicroleafError):
    """Raised when the panel answers with a non-success status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        message = f"device returned HTTP {status_code}"
        if body:
            message += f": {body[:200]}"
        super().__init__(message)


# =============================================================================
# Color Model
# =============================================================================

def validate_range(field: str, value, minimum: int, maximum: int) -> int:
    """
    Check that value is an integer within [minimum, maximum].

    Returns the value unchanged. Nothing is ever clamped.

    Raises:
        OutOfRange: value is not an integer or lies outside the bound
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise OutOfRange(field, value, minimum, maximum)
    if not minimum <= value <= maximum:
        raise OutOfRange(field, value, minimum, maximum)
    return value


def validate_hsl(hue: int, saturation: int, lightness: int) -> tuple[int, int, int]:
    """Validate hue (0-360), saturation (0-100) and lightness (0-100)."""
    return (
        validate_range('hue', hue, *HUE_RANGE),
        validate_range('saturation', saturation, *SATURATION_RANGE),
        validate_range('lightness', lightness, *LIGHTNESS_RANGE),
    )


def validate_rgb(red: int, green: int, blue: int) -> tuple[int, int, int]:
    """Validate three 0-255 color channels."""
    return (
        validate_range('red', red, *CHANNEL_RANGE),
        validate_range('green', green, *CHANNEL_RANGE),
        validate_range('blue', blue, *CHANNEL_RANGE),
    )


def validate_temperature(kelvin: int) -> int:
    """Validate a color temperature in Kelvin (1200-6500)."""
    return validate_range('temperature', kelvin, *TEMPERATURE_RANGE)


def validate_brightness(brightness: int) -> int:
    """Validate a brightness percentage (0-100)."""
    return validate_range('brightness', brightness, *BRIGHTNESS_RANGE)


# =============================================================================
# Commands
# =============================================================================

@dataclass(frozen=True)
class SetOn:
    """Power the panel on or off."""
    on: bool

    def __post_init__(self):
        if not isinstance(self.on, bool):
            raise TypeError(f"on must be a bool, got {self.on!r}")


@dataclass(frozen=True)
class SetHSL:
    """Set hue, saturation and lightness in one request."""
    hue: int
    saturation: int
    lightness: int

    def __post_init__(self):
        validate_hsl(self.hue, self.saturation, self.lightness)


@dataclass(frozen=True)
class SetRGB:
    """Set a solid RGB color."""
    red: int
    green: int
    blue: int

    def __post_init__(self):
        validate_rgb(self.red, self.green, self.blue)

    @property
    def hex(self) -> str:
        return f"{self.red:02X}{self.green:02X}{self.blue:02X}"


@dataclass(frozen=True)
class SetColorTemperature:
    kelvin: int

    def __post_init__(self):
        validate_temperature(self.kelvin)


@dataclass(frozen=True)
class SetBrightness:
    brightness: int

    def __post_init__(self):
        validate_brightness(self.brightness)


ColorCommand = Union[SetOn, SetHSL, SetRGB, SetColorTemperature, SetBrightness]


# =============================================================================
# Command Encoding
# =============================================================================

def _value(value) -> dict:
    return {"value": value}


def encode_command(command: ColorCommand) -> dict:
    """
    Build the JSON body for a state command (PUT state).

    Args:
        command: An already validated command variant

    Returns:
        Dictionary ready to be serialized as the request body
    """
    if isinstance(command, SetOn):
        return {"on": _value(command.on)}
    if isinstance(command, SetHSL):
        return {
            "hue": _value(command.hue),
            "sat": _value(command.saturation),
            "brightness": _value(command.lightness),
        }
    if isinstance(command, SetRGB):
        return {"rgb": _value(command.hex)}
    if isinstance(command, SetColorTemperature):
        return {"ct": _value(command.kelvin)}
    if isinstance(command, SetBrightness):
        return {"brightness": _value(command.brightness)}
    raise TypeError(f"Unknown command: {command!r}")


def encode_select_effect(name: str) -> dict:
    """Build the JSON body selecting a stored effect (PUT effects)."""
    return {"select": name}


# =============================================================================
# Custom Effect Frames
# =============================================================================

@dataclass(frozen=True)
class EffectFrame:
    """One panel's color and transition time within a custom effect."""
    panel_id: int
    red: int
    green: int
    blue: int
    transition_time: int = 0  # 100ms ticks

    def __post_init__(self):
        validate_range('panel id', self.panel_id, *PANEL_ID_RANGE)
        validate_rgb(self.red, self.green, self.blue)
        validate_range('transition time', self.transition_time, *TRANSITION_RANGE)

    def to_bytes(self) -> bytes:
        """Pack this frame as a 10-byte big-endian record."""
        return ANIM_FRAME.pack(
            self.panel_id,
            FRAMES_PER_PANEL,
            self.red,
            self.green,
            self.blue,
            0,  # pad (white channel, unused)
            self.transition_time,
        )


def pack_effect_frames(frames: Sequence[EffectFrame]) -> bytes:
    """
    Pack an effect stream into the binary animation layout.

    Layout: panel count (uint16) followed by one 10-byte record per frame,
    all big-endian. Total size is 2 + 10 * len(frames).

    Raises:
        InvalidEffect: the stream is empty, too long, or holds non-frames
    """
    if not frames:
        raise InvalidEffect("custom effect requires at least one frame")
    if len(frames) > MAX_PANELS:
        raise InvalidEffect(
            f"custom effect supports at most {MAX_PANELS} frames, got {len(frames)}"
        )

    data = ANIM_HEADER.pack(len(frames))
    for index, frame in enumerate(frames):
        if not isinstance(frame, EffectFrame):
            raise InvalidEffect(f"frame {index} is not an EffectFrame: {frame!r}")
        data += frame.to_bytes()
    return data


def encode_anim_data(data: bytes) -> str:
    """Render packed animation bytes as the space separated decimal string the device expects."""
    return ' '.join(str(b) for b in data)


def encode_custom_effect(frames: Sequence[EffectFrame], loop: bool = False) -> dict:
    """
    Build the effect write envelope for a custom frame stream (PUT effects).

    Args:
        frames: Ordered, non-empty effect stream
        loop: Ask the device to repeat the animation
    """
    anim_data = encode_anim_data(pack_effect_frames(frames))
    return {
        "write": {
            "command": "display",
            "animType": "custom",
            "animData": anim_data,
            "loop": loop,
            "palette": [],
        }
    }


# =============================================================================
# Endpoints
# =============================================================================

@dataclass(frozen=True)
class PanelEndpoint:
    """Connection details for one named panel."""
    panel_name: str
    host: str
    access_token: str = field(repr=False)

    def __str__(self) -> str:
        return f"{self.panel_name} ({self.host})"

    @property
    def base_url(self) -> str:
        """Authenticated API root, always ending in '/'."""
        return f"http://{self.host}/{API_PREFIX}/{self.access_token}/"

    def url(self, path: Optional[str] = None) -> str:
        """Build the full URL for a resource path relative to the API root."""
        return self.base_url + (path or '').lstrip('/')

    def redact(self, text: str) -> str:
        """Replace the access token in text, e.g. a URL quoted in an error."""
        if not self.access_token:
            return text
        return text.replace(self.access_token, '***')
