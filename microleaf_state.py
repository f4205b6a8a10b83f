#!/usr/bin/env python3
"""
Microleaf Panel State

Typed model of the panel info document (GET /api/v1/<token>/) and the
functions that decode it.

Bounded values carry the min/max the device reported. A bound the device
did not report is None, never 0.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from microleaf_protocol import MalformedResponse


T = TypeVar('T')

_MISSING = object()


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class RangedValue(Generic[T]):
    """A reported value with its optional allowed range."""
    value: T
    min: Optional[T] = None
    max: Optional[T] = None

    def __post_init__(self):
        if self.min is not None and self.value < self.min:
            raise ValueError(f"value {self.value} is below minimum {self.min}")
        if self.max is not None and self.value > self.max:
            raise ValueError(f"value {self.value} is above maximum {self.max}")

    @property
    def bounded(self) -> bool:
        return self.min is not None and self.max is not None


@dataclass(frozen=True)
class State:
    on: RangedValue[bool]
    color_mode: str = ""
    hue: Optional[RangedValue[int]] = None
    saturation: Optional[RangedValue[int]] = None
    brightness: Optional[RangedValue[int]] = None
    color_temperature: Optional[RangedValue[int]] = None


@dataclass(frozen=True)
class Effects:
    selected: str = ""
    effects: tuple[str, ...] = ()


@dataclass(frozen=True)
class PanelPosition:
    panel_id: int
    x: int
    y: int
    o: int


@dataclass(frozen=True)
class PanelLayout:
    global_orientation: Optional[RangedValue[int]]
    num_panels: int = 0
    side_length: int = 0
    positions: tuple[PanelPosition, ...] = ()


@dataclass(frozen=True)
class RhythmPosition:
    x: float = 0.0
    y: float = 0.0
    o: float = 0.0


@dataclass(frozen=True)
class Rhythm:
    """Sound module attached to the panel."""
    id: int = 0
    position: RhythmPosition = field(default_factory=RhythmPosition)
    connected: bool = False
    aux_available: bool = False
    active: bool = False
    mode: int = 0
    hardware_version: str = ""
    firmware_version: str = ""


@dataclass(frozen=True)
class PanelInfo:
    """Snapshot of a panel as reported by one info request."""
    name: str
    manufacturer: str
    model: str
    serial_no: str
    firmware_version: str
    state: State
    effects: Effects
    panel_layout: Optional[PanelLayout] = None
    rhythm: Optional[Rhythm] = None


# =============================================================================
# Field Access Helpers
# =============================================================================

def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _object(document: Any, path: str) -> dict:
    if not isinstance(document, dict):
        raise MalformedResponse(path or '$', "expected a JSON object")
    return document


def _get(document: dict, key: str, path: str, required: bool = False, default: Any = None) -> Any:
    """Look up key in document, raising MalformedResponse if a required key is absent."""
    value = document.get(key, _MISSING)
    if value is _MISSING or value is None:
        if required:
            raise MalformedResponse(_join(path, key))
        return default
    return value


def _typed(value: Any, kind, path: str) -> Any:
    # bool is an int subclass; keep them apart
    if kind is not bool and isinstance(value, bool):
        raise MalformedResponse(path, f"expected {kind.__name__}")
    if kind is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, kind):
        raise MalformedResponse(path, f"expected {kind.__name__}")
    return value


def _field(document: dict, key: str, kind, path: str, required: bool = False, default: Any = None) -> Any:
    value = _get(document, key, path, required, _MISSING)
    if value is _MISSING:
        return default
    return _typed(value, kind, _join(path, key))


def decode_ranged(document: Any, path: str, kind=int) -> RangedValue:
    """
    Decode a {"value": v, "min": lo, "max": hi} triple.

    min and max are optional; value is required.
    """
    document = _object(document, path)
    value = _field(document, 'value', kind, path, required=True)
    minimum = _field(document, 'min', kind, path)
    maximum = _field(document, 'max', kind, path)
    try:
        return RangedValue(value, minimum, maximum)
    except ValueError as e:
        raise MalformedResponse(path, str(e)) from e


def _optional_ranged(document: dict, key: str, path: str) -> Optional[RangedValue[int]]:
    value = _get(document, key, path)
    if value is None:
        return None
    return decode_ranged(value, _join(path, key))


# =============================================================================
# Section Decoders
# =============================================================================

def decode_state(document: Any, path: str = 'state') -> State:
    document = _object(document, path)
    on = decode_ranged(_get(document, 'on', path, required=True), _join(path, 'on'), bool)
    return State(
        on=on,
        color_mode=_field(document, 'colorMode', str, path, default=""),
        hue=_optional_ranged(document, 'hue', path),
        saturation=_optional_ranged(document, 'sat', path),
        brightness=_optional_ranged(document, 'brightness', path),
        color_temperature=_optional_ranged(document, 'ct', path),
    )


def _string_list(values: Any, path: str) -> tuple[str, ...]:
    if not isinstance(values, list):
        raise MalformedResponse(path, "expected a JSON array")
    return tuple(_typed(v, str, f"{path}[{i}]") for i, v in enumerate(values))


def decode_effects(document: Any, path: str = 'effects') -> Effects:
    document = _object(document, path)
    return Effects(
        selected=_field(document, 'select', str, path, default=""),
        effects=_string_list(_get(document, 'effectsList', path, default=[]),
                             _join(path, 'effectsList')),
    )


def decode_effects_list(document: Any) -> tuple[str, ...]:
    """
    Decode an effect name list.

    Accepts the bare array returned by GET effects/effectsList as well as
    {"effectsList": [...]} and {"effects": {"effectsList": [...]}}.
    """
    if isinstance(document, list):
        return _string_list(document, 'effectsList')
    document = _object(document, '')
    if 'effects' in document:
        return decode_effects(document['effects']).effects
    return _string_list(_get(document, 'effectsList', '', required=True), 'effectsList')


def decode_position(document: Any, path: str) -> PanelPosition:
    document = _object(document, path)
    return PanelPosition(
        panel_id=_field(document, 'panelId', int, path, required=True),
        x=_field(document, 'x', int, path, default=0),
        y=_field(document, 'y', int, path, default=0),
        o=_field(document, 'o', int, path, default=0),
    )


def decode_panel_layout(document: Any, path: str = 'panelLayout') -> PanelLayout:
    document = _object(document, path)
    layout_path = _join(path, 'layout')
    layout = _object(_get(document, 'layout', path, default={}), layout_path)

    positions_path = _join(layout_path, 'positionData')
    position_data = _get(layout, 'positionData', layout_path, default=[])
    if not isinstance(position_data, list):
        raise MalformedResponse(positions_path, "expected a JSON array")
    positions = tuple(
        decode_position(item, f"{positions_path}[{i}]")
        for i, item in enumerate(position_data)
    )

    return PanelLayout(
        global_orientation=_optional_ranged(document, 'globalOrientation', path),
        num_panels=_field(layout, 'numPanels', int, layout_path, default=len(positions)),
        side_length=_field(layout, 'sideLength', int, layout_path, default=0),
        positions=positions,
    )


def decode_rhythm(document: Any, path: str = 'rhythm') -> Rhythm:
    document = _object(document, path)
    pos_path = _join(path, 'rhythmPos')
    pos = _object(_get(document, 'rhythmPos', path, default={}), pos_path)
    return Rhythm(
        id=_field(document, 'rhythmId', int, path, default=0),
        position=RhythmPosition(
            x=_field(pos, 'x', float, pos_path, default=0.0),
            y=_field(pos, 'y', float, pos_path, default=0.0),
            o=_field(pos, 'o', float, pos_path, default=0.0),
        ),
        connected=_field(document, 'rhythmConnected', bool, path, default=False),
        aux_available=_field(document, 'auxAvailable', bool, path, default=False),
        active=_field(document, 'rhythmActive', bool, path, default=False),
        mode=_field(document, 'rhythmMode', int, path, default=0),
        hardware_version=_field(document, 'hardwareVersion', str, path, default=""),
        firmware_version=_field(document, 'firmwareVersion', str, path, default=""),
    )


# =============================================================================
# Document Decoders
# =============================================================================

def parse_document(text: str) -> Any:
    """Parse a response body as JSON."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponse('$', f"invalid JSON ({e.msg})") from e


def decode_panel_info(document: Any) -> PanelInfo:
    """
    Decode the full panel info document.

    Required: name, model, serialNo, state.on. Everything else may be absent.

    Raises:
        MalformedResponse: a required field is missing or a field has the wrong shape
    """
    document = _object(document, '')

    name = _field(document, 'name', str, '', required=True)
    model = _field(document, 'model', str, '', required=True)
    serial_no = _field(document, 'serialNo', str, '', required=True)
    state = decode_state(_get(document, 'state', '', required=True))

    effects = _get(document, 'effects', '')
    layout = _get(document, 'panelLayout', '')
    rhythm = _get(document, 'rhythm', '')

    return PanelInfo(
        name=name,
        manufacturer=_field(document, 'manufacturer', str, '', default=""),
        model=model,
        serial_no=serial_no,
        firmware_version=_field(document, 'firmwareVersion', str, '', default=""),
        state=state,
        effects=decode_effects(effects) if effects is not None else Effects(),
        panel_layout=decode_panel_layout(layout) if layout is not None else None,
        rhythm=decode_rhythm(rhythm) if rhythm is not None else None,
    )
