#!/usr/bin/env python3
"""
Microleaf CLI - Command-line interface for Nanoleaf-style panels

Usage:
    microleaf -n <panel_name> [-f <path>] [-v] <command>

Examples:
    microleaf -n office on
    microleaf -n office hsl 240 100 60
    microleaf -n office rgb 255 0 0
    microleaf -n office temp 2700
    microleaf -n office brightness 40
    microleaf -n office effect list
    microleaf -n office effect select "Northern Lights"
    microleaf -n office effect custom 12 255 0 0 10  34 0 0 255 10
    microleaf -n office panel info
    microleaf -n office get state/brightness
"""

import argparse
import logging
import math
import sys
from typing import Optional

from microleaf_client import DEFAULT_TIMEOUT, PanelClient
from microleaf_config import ConfigError, find_endpoint, load_config
from microleaf_protocol import (
    BRIGHTNESS_RANGE,
    CHANNEL_RANGE,
    HUE_RANGE,
    LIGHTNESS_RANGE,
    PANEL_ID_RANGE,
    SATURATION_RANGE,
    TEMPERATURE_RANGE,
    TRANSITION_RANGE,
    DeviceError,
    EffectFrame,
    InvalidEffect,
    MalformedResponse,
    MicroleafError,
    OutOfRange,
    TransportError,
    validate_range,
)
from microleaf_state import PanelInfo, PanelLayout, RangedValue

_LOGGER = logging.getLogger(__name__)


# Exit codes
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_CONFIG = 1
EXIT_INVALID_INPUT = 3
EXIT_TRANSPORT = 4
EXIT_DEVICE = 5
EXIT_MALFORMED = 6

ERROR_EXIT_CODES = (
    (OutOfRange, EXIT_INVALID_INPUT),
    (InvalidEffect, EXIT_INVALID_INPUT),
    (TransportError, EXIT_TRANSPORT),
    (DeviceError, EXIT_DEVICE),
    (MalformedResponse, EXIT_MALFORMED),
)

FRAME_FIELDS = (
    ('panel id', PANEL_ID_RANGE),
    ('red', CHANNEL_RANGE),
    ('green', CHANNEL_RANGE),
    ('blue', CHANNEL_RANGE),
    ('transition time', TRANSITION_RANGE),
)

PANEL_VIEWS = ('info', 'layout', 'model', 'name', 'state', 'version')

LOGGER_NAMES = (__name__, 'microleaf_client', 'microleaf_config')


# =============================================================================
# Argument Parsing
# =============================================================================

def parse_ranged_int(text: str, field: str, minimum: int, maximum: int) -> int:
    """Parse a decimal integer and check it against an inclusive range."""
    try:
        value = int(text, 10)
    except ValueError:
        raise OutOfRange(field, text, minimum, maximum) from None
    return validate_range(field, value, minimum, maximum)


def ranged_int(field: str, bounds: tuple[int, int]):
    """argparse type for an integer argument within bounds."""
    def parse(text: str) -> int:
        try:
            return parse_ranged_int(text, field, *bounds)
        except OutOfRange as e:
            raise argparse.ArgumentTypeError(str(e)) from None
    return parse


def positive_seconds(text: str) -> float:
    """argparse type for a finite timeout above zero."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"timeout must be a number of seconds, got {text!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError(f"timeout must be greater than 0, got {text}")
    return value


def parse_frames(values: list[str]) -> list[EffectFrame]:
    """
    Group custom effect arguments into frames of
    <panel id> <red> <green> <blue> <transition time>.

    Raises:
        ValueError: the argument count is not a multiple of 5
        OutOfRange: a value does not fit its field
    """
    width = len(FRAME_FIELDS)
    if not values or len(values) % width:
        raise ValueError(
            f"expected groups of {width} values (panel red green blue transition), got {len(values)}"
        )

    frames = []
    for offset in range(0, len(values), width):
        fields = [
            parse_ranged_int(text, name, *bounds)
            for text, (name, bounds) in zip(values[offset:offset + width], FRAME_FIELDS)
        ]
        frames.append(EffectFrame(*fields))
    return frames


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='microleaf',
        description='Microleaf - Control Nanoleaf panels on your network.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  on                     Turn panel on
  off                    Turn panel off
  hsl H S L              Set hue (0-360), saturation (0-100), lightness (0-100)
  rgb R G B              Set RGB color (0-255 each)
  temp K                 Set color temperature (1200-6500)
  brightness B           Set brightness (0-100)
  effect list            List stored effects
  effect select NAME     Select a stored effect
  effect custom [PANEL RED GREEN BLUE TRANSITION] ...
                         Display a custom frame stream
  panel VIEW             Show info, layout, model, name, state or version
  get PATH               Send a GET request below the API root
        """
    )

    # Global options
    parser.add_argument('-n', '--name', required=True, dest='panel_name',
                        help='Panel name from the config file')
    parser.add_argument('-f', '--file', dest='config_path',
                        help='Config file, or directory holding .microleafrc (default: home directory)')
    parser.add_argument('-t', '--timeout', type=positive_seconds, default=DEFAULT_TIMEOUT,
                        help=f'Request timeout in seconds (default: {DEFAULT_TIMEOUT})')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Command')

    on_parser = subparsers.add_parser('on', help='Turn panel on')
    on_parser.set_defaults(func=cmd_on, action='turn on panel')

    off_parser = subparsers.add_parser('off', help='Turn panel off')
    off_parser.set_defaults(func=cmd_off, action='turn off panel')

    hsl_parser = subparsers.add_parser('hsl', help='Set HSL')
    hsl_parser.add_argument('hue', type=ranged_int('hue', HUE_RANGE))
    hsl_parser.add_argument('saturation', type=ranged_int('saturation', SATURATION_RANGE))
    hsl_parser.add_argument('lightness', type=ranged_int('lightness', LIGHTNESS_RANGE))
    hsl_parser.set_defaults(func=cmd_hsl, action='set HSL')

    rgb_parser = subparsers.add_parser('rgb', help='Set RGB')
    rgb_parser.add_argument('red', type=ranged_int('red', CHANNEL_RANGE))
    rgb_parser.add_argument('green', type=ranged_int('green', CHANNEL_RANGE))
    rgb_parser.add_argument('blue', type=ranged_int('blue', CHANNEL_RANGE))
    rgb_parser.set_defaults(func=cmd_rgb, action='set RGB')

    temp_parser = subparsers.add_parser('temp', help='Set color temperature')
    temp_parser.add_argument('temperature', type=ranged_int('temperature', TEMPERATURE_RANGE))
    temp_parser.set_defaults(func=cmd_temp, action='set color temperature')

    brightness_parser = subparsers.add_parser('brightness', help='Set brightness')
    brightness_parser.add_argument('brightness', type=ranged_int('brightness', BRIGHTNESS_RANGE))
    brightness_parser.set_defaults(func=cmd_brightness, action='set brightness')

    effect_parser = subparsers.add_parser('effect', help='Control effects')
    effect_sub = effect_parser.add_subparsers(dest='effect_command', required=True)

    list_parser = effect_sub.add_parser('list', help='List stored effects')
    list_parser.set_defaults(func=cmd_effect_list, action='retrieve effects list')

    select_parser = effect_sub.add_parser('select', help='Select a stored effect')
    select_parser.add_argument('effect_name')
    select_parser.set_defaults(func=cmd_effect_select, action='select effect')

    custom_parser = effect_sub.add_parser('custom', help='Display a custom frame stream')
    custom_parser.add_argument('values', nargs='*', metavar='PANEL RED GREEN BLUE TRANSITION')
    custom_parser.set_defaults(func=cmd_effect_custom, action='start external control',
                               usage_parser=custom_parser)

    panel_parser = subparsers.add_parser('panel', help='Show panel information')
    panel_parser.add_argument('view', choices=PANEL_VIEWS)
    panel_parser.set_defaults(func=cmd_panel, action='get panel state')

    get_parser = subparsers.add_parser('get', help='Send a GET request to the panel')
    get_parser.add_argument('path')
    get_parser.set_defaults(func=cmd_get, action='get')

    return parser


# =============================================================================
# Rendering
# =============================================================================

def _bound(value) -> str:
    return '?' if value is None else str(value)


def format_range(ranged: RangedValue, unit: str = '') -> str:
    """Render '[min-max]' with '?' for a bound the device did not report."""
    return f"[{_bound(ranged.min)}{unit}-{_bound(ranged.max)}{unit}]"


def format_ranged(ranged: Optional[RangedValue], width: int = 3, unit: str = '', pad: str = '') -> str:
    if ranged is None:
        return 'n/a'
    return f"{ranged.value:>{width}}{unit}{pad} {format_range(ranged, unit)}"


def print_state(info: PanelInfo, indent: str = '') -> None:
    state = info.state
    print(f"{indent}On:  ", state.on.value)
    print(f"{indent}Mode:", state.color_mode)
    print()
    print(f"{indent}Hue:        {format_ranged(state.hue, unit='°')}")
    print(f"{indent}Saturation: {format_ranged(state.saturation, pad=' ')}")
    print(f"{indent}Brightness: {format_ranged(state.brightness, pad=' ')}")
    print()
    print(f"{indent}Color Temperature: {format_ranged(state.color_temperature, width=4, unit='K')}")
    print()


def print_layout(layout: Optional[PanelLayout], indent: str = '', heading: str = 'Positions') -> None:
    if layout is None:
        print(f"{indent}No layout reported")
        print()
        return
    orientation = layout.global_orientation
    if orientation is None:
        print(f"{indent}Orientation: n/a")
    else:
        print(f"{indent}Orientation: {orientation.value}° {format_range(orientation, '°')}")
    print(f"{indent}Panels:     ", layout.num_panels)
    print(f"{indent}Side Length:", layout.side_length)
    print()
    print(f"{indent}{heading}:")
    for panel in layout.positions:
        print(f"{indent}- {panel.panel_id:>3}: ({panel.x}, {panel.y}, {panel.o}°)")
    print()


def print_versions(info: PanelInfo, indent: str = '') -> None:
    rhythm = info.rhythm
    print(f"{indent}Hardware:", rhythm.hardware_version if rhythm else 'n/a')
    print(f"{indent}Firmware:", rhythm.firmware_version if rhythm else 'n/a')


def print_info(info: PanelInfo) -> None:
    """Print the full panel report."""
    print("Name:", info.name)
    print()
    print("Manufacturer:", info.manufacturer)
    print("Model:       ", info.model)
    print("Serial No:   ", info.serial_no)
    print()
    print("Firmware Version:", info.firmware_version)
    print()
    print("State:")
    print_state(info, indent='  ')
    print("Effects:")
    print("  Selected:", info.effects.selected)
    print("  Available:")
    for effect in info.effects.effects:
        print("  -", effect)
    print()
    print("Layout:")
    print_layout(info.panel_layout, indent='  ', heading='Panel Positions')
    print("Rhythm:")
    rhythm = info.rhythm
    if rhythm is None:
        print("  Not connected")
        print()
        return
    print("  ID:      ", rhythm.id)
    pos = rhythm.position
    print(f"  Position: ({pos.x:.0f}, {pos.y:.0f}, {pos.o:.0f}°)")
    print()
    print("  Connected:    ", rhythm.connected)
    print("  Aux Available:", rhythm.aux_available)
    print("  Active:       ", rhythm.active)
    print("  Mode:         ", rhythm.mode)
    print()
    print("  Versions:")
    print_versions(info, indent='    ')
    print()


# =============================================================================
# Command Handlers
# =============================================================================

def cmd_on(args, client: PanelClient):
    client.power_on()


def cmd_off(args, client: PanelClient):
    client.power_off()


def cmd_hsl(args, client: PanelClient):
    client.set_hsl(args.hue, args.saturation, args.lightness)


def cmd_rgb(args, client: PanelClient):
    client.set_rgb(args.red, args.green, args.blue)


def cmd_temp(args, client: PanelClient):
    client.set_color_temperature(args.temperature)


def cmd_brightness(args, client: PanelClient):
    client.set_brightness(args.brightness)


def cmd_effect_list(args, client: PanelClient):
    for name in client.list_effects():
        print(name)


def cmd_effect_select(args, client: PanelClient):
    client.select_effect(args.effect_name)


def cmd_effect_custom(args, client: PanelClient):
    client.set_custom_effect(args.frames)


def cmd_panel(args, client: PanelClient):
    """Handle panel command."""
    info = client.get_info()

    if args.view == 'info':
        print_info(info)
    elif args.view == 'layout':
        print_layout(info.panel_layout)
    elif args.view == 'model':
        print(info.model)
    elif args.view == 'name':
        print(info.name)
    elif args.view == 'state':
        print_state(info)
    elif args.view == 'version':
        print("Panel Firmware:", info.firmware_version)
        print()
        print("Rhythm:")
        print_versions(info, indent='  ')
        print()


def cmd_get(args, client: PanelClient):
    print(client.raw_get(args.path))


# =============================================================================
# Entry Point
# =============================================================================

def exit_code_for(error: MicroleafError) -> int:
    for kind, code in ERROR_EXIT_CODES:
        if isinstance(error, kind):
            return code
    return EXIT_USAGE


def configure_logging(verbose: bool) -> None:
    """
    Log at WARNING, raising only the microleaf modules to DEBUG under -v.

    Library loggers such as urllib3 stay at WARNING: their request lines
    carry the access token in the URL.
    """
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s %(name)s: %(message)s')
    level = logging.DEBUG if verbose else logging.NOTSET
    for name in LOGGER_NAMES:
        logging.getLogger(name).setLevel(level)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    configure_logging(args.verbose)

    # Custom frames are checked at the boundary, before config or network
    if args.func is cmd_effect_custom:
        try:
            args.frames = parse_frames(args.values)
        except ValueError as e:
            args.usage_parser.error(str(e))

    try:
        endpoints = load_config(args.config_path)
        _LOGGER.debug("configs: %s", endpoints)
        endpoint = find_endpoint(endpoints, args.panel_name)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    with PanelClient(endpoint, timeout=args.timeout) as client:
        try:
            args.func(args, client)
        except MicroleafError as e:
            print(f"error: failed to {args.action}: {e}", file=sys.stderr)
            return exit_code_for(e)

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
