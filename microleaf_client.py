#!/usr/bin/env python3
"""
Microleaf Panel Client

Synchronous HTTP client for a single panel. Every operation validates its
input, encodes the request body and issues exactly one request.
"""

import logging
from typing import Optional, Sequence

import requests

from microleaf_protocol import (
    # Resources
    EFFECTS_LIST_PATH,
    EFFECTS_PATH,
    INFO_PATH,
    STATE_PATH,

    # Errors
    DeviceError,
    TransportError,

    # Commands and encoders
    ColorCommand,
    EffectFrame,
    PanelEndpoint,
    SetBrightness,
    SetColorTemperature,
    SetHSL,
    SetOn,
    SetRGB,
    encode_command,
    encode_custom_effect,
    encode_select_effect,
)
from microleaf_state import (
    PanelInfo,
    decode_effects_list,
    decode_panel_info,
    parse_document,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class PanelClient:
    """Client bound to one panel endpoint."""

    def __init__(
        self,
        endpoint: PanelEndpoint,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.endpoint = endpoint
        self._owns_session = session is None
        self.session = requests.Session() if session is None else session
        self.timeout = timeout

    def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "PanelClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def name(self) -> str:
        return self.endpoint.panel_name

    def _request(self, method: str, path: str, body: Optional[dict] = None) -> str:
        """
        Send one request and return the response body.

        Raises:
            TransportError: connection, DNS or timeout failure
            DeviceError: the panel answered with a non-2xx status
        """
        path = path.lstrip('/')
        url = self.endpoint.url(path)
        _LOGGER.debug("%s: %s /%s %s", self.name, method, path, body if body is not None else "")
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            reason = self.endpoint.redact(str(e))
            _LOGGER.debug("%s: %s /%s failed: %s", self.name, method, path, reason)
            raise TransportError(f"{self.endpoint.host}: {reason}") from e

        _LOGGER.debug("%s: HTTP %s %s", self.name, response.status_code, response.text)
        if not 200 <= response.status_code < 300:
            raise DeviceError(response.status_code, response.text)
        return response.text

    def _get_document(self, path: str):
        return parse_document(self._request("GET", path))

    # -------------------------------------------------------------------------
    # State commands
    # -------------------------------------------------------------------------

    def send_command(self, command: ColorCommand) -> None:
        """PUT a validated command to the panel state."""
        self._request("PUT", STATE_PATH, encode_command(command))

    def power_on(self) -> None:
        self.send_command(SetOn(True))

    def power_off(self) -> None:
        self.send_command(SetOn(False))

    def set_hsl(self, hue: int, saturation: int, lightness: int) -> None:
        """Set hue (0-360), saturation (0-100) and lightness (0-100) in one request."""
        self.send_command(SetHSL(hue, saturation, lightness))

    def set_rgb(self, red: int, green: int, blue: int) -> None:
        self.send_command(SetRGB(red, green, blue))

    def set_color_temperature(self, kelvin: int) -> None:
        """Set white color temperature (1200-6500K)."""
        self.send_command(SetColorTemperature(kelvin))

    def set_brightness(self, brightness: int) -> None:
        self.send_command(SetBrightness(brightness))

    # -------------------------------------------------------------------------
    # Effects
    # -------------------------------------------------------------------------

    def set_custom_effect(self, frames: Sequence[EffectFrame]) -> None:
        """
        Display a custom frame stream.

        Raises:
            InvalidEffect: the stream is empty or holds non-frames (no request is sent)
        """
        self._request("PUT", EFFECTS_PATH, encode_custom_effect(frames))

    def select_effect(self, name: str) -> None:
        self._request("PUT", EFFECTS_PATH, encode_select_effect(name))

    def list_effects(self) -> tuple[str, ...]:
        """Return stored effect names in device order."""
        return decode_effects_list(self._get_document(EFFECTS_LIST_PATH))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_info(self) -> PanelInfo:
        """Fetch and decode the full panel info document."""
        return decode_panel_info(self._get_document(INFO_PATH))

    def raw_get(self, path: str) -> str:
        """GET an arbitrary resource below the API root and return the raw body."""
        return self._request("GET", path)
