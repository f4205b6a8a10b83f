"""Shared fixtures: a realistic panel info document and a stubbed HTTP session."""

import copy
from unittest.mock import MagicMock

import pytest
import requests

from microleaf_protocol import PanelEndpoint


INFO_DOCUMENT = {
    "name": "Office Canvas",
    "serialNo": "S19124C8036",
    "manufacturer": "Nanoleaf",
    "firmwareVersion": "5.1.0",
    "model": "NL29",
    "state": {
        "on": {"value": True},
        "brightness": {"value": 64, "max": 100, "min": 0},
        "hue": {"value": 120, "max": 360, "min": 0},
        "sat": {"value": 80, "max": 100, "min": 0},
        "ct": {"value": 4000, "max": 6500, "min": 1200},
        "colorMode": "hs",
    },
    "effects": {
        "select": "Northern Lights",
        "effectsList": ["Color Burst", "Flames", "Northern Lights"],
    },
    "panelLayout": {
        "layout": {
            "numPanels": 2,
            "sideLength": 150,
            "positionData": [
                {"panelId": 107, "x": 74, "y": 43, "o": 180, "shapeType": 0},
                {"panelId": 184, "x": 149, "y": 86, "o": 240, "shapeType": 0},
            ],
        },
        "globalOrientation": {"value": 30, "max": 360, "min": 0},
    },
    "rhythm": {
        "rhythmConnected": True,
        "rhythmActive": False,
        "rhythmId": 83,
        "hardwareVersion": "1.4",
        "firmwareVersion": "2.4.3",
        "auxAvailable": False,
        "rhythmMode": 0,
        "rhythmPos": {"x": 299.0, "y": 86.0, "o": 60.0},
    },
}


def make_response(status_code: int = 200, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def info_document() -> dict:
    return copy.deepcopy(INFO_DOCUMENT)


@pytest.fixture
def endpoint() -> PanelEndpoint:
    return PanelEndpoint("office", "192.168.1.20:16021", "s3cr3tT0ken")


@pytest.fixture
def session() -> MagicMock:
    """Session stub answering every request with 204 No Content."""
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_response(204, "")
    return session


@pytest.fixture(name="make_response")
def make_response_fixture():
    return make_response
