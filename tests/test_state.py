"""Tests for decoding the panel info document."""

import pytest

from microleaf_protocol import MalformedResponse
from microleaf_state import (
    Effects,
    PanelPosition,
    RangedValue,
    decode_effects_list,
    decode_panel_info,
    decode_ranged,
    parse_document,
)


class TestRangedValue:

    def test_bounds_optional(self):
        value = RangedValue(5)
        assert value.min is None
        assert value.max is None
        assert not value.bounded

    def test_value_outside_bounds(self):
        with pytest.raises(ValueError):
            RangedValue(101, 0, 100)

    def test_decode_keeps_missing_bounds_as_none(self):
        value = decode_ranged({"value": 0, "max": 360}, "hue")
        assert value == RangedValue(0, None, 360)

    def test_decode_rejects_inconsistent_bounds(self):
        with pytest.raises(MalformedResponse) as exc_info:
            decode_ranged({"value": 400, "min": 0, "max": 360}, "state.hue")
        assert exc_info.value.path == "state.hue"

    def test_decode_requires_value(self):
        with pytest.raises(MalformedResponse) as exc_info:
            decode_ranged({"min": 0}, "state.brightness")
        assert exc_info.value.path == "state.brightness.value"


class TestDecodePanelInfo:

    def test_full_document(self, info_document):
        info = decode_panel_info(info_document)

        assert info.name == "Office Canvas"
        assert info.manufacturer == "Nanoleaf"
        assert info.model == "NL29"
        assert info.serial_no == "S19124C8036"
        assert info.firmware_version == "5.1.0"

        assert info.state.on == RangedValue(True)
        assert info.state.color_mode == "hs"
        assert info.state.hue == RangedValue(120, 0, 360)
        assert info.state.saturation == RangedValue(80, 0, 100)
        assert info.state.brightness == RangedValue(64, 0, 100)
        assert info.state.color_temperature == RangedValue(4000, 1200, 6500)

        assert info.effects == Effects("Northern Lights", ("Color Burst", "Flames", "Northern Lights"))

        layout = info.panel_layout
        assert layout.global_orientation == RangedValue(30, 0, 360)
        assert layout.num_panels == 2
        assert layout.side_length == 150
        assert layout.positions == (PanelPosition(107, 74, 43, 180), PanelPosition(184, 149, 86, 240))

        rhythm = info.rhythm
        assert rhythm.id == 83
        assert rhythm.connected is True
        assert rhythm.active is False
        assert rhythm.aux_available is False
        assert rhythm.mode == 0
        assert (rhythm.position.x, rhythm.position.y, rhythm.position.o) == (299.0, 86.0, 60.0)
        assert rhythm.hardware_version == "1.4"
        assert rhythm.firmware_version == "2.4.3"

    def test_missing_state_on(self, info_document):
        del info_document["state"]["on"]
        with pytest.raises(MalformedResponse) as exc_info:
            decode_panel_info(info_document)
        assert exc_info.value.path == "state.on"

    @pytest.mark.parametrize("key", ["name", "model", "serialNo", "state"])
    def test_missing_required_top_level(self, info_document, key):
        del info_document[key]
        with pytest.raises(MalformedResponse) as exc_info:
            decode_panel_info(info_document)
        assert exc_info.value.path == key

    def test_hue_without_bounds(self, info_document):
        info_document["state"]["hue"] = {"value": 200}
        info = decode_panel_info(info_document)
        assert info.state.hue.value == 200
        assert info.state.hue.min is None
        assert info.state.hue.max is None

    def test_optional_sections_absent(self, info_document):
        for key in ("manufacturer", "firmwareVersion", "effects", "panelLayout", "rhythm"):
            del info_document[key]
        del info_document["state"]["ct"]
        info = decode_panel_info(info_document)
        assert info.manufacturer == ""
        assert info.effects == Effects()
        assert info.panel_layout is None
        assert info.rhythm is None
        assert info.state.color_temperature is None

    def test_null_rhythm(self, info_document):
        info_document["rhythm"] = None
        assert decode_panel_info(info_document).rhythm is None

    def test_empty_layout_and_effects(self, info_document):
        info_document["panelLayout"]["layout"] = {"numPanels": 0, "sideLength": 150, "positionData": []}
        info_document["effects"]["effectsList"] = []
        info = decode_panel_info(info_document)
        assert info.panel_layout.positions == ()
        assert info.panel_layout.num_panels == 0
        assert info.effects.effects == ()

    def test_wrong_type_names_path(self, info_document):
        info_document["panelLayout"]["layout"]["positionData"][1]["x"] = "far"
        with pytest.raises(MalformedResponse) as exc_info:
            decode_panel_info(info_document)
        assert exc_info.value.path == "panelLayout.layout.positionData[1].x"

    def test_bool_is_not_an_int(self, info_document):
        info_document["state"]["brightness"]["value"] = True
        with pytest.raises(MalformedResponse):
            decode_panel_info(info_document)

    def test_not_an_object(self):
        with pytest.raises(MalformedResponse):
            decode_panel_info(["name"])

    def test_result_is_immutable(self, info_document):
        info = decode_panel_info(info_document)
        with pytest.raises(AttributeError):
            info.name = "other"


class TestDecodeEffectsList:

    @pytest.mark.parametrize("document", [
        ["Aurora", "Flow"],
        {"effectsList": ["Aurora", "Flow"]},
        {"effects": {"effectsList": ["Aurora", "Flow"]}},
    ])
    def test_shapes_preserve_order(self, document):
        assert decode_effects_list(document) == ("Aurora", "Flow")

    def test_empty(self):
        assert decode_effects_list([]) == ()

    def test_missing_list(self):
        with pytest.raises(MalformedResponse):
            decode_effects_list({"select": "Aurora"})

    def test_non_string_entry(self):
        with pytest.raises(MalformedResponse) as exc_info:
            decode_effects_list(["Aurora", 3])
        assert exc_info.value.path == "effectsList[1]"


class TestParseDocument:

    def test_valid(self):
        assert parse_document('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_invalid_json(self):
        with pytest.raises(MalformedResponse, match="invalid JSON"):
            parse_document("<html>")

    def test_empty_body(self):
        with pytest.raises(MalformedResponse):
            parse_document("")
