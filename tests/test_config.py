"""Tests for config file loading and panel lookup."""

import pytest

from microleaf_config import (
    CONFIG_FILE_NAME,
    ConfigError,
    find_endpoint,
    load_config,
    parse_config,
    resolve_config_path,
)
from microleaf_protocol import PanelEndpoint

CONFIG_TEXT = """
[[host_configs]]
panel_name = "office"
host = "192.168.1.20:16021"
access_token = "tokenA"

[[host_configs]]
panel_name = "bedroom"
host = "192.168.1.21:16021"
access_token = "tokenB"
"""


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text(CONFIG_TEXT)
    return tmp_path


class TestLoadConfig:

    def test_from_directory(self, config_dir):
        endpoints = load_config(config_dir)
        assert endpoints == [
            PanelEndpoint("office", "192.168.1.20:16021", "tokenA"),
            PanelEndpoint("bedroom", "192.168.1.21:16021", "tokenB"),
        ]

    def test_from_file_path(self, config_dir):
        endpoints = load_config(str(config_dir / CONFIG_FILE_NAME))
        assert [e.panel_name for e in endpoints] == ["office", "bedroom"]

    def test_default_is_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert resolve_config_path() == tmp_path / CONFIG_FILE_NAME

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path)

    def test_invalid_toml(self, tmp_path):
        (tmp_path / CONFIG_FILE_NAME).write_text("[[host_configs]\npanel_name = ")
        with pytest.raises(ConfigError, match="failed to parse"):
            load_config(tmp_path)

    def test_no_records(self):
        assert parse_config({}) == []

    @pytest.mark.parametrize("key", ["panel_name", "host", "access_token"])
    def test_missing_required_key(self, key):
        record = {"panel_name": "office", "host": "10.0.0.2:16021", "access_token": "t"}
        del record[key]
        with pytest.raises(ConfigError, match=key):
            parse_config({"host_configs": [record]})

    def test_host_configs_must_be_array(self):
        with pytest.raises(ConfigError):
            parse_config({"host_configs": {"panel_name": "office"}})


class TestFindEndpoint:

    def test_exact_match(self, config_dir):
        endpoint = find_endpoint(load_config(config_dir), "bedroom")
        assert endpoint.access_token == "tokenB"

    def test_no_partial_match(self, config_dir):
        with pytest.raises(ConfigError, match="no config matching"):
            find_endpoint(load_config(config_dir), "office2")

    def test_case_sensitive(self, config_dir):
        with pytest.raises(ConfigError):
            find_endpoint(load_config(config_dir), "Office")
