#!/usr/bin/env python3
"""
Microleaf Configuration

Loads panel endpoints from a TOML file (default: ~/.microleafrc):

    [[host_configs]]
    panel_name = "office"
    host = "192.168.1.20:16021"
    access_token = "..."
"""

import logging
import tomllib
from pathlib import Path
from typing import Optional, Union

from microleaf_protocol import MicroleafError, PanelEndpoint

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".microleafrc"
REQUIRED_KEYS = ('panel_name', 'host', 'access_token')


class ConfigError(MicroleafError):
    """Raised when the configuration file is missing, invalid or has no matching panel."""


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve the config file location.

    Args:
        path: A directory holding .microleafrc, a path to the file itself,
              or None for the user's home directory
    """
    if path is None:
        return Path.home() / CONFIG_FILE_NAME
    path = Path(path).expanduser()
    if path.is_dir():
        return path / CONFIG_FILE_NAME
    return path


def parse_config(data: dict) -> list[PanelEndpoint]:
    """Convert a parsed TOML document into an ordered list of endpoints."""
    records = data.get('host_configs', [])
    if not isinstance(records, list):
        raise ConfigError("host_configs must be an array of tables")

    endpoints = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ConfigError(f"host_configs[{index}] must be a table")
        for key in REQUIRED_KEYS:
            value = record.get(key)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"host_configs[{index}] is missing required key '{key}'")
        endpoints.append(PanelEndpoint(
            panel_name=record['panel_name'],
            host=record['host'],
            access_token=record['access_token'],
        ))
    return endpoints


def load_config(path: Optional[Union[str, Path]] = None) -> list[PanelEndpoint]:
    """Read and parse the config file."""
    config_path = resolve_config_path(path)
    _LOGGER.debug("Reading config file %s", config_path)
    try:
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {config_path}") from e
    except OSError as e:
        raise ConfigError(f"failed to read config file {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"failed to parse config file {config_path}: {e}") from e
    return parse_config(data)


def find_endpoint(endpoints: list[PanelEndpoint], panel_name: str) -> PanelEndpoint:
    """Return the first endpoint whose name matches exactly."""
    for index, endpoint in enumerate(endpoints):
        if endpoint.panel_name == panel_name:
            _LOGGER.debug("current config [%d]: %s", index, endpoint)
            return endpoint
    raise ConfigError(f"no config matching panel name '{panel_name}'")
