"""Resolve the effective settings of a node from a provider config source."""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .config import EffectiveConfig
from .exceptions import InvalidConfiguration
from .quantity import parse_quantity

LOG = logging.getLogger(__name__)

# config source key -> EffectiveConfig attribute
SETTING_KEYS = {
    "autoconnect": "auto_connect",
    "connect": "connect_to",
    "device": "device",
    "devicetype": "device_type",
    "mode": "mode",
    "name": "name",
    "cpu": "cpu",
    "memory": "memory",
    "pods": "pods",
}

CAPACITY_KEYS = ("cpu", "memory", "pods")


def load_config_source(path: Optional[Path]) -> Dict[str, Any]:
    """Read a JSON or YAML provider config file.

    ``None`` yields an empty source, which resolves to all defaults.  A
    missing file is not masked: the caller fails at construction.
    """

    if path is None:
        return {}

    text = Path(path).read_text()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidConfiguration("config source", str(path), str(exc)) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfiguration(
            "config source", str(path), "must be a mapping of node names to settings"
        )
    return data


def _settings_for(source: Mapping[str, Any], node_name: str) -> Dict[str, str]:
    entry = source.get(node_name)
    if entry is None:
        LOG.debug("no settings for node %s, using defaults", node_name)
        return {}
    if not isinstance(entry, dict):
        raise InvalidConfiguration(node_name, entry, "node settings must be a mapping")

    settings: Dict[str, str] = {}
    for key, value in entry.items():
        attr = SETTING_KEYS.get(key)
        if attr is None:
            LOG.debug("ignoring unknown setting %r for node %s", key, node_name)
            continue
        if value is None or value == "":
            continue
        settings[attr] = str(value)
    return settings


def resolve(source: Mapping[str, Any], node_name: str) -> EffectiveConfig:
    """Return the validated :class:`EffectiveConfig` of ``node_name``.

    Blank or absent settings fall back to the defaults declared on
    :class:`EffectiveConfig`.  Capacity values are validated even when they
    came from the defaults.
    """

    config = EffectiveConfig(**_settings_for(source, node_name))

    for key in CAPACITY_KEYS:
        value = getattr(config, key)
        try:
            parse_quantity(value)
        except ValueError as exc:
            raise InvalidConfiguration(key, value, str(exc)) from exc

    LOG.debug(
        "resolved node %s: %s",
        node_name,
        ", ".join(f"{f.name}={getattr(config, f.name)}" for f in fields(config)),
    )
    return config
