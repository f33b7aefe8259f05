"""Configuration loading for the tinc agent.

The agent reads a YAML file for its watchers and, unless an oslo.config file
is given, for the provider settings too.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import yaml
from oslo_config import cfg

from tinc_provider.config import (
    DEFAULT_ARTIFACT_ROOT,
    DEFAULT_DOCKER_BINARY,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
)
from vkubelet.config_extensions import (
    init_config_from_conf,
    provider_name_from_conf,
    register_provider_opts,
)
from vkubelet.registry import InitConfig


@dataclass
class ProviderConfig:
    name: str
    node_name: str
    config_path: Optional[Path] = None
    internal_ip: str = ""
    daemon_port: int = DEFAULT_PORT
    artifact_root: Path = DEFAULT_ARTIFACT_ROOT
    image: str = DEFAULT_IMAGE
    docker_binary: str = DEFAULT_DOCKER_BINARY
    runtime_timeout: Optional[float] = None

    def to_init_config(self) -> InitConfig:
        return InitConfig(
            node_name=self.node_name,
            config_path=self.config_path,
            internal_ip=self.internal_ip,
            daemon_port=self.daemon_port,
            artifact_root=self.artifact_root,
            image=self.image,
            docker_binary=self.docker_binary,
            runtime_timeout=self.runtime_timeout,
        )


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0


@dataclass
class AgentConfig:
    provider: Optional[ProviderConfig] = None
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_provider(section: dict) -> ProviderConfig:
    config_path = section.get("config_path")
    timeout = section.get("runtime_timeout")
    return ProviderConfig(
        name=str(section.get("name", "tinc")),
        node_name=str(section["node_name"]),
        config_path=Path(config_path) if config_path else None,
        internal_ip=str(section.get("internal_ip", "")),
        daemon_port=int(section.get("daemon_port", DEFAULT_PORT)),
        artifact_root=Path(section.get("artifact_root", DEFAULT_ARTIFACT_ROOT)),
        image=str(section.get("image", DEFAULT_IMAGE)),
        docker_binary=str(section.get("docker_binary", DEFAULT_DOCKER_BINARY)),
        runtime_timeout=float(timeout) if timeout is not None else None,
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        if "path" not in entry:
            raise ValueError("watcher entries require a 'path'")
        watchers.append(
            WatcherConfig(
                type=str(entry.get("type", "file")),
                path=Path(entry["path"]),
                interval=float(entry.get("interval", 5.0)),
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    provider_section = data.get("provider")
    provider = _parse_provider(provider_section) if provider_section is not None else None

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return AgentConfig(provider=provider, watchers=watchers)


def load_provider_conf(path: Path) -> Tuple[str, InitConfig]:
    """Read the ``[provider]`` group of an oslo.config INI file."""

    conf = cfg.ConfigOpts()
    register_provider_opts(conf)
    conf(
        args=[],
        project="tinc-kubelet",
        default_config_files=[str(path)],
        default_config_dirs=[],
    )
    return provider_name_from_conf(conf), init_config_from_conf(conf)


def provider_settings(
    config: AgentConfig, provider_conf: Optional[Path] = None
) -> Tuple[str, InitConfig]:
    """Return the provider name and init parameters the agent should use.

    An oslo.config file takes precedence over the ``provider`` section of the
    agent configuration.
    """

    if provider_conf is not None:
        return load_provider_conf(provider_conf)
    if config.provider is None:
        raise ValueError("Configuration missing 'provider' section")
    return config.provider.name, config.provider.to_init_config()
