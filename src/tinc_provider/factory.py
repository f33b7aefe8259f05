"""Registration hook exposing the tinc provider to a :class:`ProviderRegistry`."""

from __future__ import annotations

from vkubelet.registry import InitConfig, ProviderRegistry

from .config import DEFAULT_SUBNET
from .provider import TincProvider
from .runtime import RuntimeDriver

PROVIDER_NAME = "tinc"


def init_tinc(cfg: InitConfig) -> TincProvider:
    return TincProvider.from_config_file(
        cfg.config_path,
        cfg.node_name,
        internal_ip=cfg.internal_ip,
        subnet=DEFAULT_SUBNET,
        port=cfg.daemon_port,
        image=cfg.image,
        artifact_root=cfg.artifact_root,
        runtime=RuntimeDriver(binary=cfg.docker_binary, timeout=cfg.runtime_timeout),
    )


def register(registry: ProviderRegistry) -> None:
    registry.register(PROVIDER_NAME, init_tinc)
