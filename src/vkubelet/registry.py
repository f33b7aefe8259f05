"""Name-keyed provider registry used by the agent and the integration tests."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from tinc_provider.config import (
    DEFAULT_ARTIFACT_ROOT,
    DEFAULT_DOCKER_BINARY,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
)

from .providers import Provider


@dataclass(frozen=True)
class InitConfig:
    """Parameters the host passes to a provider init function."""

    node_name: str
    config_path: Optional[Path] = None
    internal_ip: str = ""
    daemon_port: int = DEFAULT_PORT
    artifact_root: Path = DEFAULT_ARTIFACT_ROOT
    image: str = DEFAULT_IMAGE
    docker_binary: str = DEFAULT_DOCKER_BINARY
    runtime_timeout: Optional[float] = None


InitFunc = Callable[[InitConfig], Provider]


class ProviderRegistry:
    """Map provider names to the callables that construct them."""

    def __init__(self) -> None:
        self._providers: Dict[str, InitFunc] = {}

    def register(self, name: str, init: InitFunc) -> None:
        if name in self._providers:
            raise ValueError(f"provider '{name}' already registered")
        self._providers[name] = init

    def unregister(self, name: str) -> None:
        self._providers.pop(name, None)

    def names(self) -> List[str]:
        return sorted(self._providers)

    def build(self, name: str, config: InitConfig) -> Provider:
        try:
            init = self._providers[name]
        except KeyError:
            raise ValueError(f"provider '{name}' is not registered") from None
        return init(config)
