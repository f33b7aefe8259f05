"""tinc configuration bundle rendering.

The bundle consists of three text files bind-mounted into the mesh
container: the startup directives consumed by the image's entrypoint, the
daemon's ``tinc.conf`` and the ``tinc-up`` hook that configures the tunnel
device once the daemon has created it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from .config import (
    DEFAULT_ARTIFACT_ROOT,
    DEFAULT_MAIN_ADDRESS,
    DEFAULT_MAIN_PRIVATE_ADDRESS,
    DEFAULT_PEER_ADDRESS,
    DEFAULT_PEER_PRIVATE_ADDRESS,
    DEFAULT_PORT,
    DEFAULT_SUBNET,
    VPN_MODE_ANNOTATION,
    EffectiveConfig,
    MeshIdentity,
    MeshRole,
)
from .exceptions import FilesystemFailure

LOG = logging.getLogger(__name__)

STARTUP_CONFIG_FILE = "vk-startup-config.conf"
MAIN_CONFIG_FILE = "vk-main.conf"
UP_SCRIPT_FILE = "vk-tinc-up"

STARTUP_CONFIG_CONTAINER = Path("/environment/default.startup.conf")
MAIN_CONFIG_CONTAINER = Path("/service/tinc/data/tinc.conf")
UP_SCRIPT_CONTAINER = Path("/service/tinc/data/tinc-up")

TUNNEL_INTERFACE = "tap0"

ARTIFACT_DIR_MODE = 0o775
CONFIG_FILE_MODE = 0o644
SCRIPT_FILE_MODE = 0o755


@dataclass(frozen=True)
class Artifact:
    """One generated file and where it lands on the host and in the container."""

    host_path: Path
    container_path: Path
    content: str
    mode: int = CONFIG_FILE_MODE


@dataclass(frozen=True)
class ConfigBundle:
    startup: Artifact
    main: Artifact
    up_script: Artifact

    @property
    def artifacts(self) -> Tuple[Artifact, Artifact, Artifact]:
        return self.startup, self.main, self.up_script

    @property
    def directory(self) -> Path:
        return self.startup.host_path.parent

    def mounts(self) -> List[Tuple[Path, Path]]:
        """Return ``(host, container)`` bind mount pairs in a stable order."""

        return [(a.host_path, a.container_path) for a in self.artifacts]

    def write(self) -> None:
        """Write every artifact, replacing whatever was there before."""

        try:
            self.directory.mkdir(mode=ARTIFACT_DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemFailure(self.directory, exc) from exc

        for artifact in self.artifacts:
            try:
                artifact.host_path.write_text(artifact.content)
                # write_text keeps the mode of an existing file
                os.chmod(artifact.host_path, artifact.mode)
            except OSError as exc:
                raise FilesystemFailure(artifact.host_path, exc) from exc
            LOG.debug("wrote %s", artifact.host_path)


def role_for_workload(workload) -> MeshRole:
    """Return the mesh role requested by the workload's ``vpnmode`` annotation."""

    annotations = workload.metadata.annotations or {}
    if annotations.get(VPN_MODE_ANNOTATION) == MeshRole.PEER.value:
        return MeshRole.PEER
    return MeshRole.MAIN


def resolve_identity(config: EffectiveConfig, role: MeshRole) -> MeshIdentity:
    """Pick the side of the configured mesh pair this node plays as ``role``.

    The settings describe the pair from the main node's point of view:
    ``name`` is the main node and the first ``connect_to`` entry its peer.
    Playing the peer role swaps names and addresses.
    """

    peers = config.connect_to.split()
    remote = peers[0] if peers else config.name

    if role is MeshRole.PEER:
        return MeshIdentity(
            role=role,
            name=remote,
            address=DEFAULT_PEER_ADDRESS,
            private_address=DEFAULT_PEER_PRIVATE_ADDRESS,
            peer_name=config.name,
            peer_address=DEFAULT_MAIN_ADDRESS,
        )
    return MeshIdentity(
        role=role,
        name=config.name,
        address=DEFAULT_MAIN_ADDRESS,
        private_address=DEFAULT_MAIN_PRIVATE_ADDRESS,
        peer_name=remote,
        peer_address=DEFAULT_PEER_ADDRESS,
    )


def peer_list(config: EffectiveConfig, identity: MeshIdentity) -> List[str]:
    """Return the remote nodes whose host bindings go into the directives."""

    if identity.role is MeshRole.PEER:
        return [config.name]
    return config.connect_to.split()


class MeshConfigGenerator:
    """Render tinc configuration bundles for one node."""

    def __init__(
        self,
        *,
        subnet: str = DEFAULT_SUBNET,
        port: int = DEFAULT_PORT,
        artifact_root: Path = DEFAULT_ARTIFACT_ROOT,
    ) -> None:
        self._subnet = subnet
        self._port = port
        self._artifact_root = Path(artifact_root)

    def generate(
        self,
        config: EffectiveConfig,
        identity: MeshIdentity,
        peers: Sequence[str],
    ) -> ConfigBundle:
        directory = self._artifact_root / identity.name
        return ConfigBundle(
            startup=Artifact(
                host_path=directory / STARTUP_CONFIG_FILE,
                container_path=STARTUP_CONFIG_CONTAINER,
                content=self.render_startup(config, identity, peers),
            ),
            main=Artifact(
                host_path=directory / MAIN_CONFIG_FILE,
                container_path=MAIN_CONFIG_CONTAINER,
                content=self.render_main(config, identity),
            ),
            up_script=Artifact(
                host_path=directory / UP_SCRIPT_FILE,
                container_path=UP_SCRIPT_CONTAINER,
                content=self.render_up_script(identity),
                mode=SCRIPT_FILE_MODE,
            ),
        )

    def render_startup(
        self,
        config: EffectiveConfig,
        identity: MeshIdentity,
        peers: Sequence[str],
    ) -> str:
        lines = [f"add {key} = {value}" for key, value in self._settings(config, identity)]
        lines.extend(self._host_block(identity.name, identity.address))
        for peer in peers:
            lines.extend(self._host_block(peer, identity.peer_address))
        return "\n".join(lines) + "\n"

    def render_main(self, config: EffectiveConfig, identity: MeshIdentity) -> str:
        lines = [f"{key} = {value}" for key, value in self._settings(config, identity)]
        return "\n".join(lines) + "\n"

    def render_up_script(self, identity: MeshIdentity) -> str:
        # the address can only be assigned once the device is up
        lines = [
            "#!/bin/bash",
            f"ip link set {TUNNEL_INTERFACE} up",
            f"ip addr add {identity.private_address}/24 dev {TUNNEL_INTERFACE}",
        ]
        return "\n".join(lines) + "\n"

    def _settings(
        self, config: EffectiveConfig, identity: MeshIdentity
    ) -> List[Tuple[str, str]]:
        return [
            ("AutoConnect", config.auto_connect),
            ("ConnectTo", identity.peer_name),
            ("Device", config.device),
            ("DeviceType", config.device_type),
            ("Mode", config.mode),
            ("Name", identity.name),
        ]

    def _host_block(self, node: str, address: str) -> List[str]:
        return [
            f"add {node}.Address = {address}",
            f"add {node}.Subnet = {self._subnet}",
            f"add {node}.Port = {self._port}",
        ]
