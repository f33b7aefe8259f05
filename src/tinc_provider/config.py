"""Configuration values and defaults for the tinc provider.

The dataclasses here describe the resolved node settings and the per-call
mesh identity.  They are intentionally free of I/O; loading and validation
live in :mod:`tinc_provider.resolver`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# tinc settings defaults
DEFAULT_AUTO_CONNECT = "yes"
DEFAULT_DEVICE = "/dev/net/tun"
DEVICE_TYPE_TAP = "tap"
DEVICE_TYPE_DUMMY = "dummy"
MODE_ROUTER = "router"
MODE_SWITCH = "switch"

DEFAULT_MAIN_NAME = "nodemain"
DEFAULT_REMOTE_PEERS = "nodepeer"

# Capacity defaults
DEFAULT_CPU_CAPACITY = "20"
DEFAULT_MEMORY_CAPACITY = "100Gi"
DEFAULT_POD_CAPACITY = "20"

# Mesh addressing
DEFAULT_MAIN_ADDRESS = "172.17.0.2"
DEFAULT_PEER_ADDRESS = "172.17.0.3"
DEFAULT_MAIN_PRIVATE_ADDRESS = "10.1.1.1"
DEFAULT_PEER_PRIVATE_ADDRESS = "10.1.1.2"
DEFAULT_SUBNET = "10.1.1.0/24"
DEFAULT_PORT = 655

DEFAULT_IMAGE = "quay.io/dongsupark/tinc"
DEFAULT_DOCKER_BINARY = "/usr/bin/docker"
DEFAULT_ARTIFACT_ROOT = Path("/tmp")

# Annotation selecting the mesh role of the node for a workload.
VPN_MODE_ANNOTATION = "vpnmode"


class MeshRole(Enum):
    MAIN = "main"
    PEER = "peer"


@dataclass(frozen=True)
class EffectiveConfig:
    """Fully defaulted and validated settings of one node."""

    auto_connect: str = DEFAULT_AUTO_CONNECT
    connect_to: str = DEFAULT_REMOTE_PEERS
    device: str = DEFAULT_DEVICE
    device_type: str = DEVICE_TYPE_TAP
    mode: str = MODE_SWITCH
    name: str = DEFAULT_MAIN_NAME
    cpu: str = DEFAULT_CPU_CAPACITY
    memory: str = DEFAULT_MEMORY_CAPACITY
    pods: str = DEFAULT_POD_CAPACITY


@dataclass(frozen=True)
class MeshIdentity:
    """Which side of the mesh pair this node plays for one provisioning call.

    Attributes
    ----------
    role:
        The mesh role selected by the workload annotation.
    name:
        tinc node name of this node; also names the mesh container and the
        artifact directory.
    address:
        Public address bound to ``name`` in the host directives.
    private_address:
        Address assigned to the tunnel device by the post-up script.
    peer_name:
        Node this daemon connects to.
    peer_address:
        Public address bound to every peer in the host directives.
    """

    role: MeshRole
    name: str
    address: str
    private_address: str
    peer_name: str
    peer_address: str
