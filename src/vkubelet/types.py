"""Workload and node descriptors exchanged with the orchestration framework.

virtual-kubelet hands providers full ``v1.Pod`` objects and expects
``v1.PodStatus`` / ``v1.NodeCondition`` style answers back.  We only model
the handful of fields providers actually read or produce so the lifecycle
contract can be exercised without a Kubernetes client library.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Container:
    name: str
    image: str = ""


@dataclass(frozen=True)
class ObjectMeta:
    namespace: str
    name: str
    annotations: Mapping[str, str] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Workload:
    """A pod-like unit of work scheduled onto the virtual node."""

    metadata: ObjectMeta
    containers: Sequence[Container] = ()

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def name(self) -> str:
        return self.metadata.name

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workload":
        """Build a workload from a plain mapping (JSON/YAML manifests)."""

        containers = tuple(
            Container(name=str(c["name"]), image=str(c.get("image", "")))
            for c in data.get("containers") or []
        )
        metadata = ObjectMeta(
            namespace=str(data.get("namespace") or ""),
            name=str(data.get("name") or ""),
            annotations={str(k): str(v) for k, v in (data.get("annotations") or {}).items()},
            labels={str(k): str(v) for k, v in (data.get("labels") or {}).items()},
        )
        return cls(metadata=metadata, containers=containers)


@dataclass(frozen=True)
class WorkloadCondition:
    type: str
    status: str


@dataclass(frozen=True)
class ContainerStatus:
    name: str
    image: str
    ready: bool
    restart_count: int
    state: str
    started_at: datetime


@dataclass
class WorkloadStatus:
    phase: str
    host_ip: str
    pod_ip: str
    start_time: datetime
    conditions: List[WorkloadCondition] = field(default_factory=list)
    container_statuses: List[ContainerStatus] = field(default_factory=list)
    reason: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class NodeCondition:
    type: str
    status: str
    reason: str
    message: str
    last_heartbeat_time: datetime = field(default_factory=_now)
    last_transition_time: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class NodeAddress:
    type: str
    address: str


@dataclass(frozen=True)
class DaemonEndpoints:
    kubelet_port: int


@dataclass
class StatsSummary:
    node: Optional[Dict[str, Any]] = None
    pods: List[Dict[str, Any]] = field(default_factory=list)


POD_RUNNING = "Running"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
OPERATING_SYSTEM_LINUX = "Linux"
