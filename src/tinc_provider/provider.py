"""virtual-kubelet provider backed by a tinc mesh container.

Workloads are kept in memory only.  Creating a workload (re)provisions the
mesh container with a freshly rendered configuration bundle; deleting one
tears the container down.  Neither pipeline is atomic: the store mutation
happens first and is not rolled back when a later stage fails.  The outcome
of every stage of the last create is kept in a :class:`ProvisioningReport`
and surfaced through the workload status.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from vkubelet.providers import Provider
from vkubelet.types import (
    CONDITION_FALSE,
    CONDITION_TRUE,
    OPERATING_SYSTEM_LINUX,
    POD_RUNNING,
    ContainerStatus,
    DaemonEndpoints,
    NodeAddress,
    NodeCondition,
    StatsSummary,
    Workload,
    WorkloadCondition,
    WorkloadStatus,
)

from .config import (
    DEFAULT_ARTIFACT_ROOT,
    DEFAULT_IMAGE,
    DEFAULT_PORT,
    DEFAULT_SUBNET,
    EffectiveConfig,
)
from .exceptions import NotFound, RuntimeFailure
from .mesh import MeshConfigGenerator, peer_list, resolve_identity, role_for_workload
from .quantity import Quantity, parse_quantity
from .resolver import load_config_source, resolve
from .runtime import RuntimeDriver, container_name
from .store import NodeStateStore, WorkloadKey, build_key, key_for

LOG = logging.getLogger(__name__)

STAGE_STORED = "stored"
STAGE_ARTIFACTS_WRITTEN = "artifacts_written"
STAGE_CONTAINER_REMOVED = "container_removed"
STAGE_CONTAINER_STARTED = "container_started"

PROVISIONING_FAILED_REASON = "MeshProvisioningFailed"

# Synthesised addresses reported in workload status.
STATUS_HOST_IP = "1.2.3.4"
STATUS_POD_IP = "5.6.7.8"


@dataclass
class ProvisioningReport:
    """Per-stage outcome of one mesh provisioning pipeline."""

    key: WorkloadKey
    container: Optional[str] = None
    completed: List[str] = field(default_factory=list)
    failed_stage: Optional[str] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed_stage is None

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            self.failed_stage = name
            self.error = str(exc)
            raise
        self.completed.append(name)


class TincProvider(Provider):
    """Provider that stores workloads in memory and backs the node with tinc."""

    def __init__(
        self,
        node_name: str,
        config: EffectiveConfig,
        *,
        internal_ip: str = "",
        subnet: str = DEFAULT_SUBNET,
        port: int = DEFAULT_PORT,
        image: str = DEFAULT_IMAGE,
        artifact_root: Path = DEFAULT_ARTIFACT_ROOT,
        generator: Optional[MeshConfigGenerator] = None,
        runtime: Optional[RuntimeDriver] = None,
    ) -> None:
        self._node_name = node_name
        self._config = config
        self._internal_ip = internal_ip
        self._port = port
        self._image = image
        self._generator = generator or MeshConfigGenerator(
            subnet=subnet, port=port, artifact_root=artifact_root
        )
        self._runtime = runtime or RuntimeDriver()
        self._store: NodeStateStore[Workload] = NodeStateStore()
        self._reports: Dict[WorkloadKey, ProvisioningReport] = {}
        self._reports_lock = Lock()
        # validated by the resolver
        self._capacity = {
            "cpu": parse_quantity(config.cpu),
            "memory": parse_quantity(config.memory),
            "pods": parse_quantity(config.pods),
        }

    @classmethod
    def from_config_file(
        cls, config_path: Optional[Path], node_name: str, **kwargs
    ) -> "TincProvider":
        """Resolve ``node_name``'s settings from ``config_path`` and build a provider."""

        config = resolve(load_config_source(config_path), node_name)
        return cls(node_name, config, **kwargs)

    @property
    def config(self) -> EffectiveConfig:
        return self._config

    # ------------------------------------------------------------------
    # Workload lifecycle
    # ------------------------------------------------------------------
    def create_workload(self, workload: Workload) -> None:
        LOG.info("receive CreateWorkload %s/%s", workload.namespace, workload.name)

        key = key_for(workload)
        report = ProvisioningReport(key=key)
        with report.stage(STAGE_STORED):
            self._store.put(key, workload)
        with self._reports_lock:
            self._reports[key] = report

        identity = resolve_identity(self._config, role_for_workload(workload))
        bundle = self._generator.generate(
            self._config, identity, peer_list(self._config, identity)
        )
        name = container_name(identity)
        report.container = name
        with report.stage(STAGE_ARTIFACTS_WRITTEN):
            bundle.write()

        try:
            self._runtime.ensure_absent(name)
        except RuntimeFailure as exc:
            # a stale container makes the start below fail loudly
            LOG.warning("ignoring cleanup failure for container %s: %s", name, exc)
            report.warnings.append(str(exc))
        else:
            report.completed.append(STAGE_CONTAINER_REMOVED)

        with report.stage(STAGE_CONTAINER_STARTED):
            self._runtime.ensure_running(name, self._image, bundle.mounts())

        LOG.info("mesh node %s (%s) provisioned for %s", name, identity.role.value, key)

    def update_workload(self, workload: Workload) -> None:
        LOG.info("receive UpdateWorkload %s/%s", workload.namespace, workload.name)

        self._store.put(key_for(workload), workload)

    def delete_workload(self, workload: Workload) -> None:
        LOG.info("receive DeleteWorkload %s/%s", workload.namespace, workload.name)

        key = key_for(workload)
        self._store.delete(key)
        with self._reports_lock:
            report = self._reports.pop(key, None)
        LOG.debug("workload %s removed from store", key)

        if report is not None and report.container is not None:
            name = report.container
        else:
            identity = resolve_identity(self._config, role_for_workload(workload))
            name = container_name(identity)
        LOG.info("removing mesh container %s", name)
        self._runtime.ensure_absent(name)

    def get_workload(self, namespace: str, name: str) -> Workload:
        LOG.debug("receive GetWorkload %s/%s", namespace, name)

        key = build_key(namespace, name)
        workload = self._store.get(key)
        if workload is None:
            raise NotFound(key)
        return workload

    def list_workloads(self) -> List[Workload]:
        LOG.debug("receive ListWorkloads")
        return self._store.list()

    def provisioning_report(self, namespace: str, name: str) -> Optional[ProvisioningReport]:
        with self._reports_lock:
            return self._reports.get(build_key(namespace, name))

    def get_workload_status(self, namespace: str, name: str) -> WorkloadStatus:
        """Report every declared container as running and ready.

        The status reflects the stored definition, not what the runtime is
        doing.  A failed provisioning is only visible in ``reason`` and
        ``message``.
        """

        LOG.debug("receive GetWorkloadStatus %s/%s", namespace, name)

        workload = self.get_workload(namespace, name)
        now = datetime.now(timezone.utc)

        status = WorkloadStatus(
            phase=POD_RUNNING,
            host_ip=STATUS_HOST_IP,
            pod_ip=STATUS_POD_IP,
            start_time=now,
            conditions=[
                WorkloadCondition(type="Initialized", status=CONDITION_TRUE),
                WorkloadCondition(type="Ready", status=CONDITION_TRUE),
                WorkloadCondition(type="PodScheduled", status=CONDITION_TRUE),
            ],
        )
        for container in workload.containers:
            status.container_statuses.append(
                ContainerStatus(
                    name=container.name,
                    image=container.image,
                    ready=True,
                    restart_count=0,
                    state="running",
                    started_at=now,
                )
            )

        report = self.provisioning_report(namespace, name)
        if report is not None and not report.ok:
            status.reason = PROVISIONING_FAILED_REASON
            status.message = f"{report.failed_stage}: {report.error}"
        return status

    def get_workload_logs(
        self, namespace: str, name: str, container: str, tail: Optional[int] = None
    ) -> str:
        LOG.debug("receive GetWorkloadLogs %s/%s %s", namespace, name, container)
        return ""

    def exec_in_workload(
        self, namespace: str, name: str, container: str, command: Sequence[str]
    ) -> None:
        LOG.debug("receive ExecInWorkload %s/%s %s", namespace, name, container)

    # ------------------------------------------------------------------
    # Node status
    # ------------------------------------------------------------------
    def capacity(self) -> Mapping[str, Quantity]:
        return dict(self._capacity)

    def node_conditions(self) -> List[NodeCondition]:
        return [
            NodeCondition(
                type="Ready",
                status=CONDITION_TRUE,
                reason="KubeletReady",
                message="kubelet is ready.",
            ),
            NodeCondition(
                type="OutOfDisk",
                status=CONDITION_FALSE,
                reason="KubeletHasSufficientDisk",
                message="kubelet has sufficient disk space available",
            ),
            NodeCondition(
                type="MemoryPressure",
                status=CONDITION_FALSE,
                reason="KubeletHasSufficientMemory",
                message="kubelet has sufficient memory available",
            ),
            NodeCondition(
                type="DiskPressure",
                status=CONDITION_FALSE,
                reason="KubeletHasNoDiskPressure",
                message="kubelet has no disk pressure",
            ),
            NodeCondition(
                type="NetworkUnavailable",
                status=CONDITION_FALSE,
                reason="RouteCreated",
                message="RouteController created a route",
            ),
        ]

    def node_addresses(self) -> List[NodeAddress]:
        return [NodeAddress(type="InternalIP", address=self._internal_ip)]

    def node_daemon_endpoints(self) -> DaemonEndpoints:
        return DaemonEndpoints(kubelet_port=self._port)

    def operating_system(self) -> str:
        return OPERATING_SYSTEM_LINUX

    def get_stats_summary(self) -> StatsSummary:
        return StatsSummary()
