"""Abstract lifecycle contract for virtual-kubelet providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence

from ..types import (
    DaemonEndpoints,
    NodeAddress,
    NodeCondition,
    StatsSummary,
    Workload,
    WorkloadStatus,
)


class Provider(ABC):
    """Base class for providers managed by :class:`ProviderRegistry`.

    The method set mirrors what the orchestration framework calls on a
    virtual node.  Implementations raise the errors of their own taxonomy;
    the framework only cares that a call failed.
    """

    @abstractmethod
    def create_workload(self, workload: Workload) -> None:
        """Accept ``workload`` and start backing it."""

    @abstractmethod
    def update_workload(self, workload: Workload) -> None:
        """Replace the stored definition of ``workload``."""

    @abstractmethod
    def delete_workload(self, workload: Workload) -> None:
        """Forget ``workload`` and tear down whatever backs it."""

    @abstractmethod
    def get_workload(self, namespace: str, name: str) -> Workload:
        """Return the workload known as ``namespace/name``."""

    @abstractmethod
    def list_workloads(self) -> List[Workload]:
        """Return every workload known to the provider."""

    @abstractmethod
    def get_workload_status(self, namespace: str, name: str) -> WorkloadStatus:
        """Return the status reported for ``namespace/name``."""

    @abstractmethod
    def get_workload_logs(
        self, namespace: str, name: str, container: str, tail: Optional[int] = None
    ) -> str:
        """Return logs of ``container`` inside the workload."""

    @abstractmethod
    def exec_in_workload(
        self, namespace: str, name: str, container: str, command: Sequence[str]
    ) -> None:
        """Run ``command`` inside ``container``."""

    @abstractmethod
    def capacity(self) -> Mapping[str, Any]:
        """Return resource capacity; must contain at least ``pods``."""

    @abstractmethod
    def node_conditions(self) -> List[NodeCondition]:
        """Return node conditions for the node status."""

    @abstractmethod
    def node_addresses(self) -> List[NodeAddress]:
        """Return node addresses for the node status."""

    @abstractmethod
    def node_daemon_endpoints(self) -> DaemonEndpoints:
        """Return the daemon endpoints for the node status."""

    @abstractmethod
    def operating_system(self) -> str:
        """Return the operating system of the node."""

    @abstractmethod
    def get_stats_summary(self) -> StatsSummary:
        """Return resource usage statistics."""
