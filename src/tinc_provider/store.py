"""In-memory authoritative record of the workloads on the virtual node."""

from __future__ import annotations

from threading import Lock
from typing import Dict, Generic, List, NamedTuple, Optional, TypeVar

from .exceptions import InvalidKey, NotFound

R = TypeVar("R")


class WorkloadKey(NamedTuple):
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def build_key(namespace: str, name: str) -> WorkloadKey:
    """Build the store key of ``namespace/name``."""

    if not namespace:
        raise InvalidKey("workload namespace not found")
    if not name:
        raise InvalidKey("workload name not found")
    return WorkloadKey(namespace, name)


def key_for(workload) -> WorkloadKey:
    """Build the store key from a workload's metadata."""

    return build_key(workload.metadata.namespace, workload.metadata.name)


class NodeStateStore(Generic[R]):
    """Thread-safe mapping of :class:`WorkloadKey` to workload records.

    Records are stored by reference and never merged: ``put`` replaces
    whatever was stored under the key.
    """

    def __init__(self) -> None:
        self._records: Dict[WorkloadKey, R] = {}
        self._lock = Lock()

    def put(self, key: WorkloadKey, record: R) -> None:
        with self._lock:
            self._records[key] = record

    def get(self, key: WorkloadKey) -> Optional[R]:
        with self._lock:
            return self._records.get(key)

    def delete(self, key: WorkloadKey) -> R:
        with self._lock:
            try:
                return self._records.pop(key)
            except KeyError:
                raise NotFound(key) from None

    def list(self) -> List[R]:
        with self._lock:
            return list(self._records.values())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
