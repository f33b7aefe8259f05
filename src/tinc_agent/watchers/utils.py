from __future__ import annotations

from typing import Any, Dict, Mapping

from vkubelet.types import Workload


def extract_workloads(payload: Mapping[str, Any]) -> Dict[str, Workload]:
    """Return the workloads declared in ``payload`` keyed by ``namespace/name``.

    Entries without a name are skipped; a missing namespace means
    ``default``.
    """

    entries = payload.get("workloads")
    if entries is None:
        raise ValueError("workloads file missing 'workloads' key")
    if not isinstance(entries, list):
        raise ValueError("'workloads' must be a list")

    workloads: Dict[str, Workload] = {}
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        entry = {**entry, "namespace": entry.get("namespace") or "default"}
        workload = Workload.from_dict(entry)
        workloads[f"{workload.namespace}/{workload.name}"] = workload
    return workloads
