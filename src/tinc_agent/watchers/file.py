"""File-based workload watcher."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event, Thread
from typing import Dict, Set

import yaml

from vkubelet.providers import Provider
from vkubelet.types import Workload

from .utils import extract_workloads

LOG = logging.getLogger(__name__)


class FileWorkloadWatcher(Thread):
    """Poll a JSON/YAML workloads file and drive the provider lifecycle.

    New workloads are created, changed ones updated and vanished ones
    deleted.  A failing call is logged and retried on the next poll that
    still sees a difference.  A create that stored the workload but failed
    to provision the mesh is retried on every poll until it succeeds.
    """

    def __init__(
        self,
        provider: Provider,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._provider = provider
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._state: Dict[str, Workload] = {}
        self._unprovisioned: Set[str] = set()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> None:
        if not self._path.exists():
            LOG.debug("workloads file %s does not exist yet", self._path)
            return

        try:
            payload = yaml.safe_load(self._path.read_text()) or {}
        except yaml.YAMLError as exc:
            LOG.warning("failed to parse workloads file %s: %s", self._path, exc)
            return

        try:
            desired = extract_workloads(payload)
        except (AttributeError, ValueError) as exc:
            LOG.warning("invalid workloads file %s: %s", self._path, exc)
            return

        for key, workload in desired.items():
            current = self._state.get(key)
            retry = key in self._unprovisioned
            if current == workload and not retry:
                continue
            try:
                if current is None or retry:
                    LOG.debug("workload %s %s", key, "retried" if retry else "added")
                    self._provider.create_workload(workload)
                else:
                    LOG.debug("workload %s changed", key)
                    self._provider.update_workload(workload)
            except Exception as exc:
                LOG.warning("failed to apply workload %s: %s", key, exc)
                # creates keep their stored record even when provisioning fails
                if (current is None or retry) and self._is_known(workload):
                    self._state[key] = workload
                    self._unprovisioned.add(key)
                continue
            self._state[key] = workload
            self._unprovisioned.discard(key)

        for key in set(self._state) - set(desired):
            LOG.debug("workload %s removed", key)
            workload = self._state.pop(key)
            self._unprovisioned.discard(key)
            try:
                self._provider.delete_workload(workload)
            except Exception as exc:
                LOG.warning("failed to delete workload %s: %s", key, exc)

    def _is_known(self, workload: Workload) -> bool:
        try:
            self._provider.get_workload(workload.namespace, workload.name)
        except LookupError:
            return False
        return True
