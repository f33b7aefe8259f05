"""Workload watcher implementations."""

from .file import FileWorkloadWatcher  # noqa: F401

__all__ = ["FileWorkloadWatcher"]
