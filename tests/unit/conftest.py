from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from tinc_provider.config import EffectiveConfig
from tinc_provider.exceptions import RuntimeFailure
from tinc_provider.provider import TincProvider
from vkubelet.types import Container, ObjectMeta, Workload


class RecordingRuntime:
    """Stand-in for RuntimeDriver that records calls instead of running docker."""

    def __init__(self) -> None:
        self.calls: List[Tuple] = []
        self.fail_absent = False
        self.fail_running = False

    def ensure_absent(self, name: str, *, timeout: Optional[float] = None) -> None:
        self.calls.append(("absent", name))
        if self.fail_absent:
            raise RuntimeFailure(["docker", "rm", "--force", name], output="boom", returncode=1)

    def ensure_running(self, name, image, mounts, *, privileged=True, detached=True, timeout=None):
        self.calls.append(("running", name, image, list(mounts)))
        if self.fail_running:
            raise RuntimeFailure(["docker", "run"], output="no space left", returncode=125)


def make_workload(namespace="default", name="web", containers=("app",), annotations=None, labels=None):
    return Workload(
        metadata=ObjectMeta(
            namespace=namespace,
            name=name,
            annotations=dict(annotations or {}),
            labels=dict(labels or {}),
        ),
        containers=tuple(Container(name=c, image=f"{c}:latest") for c in containers),
    )


@pytest.fixture
def runtime() -> RecordingRuntime:
    return RecordingRuntime()


@pytest.fixture
def provider(tmp_path: Path, runtime: RecordingRuntime) -> TincProvider:
    return TincProvider(
        "vk-tinc",
        EffectiveConfig(),
        internal_ip="192.0.2.10",
        artifact_root=tmp_path,
        runtime=runtime,
    )
