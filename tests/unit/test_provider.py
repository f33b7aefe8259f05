import json
from pathlib import Path
from threading import Event, Thread

import pytest

from tinc_provider.config import EffectiveConfig
from tinc_provider.exceptions import (
    FilesystemFailure,
    InvalidConfiguration,
    InvalidKey,
    NotFound,
    RuntimeFailure,
)
from tinc_provider.provider import TincProvider

from conftest import make_workload


def test_create_get_list_delete(provider, runtime):
    workload = make_workload("default", "web")

    provider.create_workload(workload)

    assert provider.get_workload("default", "web") is workload
    assert provider.list_workloads() == [workload]

    provider.delete_workload(workload)

    with pytest.raises(NotFound):
        provider.get_workload("default", "web")
    assert provider.list_workloads() == []


def test_create_recreates_mesh_container(provider, runtime, tmp_path: Path):
    provider.create_workload(make_workload())

    assert [call[0] for call in runtime.calls] == ["absent", "running"]
    _, name, image, mounts = runtime.calls[1]
    assert name == "nodemain"
    assert image == "quay.io/dongsupark/tinc"
    assert [host for host, _ in mounts] == [
        tmp_path / "nodemain" / "vk-startup-config.conf",
        tmp_path / "nodemain" / "vk-main.conf",
        tmp_path / "nodemain" / "vk-tinc-up",
    ]
    assert all(host.exists() for host, _ in mounts)


def test_create_with_peer_annotation_uses_peer_identity(provider, runtime, tmp_path: Path):
    provider.create_workload(make_workload(annotations={"vpnmode": "peer"}))

    assert runtime.calls[1][1] == "nodepeer"
    startup = (tmp_path / "nodepeer" / "vk-startup-config.conf").read_text()
    assert "add Name = nodepeer" in startup
    assert "add ConnectTo = nodemain" in startup
    assert "10.1.1.2/24" in (tmp_path / "nodepeer" / "vk-tinc-up").read_text()


def test_identity_does_not_leak_between_creates(provider, runtime, tmp_path: Path):
    provider.create_workload(make_workload(name="a", annotations={"vpnmode": "peer"}))
    provider.create_workload(make_workload(name="b"))

    startup = (tmp_path / "nodemain" / "vk-startup-config.conf").read_text()
    assert "add Name = nodemain" in startup
    assert "10.1.1.1/24" in (tmp_path / "nodemain" / "vk-tinc-up").read_text()


def test_create_rejects_missing_name(provider, runtime):
    with pytest.raises(InvalidKey):
        provider.create_workload(make_workload("default", ""))

    assert provider.list_workloads() == []
    assert runtime.calls == []


def test_create_ignores_cleanup_failure(provider, runtime):
    runtime.fail_absent = True

    provider.create_workload(make_workload())

    assert [call[0] for call in runtime.calls] == ["absent", "running"]
    report = provider.provisioning_report("default", "web")
    assert report.ok
    assert report.completed == ["stored", "artifacts_written", "container_started"]
    assert report.warnings


def test_failed_start_keeps_record_and_surfaces_in_status(provider, runtime):
    runtime.fail_running = True
    workload = make_workload()

    with pytest.raises(RuntimeFailure):
        provider.create_workload(workload)

    assert provider.get_workload("default", "web") is workload
    report = provider.provisioning_report("default", "web")
    assert report.failed_stage == "container_started"
    assert report.completed == ["stored", "artifacts_written", "container_removed"]

    status = provider.get_workload_status("default", "web")
    assert status.phase == "Running"
    assert status.reason == "MeshProvisioningFailed"
    assert "no space left" in status.message


def test_update_replaces_record_without_mesh_work(provider, runtime):
    provider.create_workload(make_workload(labels={"tier": "frontend"}, containers=("app", "sidecar")))
    runtime.calls.clear()

    replacement = make_workload(containers=("app",))
    provider.update_workload(replacement)

    stored = provider.get_workload("default", "web")
    assert stored is replacement
    assert "tier" not in stored.metadata.labels
    assert [c.name for c in stored.containers] == ["app"]
    assert runtime.calls == []


def test_update_of_unknown_workload_stores_it(provider):
    provider.update_workload(make_workload(name="late"))

    assert provider.get_workload("default", "late").name == "late"


def test_delete_unknown_workload(provider, runtime):
    provider.create_workload(make_workload())
    runtime.calls.clear()

    with pytest.raises(NotFound):
        provider.delete_workload(make_workload("default", "ghost"))

    assert len(provider.list_workloads()) == 1
    assert runtime.calls == []


def test_delete_removes_record_even_if_teardown_fails(provider, runtime):
    workload = make_workload()
    provider.create_workload(workload)
    runtime.fail_absent = True

    with pytest.raises(RuntimeFailure):
        provider.delete_workload(workload)

    with pytest.raises(NotFound):
        provider.get_workload("default", "web")


def test_delete_removes_the_role_container(provider, runtime):
    workload = make_workload(annotations={"vpnmode": "peer"})
    provider.create_workload(workload)
    runtime.calls.clear()

    provider.delete_workload(workload)

    assert runtime.calls == [("absent", "nodepeer")]


def test_delete_removes_the_provisioned_container_after_role_change(provider, runtime):
    provider.create_workload(make_workload(annotations={"vpnmode": "peer"}))
    provider.update_workload(make_workload())
    runtime.calls.clear()

    provider.delete_workload(make_workload())

    assert runtime.calls == [("absent", "nodepeer")]


def test_failed_artifact_write_keeps_record_and_surfaces_in_status(tmp_path: Path, runtime):
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory")
    provider = TincProvider(
        "vk-tinc",
        EffectiveConfig(),
        artifact_root=blocker,
        runtime=runtime,
    )
    workload = make_workload()

    with pytest.raises(FilesystemFailure):
        provider.create_workload(workload)

    assert provider.get_workload("default", "web") is workload
    assert runtime.calls == []
    report = provider.provisioning_report("default", "web")
    assert report.failed_stage == "artifacts_written"
    assert report.completed == ["stored"]

    status = provider.get_workload_status("default", "web")
    assert status.reason == "MeshProvisioningFailed"
    assert status.message.startswith("artifacts_written: ")


def test_concurrent_reads_during_lifecycle(provider):
    errors = []
    done = Event()

    def writer():
        try:
            for i in range(50):
                workload = make_workload(name=f"web-{i}")
                provider.create_workload(workload)
                provider.update_workload(workload)
                if i % 2:
                    provider.delete_workload(workload)
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)
        finally:
            done.set()

    def reader():
        try:
            while not done.is_set():
                for workload in provider.list_workloads():
                    try:
                        provider.get_workload_status(workload.namespace, workload.name)
                    except NotFound:
                        continue
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [Thread(target=writer)] + [Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    assert sorted(w.name for w in provider.list_workloads()) == sorted(
        f"web-{i}" for i in range(0, 50, 2)
    )


def test_status_synthesises_ready_containers(provider):
    provider.create_workload(make_workload(containers=("app", "sidecar")))

    status = provider.get_workload_status("default", "web")

    assert status.phase == "Running"
    assert status.reason is None
    assert [c.name for c in status.container_statuses] == ["app", "sidecar"]
    assert all(c.ready and c.restart_count == 0 for c in status.container_statuses)
    assert all(c.state == "running" for c in status.container_statuses)
    assert {c.type for c in status.conditions} == {"Initialized", "Ready", "PodScheduled"}


def test_status_of_unknown_workload(provider):
    with pytest.raises(NotFound):
        provider.get_workload_status("default", "ghost")


def test_capacity_reflects_config(provider):
    capacity = provider.capacity()

    assert {k: str(v) for k, v in capacity.items()} == {
        "cpu": "20",
        "memory": "100Gi",
        "pods": "20",
    }


def test_node_descriptors(provider):
    conditions = {c.type: c for c in provider.node_conditions()}

    assert conditions["Ready"].status == "True"
    assert conditions["Ready"].reason == "KubeletReady"
    for name in ("OutOfDisk", "MemoryPressure", "DiskPressure", "NetworkUnavailable"):
        assert conditions[name].status == "False"

    addresses = provider.node_addresses()
    assert [(a.type, a.address) for a in addresses] == [("InternalIP", "192.0.2.10")]
    assert provider.node_daemon_endpoints().kubelet_port == 655
    assert provider.operating_system() == "Linux"


def test_stubs(provider):
    provider.create_workload(make_workload())

    assert provider.get_workload_logs("default", "web", "app", tail=10) == ""
    assert provider.exec_in_workload("default", "web", "app", ["sh"]) is None
    summary = provider.get_stats_summary()
    assert summary.node is None
    assert summary.pods == []


def test_from_config_file(tmp_path: Path, runtime):
    path = tmp_path / "provider.json"
    path.write_text(json.dumps({"vk-tinc": {"name": "alpha", "connect": "beta", "pods": "5"}}))

    provider = TincProvider.from_config_file(
        path, "vk-tinc", artifact_root=tmp_path, runtime=runtime
    )
    provider.create_workload(make_workload())

    assert str(provider.capacity()["pods"]) == "5"
    assert runtime.calls[1][1] == "alpha"
    assert "add beta.Port = 655" in (tmp_path / "alpha" / "vk-startup-config.conf").read_text()


def test_from_config_file_fails_closed(tmp_path: Path):
    path = tmp_path / "provider.json"
    path.write_text(json.dumps({"vk-tinc": {"cpu": "not-a-quantity"}}))

    with pytest.raises(InvalidConfiguration):
        TincProvider.from_config_file(path, "vk-tinc")
