from vkubelet.types import Container, Workload


def test_from_dict_reads_manifest():
    workload = Workload.from_dict(
        {
            "namespace": "default",
            "name": "web",
            "annotations": {"vpnmode": "peer"},
            "labels": {"replicas": 2},
            "containers": [{"name": "app", "image": "nginx"}, {"name": "sidecar"}],
        }
    )

    assert (workload.namespace, workload.name) == ("default", "web")
    assert workload.metadata.annotations == {"vpnmode": "peer"}
    assert workload.metadata.labels == {"replicas": "2"}
    assert workload.containers == (Container("app", "nginx"), Container("sidecar", ""))


def test_from_dict_treats_null_fields_as_missing():
    workload = Workload.from_dict(
        {"namespace": None, "name": None, "annotations": None, "containers": None}
    )

    assert workload.namespace == ""
    assert workload.name == ""
    assert workload.metadata.annotations == {}
    assert workload.containers == ()
