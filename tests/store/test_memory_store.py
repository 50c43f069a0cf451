import pytest
import yaml

from capr.api.constants import CLUSTER_API_VERSION, CLUSTER_NAME_LABEL
from capr.api.models import ObjectReference
from capr.errors import AlreadyExistsError, NotFoundError, StoreError
from capr.store.memory import InMemoryStore
from capr.store.names import generate_name
from conftest import NS, make_machine


def _machine_ref(name):
    return ObjectReference(api_version=CLUSTER_API_VERSION, kind="Machine", name=name, namespace=NS)


def test_create_fills_server_side_metadata():
    store = InMemoryStore()
    created = store.create({"apiVersion": CLUSTER_API_VERSION, "kind": "Machine", "metadata": {"name": "m1", "namespace": NS}})

    meta = created["metadata"]
    assert meta["uid"]
    assert meta["creationTimestamp"].endswith("Z")
    assert meta["resourceVersion"] == "1"


def test_create_keeps_seeded_timestamp():
    m = make_machine("m1", age=5)
    created = InMemoryStore().create(m.to_dict())
    assert created["metadata"]["creationTimestamp"] == m.to_dict()["metadata"]["creationTimestamp"]


def test_generate_name():
    store = InMemoryStore()
    created = store.create({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"generateName": "cm-", "namespace": NS}})
    assert created["metadata"]["name"].startswith("cm-")
    assert len(created["metadata"]["name"]) == len("cm-") + 5


def test_generated_names_differ():
    assert len({generate_name("x-") for _ in range(50)}) > 1


def test_create_requires_identity():
    with pytest.raises(StoreError):
        InMemoryStore().create({"kind": "Machine", "metadata": {"name": "m"}})
    with pytest.raises(StoreError):
        InMemoryStore().create({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {}})


def test_duplicate_create_fails():
    store = InMemoryStore([make_machine("m1").to_dict()])
    with pytest.raises(AlreadyExistsError):
        store.create(make_machine("m1").to_dict())


def test_get_and_delete_missing():
    store = InMemoryStore()
    with pytest.raises(NotFoundError):
        store.get(_machine_ref("nope"))
    with pytest.raises(NotFoundError):
        store.delete(_machine_ref("nope"))


def test_reads_are_copies():
    store = InMemoryStore([make_machine("m1").to_dict()])
    obj = store.get(_machine_ref("m1"))
    obj["metadata"]["labels"]["tampered"] = "yes"
    assert "tampered" not in store.get(_machine_ref("m1"))["metadata"]["labels"]


def test_list_filters_by_namespace_and_labels():
    other_ns = make_machine("m2").to_dict()
    other_ns["metadata"]["namespace"] = "elsewhere"
    unlabeled = make_machine("m3").to_dict()
    unlabeled["metadata"]["labels"] = {}
    store = InMemoryStore([make_machine("m1").to_dict(), other_ns, unlabeled])

    names = lambda objs: [o["metadata"]["name"] for o in objs]  # noqa: E731
    assert names(store.list(CLUSTER_API_VERSION, "Machine")) == ["m1", "m3", "m2"]
    assert names(store.list(CLUSTER_API_VERSION, "Machine", namespace=NS)) == ["m1", "m3"]
    assert names(store.list(CLUSTER_API_VERSION, "Machine", labels={CLUSTER_NAME_LABEL: "c1"})) == ["m1", "m2"]
    assert store.list(CLUSTER_API_VERSION, "MachineSet") == []


def test_version_is_not_part_of_identity():
    store = InMemoryStore([make_machine("m1").to_dict()])
    ref = _machine_ref("m1").model_copy(update={"api_version": "cluster.x-k8s.io/v1alpha4"})
    assert store.get(ref)["metadata"]["name"] == "m1"


def test_manifest_round_trip(tmp_path):
    text = yaml.safe_dump_all([make_machine("m1").to_dict(), None, make_machine("m2").to_dict()])
    path = tmp_path / "objects.yaml"
    path.write_text(text)

    store = InMemoryStore()
    assert store.load_manifests(path) == 2
    assert len(store) == 2

    again = InMemoryStore()
    again.load_manifests_text(store.dump_yaml())
    assert [o["metadata"]["name"] for o in again.dump()] == ["m1", "m2"]
