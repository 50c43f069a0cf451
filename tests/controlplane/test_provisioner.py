import json

import pytest

from capr.api.constants import (
    CLONED_FROM_GROUPKIND_ANNOTATION,
    CLONED_FROM_NAME_ANNOTATION,
    CLUSTER_API_VERSION,
    CLUSTER_NAME_LABEL,
    CONTROL_PLANE_LABEL,
    SERVER_CONFIGURATION_ANNOTATION,
)
from capr.api.models import Machine, ObjectReference
from capr.controlplane.provisioner import Provisioner
from capr.errors import ProvisioningError, StoreError
from capr.observers.dispatcher import EventBus
from capr.observers.events import MachineCreated
from capr.store.memory import InMemoryStore
from conftest import CLUSTER, INFRA_API, NS, RCP, Capture, kinds, make_cluster, make_rcp, seeded_store

SEED_KINDS = ["Cluster", "DockerMachineTemplate", "RKE2ControlPlane"]


class FailingStore(InMemoryStore):
    def __init__(self, fail_create=(), fail_delete=()):
        super().__init__()
        self.fail_create = set(fail_create)
        self.fail_delete = set(fail_delete)
        self.deleted = []

    def create(self, obj):
        if obj["kind"] in self.fail_create:
            raise StoreError(f"boom creating {obj['kind']}")
        return super().create(obj)

    def delete(self, ref):
        self.deleted.append(ref.kind)
        if ref.kind in self.fail_delete:
            raise StoreError(f"boom deleting {ref.kind}")
        return super().delete(ref)


def _provision(store, fd="fd2", bus=None):
    rcp = make_rcp()
    return Provisioner(store, bus=bus).clone_configs_and_generate_machine(
        make_cluster(), rcp, rcp.spec.agent_config, fd
    )


def test_provision_creates_machine_with_children():
    store = seeded_store()
    cap = Capture()
    machine = _provision(store, bus=EventBus([cap]))

    assert kinds(store) == sorted(SEED_KINDS + ["DockerMachine", "Machine", "RKE2Config"])
    assert machine.name.startswith(f"{RCP}-")
    assert machine.spec.cluster_name == CLUSTER
    assert machine.spec.version == "v1.23.4"
    assert machine.spec.failure_domain == "fd2"
    assert machine.spec.node_drain_timeout == "2m"
    assert machine.metadata.labels == {CLUSTER_NAME_LABEL: CLUSTER, CONTROL_PLANE_LABEL: ""}

    owner = machine.metadata.owner_references[0]
    assert (owner.kind, owner.name, owner.uid) == ("RKE2ControlPlane", RCP, "rcp-uid")
    assert owner.controller is True
    assert owner.block_owner_deletion is True

    assert [type(e) for e in cap.events] == [MachineCreated]
    assert cap.events[0].name == machine.name


def test_infrastructure_clone_is_derived_from_template():
    store = seeded_store()
    machine = _provision(store)

    infra = store.get(machine.spec.infrastructure_ref)
    assert infra["kind"] == "DockerMachine"
    assert infra["apiVersion"] == INFRA_API
    assert infra["metadata"]["name"].startswith("cp-template-")
    assert infra["metadata"]["labels"]["tier"] == "cp"
    assert infra["metadata"]["labels"][CLUSTER_NAME_LABEL] == CLUSTER
    assert infra["metadata"]["annotations"][CLONED_FROM_NAME_ANNOTATION] == "cp-template"
    assert (
        infra["metadata"]["annotations"][CLONED_FROM_GROUPKIND_ANNOTATION]
        == "DockerMachineTemplate.infrastructure.cluster.x-k8s.io"
    )
    assert infra["spec"] == {"customImage": "kindest/node:v1.23.4"}
    assert "controller" not in infra["metadata"]["ownerReferences"][0]


def test_bootstrap_config_carries_agent_payload():
    store = seeded_store()
    machine = _provision(store)

    cfg = store.get(machine.spec.bootstrap.config_ref)
    assert cfg["kind"] == "RKE2Config"
    assert cfg["spec"]["agentConfig"] == {"nodeLabels": ["role=cp"]}
    assert cfg["metadata"]["ownerReferences"][0]["name"] == RCP
    assert "controller" not in cfg["metadata"]["ownerReferences"][0]


def test_server_config_annotation_round_trips():
    store = seeded_store()
    rcp = make_rcp(server_config={"cni": "cilium", "tlsSan": ["a", "b"], "disableComponents": {"pluginComponents": ["rke2-ingress-nginx"]}})
    created = Provisioner(store).clone_configs_and_generate_machine(make_cluster(), rcp, rcp.spec.agent_config, None)

    stored = Machine.from_dict(store.get(created.object_ref()))
    payload = stored.metadata.annotations[SERVER_CONFIGURATION_ANNOTATION]
    assert payload == rcp.server_config_json()
    assert json.loads(payload) == {
        "tlsSan": ["a", "b"],
        "cni": "cilium",
        "disableComponents": {"pluginComponents": ["rke2-ingress-nginx"]},
    }
    assert stored.spec.failure_domain is None


def test_bootstrap_failure_rolls_back_infrastructure_clone():
    store = seeded_store(store=FailingStore(fail_create={"RKE2Config"}))

    with pytest.raises(ProvisioningError) as exc:
        _provision(store)

    assert kinds(store) == SEED_KINDS
    assert store.deleted == ["DockerMachine"]
    assert len(exc.value.errors) == 1
    assert "failed to generate bootstrap config" in str(exc.value)


def test_machine_failure_rolls_back_both_children():
    store = seeded_store(store=FailingStore(fail_create={"Machine"}))

    with pytest.raises(ProvisioningError) as exc:
        _provision(store)

    assert kinds(store) == SEED_KINDS
    assert sorted(store.deleted) == ["DockerMachine", "RKE2Config"]
    assert "failed to create Machine" in str(exc.value)


def test_cleanup_errors_are_aggregated_with_the_failure():
    store = seeded_store(store=FailingStore(fail_create={"Machine"}, fail_delete={"DockerMachine"}))

    with pytest.raises(ProvisioningError) as exc:
        _provision(store)

    assert len(exc.value.errors) == 2
    assert "failed to create Machine" in str(exc.value.errors[0])
    assert "failed to cleanup generated resources" in str(exc.value.errors[1])
    assert "boom deleting DockerMachine" in str(exc.value.errors[1])
    # the RKE2Config was still removed
    assert kinds(store) == sorted(SEED_KINDS + ["DockerMachine"])


def test_clone_failure_creates_nothing():
    store = InMemoryStore()
    store.create(make_cluster().to_dict())
    store.create(make_rcp().to_dict())

    with pytest.raises(ProvisioningError) as exc:
        _provision(store)

    assert "failed to clone infrastructure template" in str(exc.value)
    assert kinds(store) == ["Cluster", "RKE2ControlPlane"]


def test_cleanup_treats_not_found_as_success():
    ref = ObjectReference(api_version=CLUSTER_API_VERSION, kind="Machine", name="ghost", namespace=NS)
    assert Provisioner(InMemoryStore()).cleanup_from_generation(ref, None) is None
