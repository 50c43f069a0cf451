# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from capr.api.constants import (
    CLUSTER_API_VERSION,
    CLUSTER_NAME_LABEL,
    CONTROL_PLANE_LABEL,
    CONTROLPLANE_API_VERSION,
    DELETE_MACHINE_ANNOTATION,
    SERVER_CONFIGURATION_ANNOTATION,
)
from capr.api.models import Cluster, Machine, RKE2ControlPlane
from capr.controlplane.view import ControlPlaneView
from capr.store.memory import InMemoryStore

NS = "default"
CLUSTER = "c1"
RCP = "c1-control-plane"
INFRA_API = "infrastructure.cluster.x-k8s.io/v1beta1"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_cluster(failure_domains=("fd1", "fd2", "fd3"), worker_domains=()) -> Cluster:
    fds = {fd: {"controlPlane": True} for fd in failure_domains}
    fds.update({fd: {"controlPlane": False} for fd in worker_domains})
    return Cluster.from_dict({
        "apiVersion": CLUSTER_API_VERSION,
        "kind": "Cluster",
        "metadata": {"name": CLUSTER, "namespace": NS, "uid": "cluster-uid"},
        "status": {"failureDomains": fds},
    })


def make_rcp(replicas=3, version="v1.23.4+rke2r1", server_config=None) -> RKE2ControlPlane:
    return RKE2ControlPlane.from_dict({
        "apiVersion": CONTROLPLANE_API_VERSION,
        "kind": "RKE2ControlPlane",
        "metadata": {
            "name": RCP,
            "namespace": NS,
            "uid": "rcp-uid",
            "ownerReferences": [{"apiVersion": CLUSTER_API_VERSION, "kind": "Cluster", "name": CLUSTER}],
        },
        "spec": {
            "replicas": replicas,
            "version": version,
            "agentConfig": {"nodeLabels": ["role=cp"]},
            "serverConfig": server_config if server_config is not None else {"cni": "calico", "tlsSan": ["10.0.0.1"]},
            "infrastructureRef": {"apiVersion": INFRA_API, "kind": "DockerMachineTemplate", "name": "cp-template"},
            "nodeDrainTimeout": "2m",
        },
    })


def make_machine(
    name,
    failure_domain=None,
    healthy=True,
    conditions=None,
    deleting=False,
    delete_annotation=False,
    age=0,
    version="v1.23.4",
    server_config_json='{"tlsSan":["10.0.0.1"],"cni":"calico"}',
    owner=RCP,
) -> Machine:
    """*age* is in minutes; larger means older."""
    if conditions is None:
        conditions = [{"type": "AgentHealthy", "status": "True" if healthy else "False",
                       "severity": None if healthy else "Error",
                       "message": None if healthy else "agent down"}]
    annotations = {}
    if server_config_json is not None:
        annotations[SERVER_CONFIGURATION_ANNOTATION] = server_config_json
    if delete_annotation:
        annotations[DELETE_MACHINE_ANNOTATION] = ""
    meta = {
        "name": name,
        "namespace": NS,
        "labels": {CLUSTER_NAME_LABEL: CLUSTER, CONTROL_PLANE_LABEL: ""},
        "annotations": annotations,
        "ownerReferences": [{
            "apiVersion": CONTROLPLANE_API_VERSION,
            "kind": "RKE2ControlPlane",
            "name": owner,
            "uid": "rcp-uid",
            "controller": True,
        }],
        "creationTimestamp": (T0 - timedelta(minutes=age)).isoformat(),
    }
    if deleting:
        meta["deletionTimestamp"] = T0.isoformat()
    return Machine.from_dict({
        "apiVersion": CLUSTER_API_VERSION,
        "kind": "Machine",
        "metadata": meta,
        "spec": {
            "clusterName": CLUSTER,
            "version": version,
            "failureDomain": failure_domain,
            "infrastructureRef": {"apiVersion": INFRA_API, "kind": "DockerMachine", "name": f"{name}-infra"},
        },
        "status": {"conditions": [{k: v for k, v in c.items() if v is not None} for c in conditions]},
    })


def make_view(machines=(), replicas=3, cluster=None, rcp=None) -> ControlPlaneView:
    return ControlPlaneView.new(cluster or make_cluster(), rcp or make_rcp(replicas=replicas), machines)


def infra_template() -> dict:
    return {
        "apiVersion": INFRA_API,
        "kind": "DockerMachineTemplate",
        "metadata": {"name": "cp-template", "namespace": NS},
        "spec": {
            "template": {
                "metadata": {"labels": {"tier": "cp"}},
                "spec": {"customImage": "kindest/node:v1.23.4"},
            }
        },
    }


def seeded_store(machines=(), replicas=3, cluster=None, rcp=None, store=None) -> InMemoryStore:
    store = store if store is not None else InMemoryStore()
    store.create((cluster or make_cluster()).to_dict())
    store.create((rcp or make_rcp(replicas=replicas)).to_dict())
    store.create(infra_template())
    for m in machines:
        store.create(m.to_dict())
    return store


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


@pytest.fixture
def capture():
    return Capture()


def kinds(store: InMemoryStore) -> list:
    return sorted(obj["kind"] for obj in store.dump())
