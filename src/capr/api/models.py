# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/api/models.py
"""
Typed views of the Cluster API / RKE2 objects the reconciler reads and writes.

Objects travel through the store as plain Kubernetes-shaped dicts
(camelCase keys). These models validate them on the way in and dump them
back with ``to_dict()`` on the way out. Unknown fields are preserved.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .constants import (
    BOOTSTRAP_API_VERSION,
    BOOTSTRAP_CONFIG_KIND,
    CLUSTER_API_VERSION,
    CLUSTER_KIND,
    CONTROLPLANE_API_VERSION,
    CONTROLPLANE_KIND,
    DELETE_MACHINE_ANNOTATION,
    MACHINE_KIND,
    group_of,
)

_K8S_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "allow",
}


class K8sModel(BaseModel):
    model_config = _K8S_CONFIG


# ---------------------------------------------------------------------
# Metadata and references
# ---------------------------------------------------------------------
class OwnerReference(K8sModel):
    api_version: str
    kind: str
    name: str
    uid: Optional[str] = None
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


class ObjectReference(K8sModel):
    api_version: str
    kind: str
    name: str
    namespace: Optional[str] = None
    uid: Optional[str] = None

    @property
    def group(self) -> str:
        return group_of(self.api_version)

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


class ObjectMeta(K8sModel):
    name: str = ""
    namespace: Optional[str] = None
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    owner_references: List[OwnerReference] = Field(default_factory=list)
    creation_timestamp: Optional[datetime] = None
    deletion_timestamp: Optional[datetime] = None


class Condition(K8sModel):
    type: str
    status: str
    severity: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    last_transition_time: Optional[datetime] = None


class K8sObject(K8sModel):
    api_version: str
    kind: str
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> Optional[str]:
        return self.metadata.namespace

    def object_ref(self) -> ObjectReference:
        return ObjectReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.metadata.name,
            namespace=self.metadata.namespace,
            uid=self.metadata.uid,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls.model_validate(data)


# ---------------------------------------------------------------------
# RKE2 configuration payloads
# ---------------------------------------------------------------------
class RKE2AgentConfig(K8sModel):
    """Agent side of the RKE2 configuration, copied into every RKE2Config."""

    data_dir: Optional[str] = None
    node_labels: Optional[List[str]] = None
    node_taints: Optional[List[str]] = None
    kubelet_args: Optional[List[str]] = None
    kube_proxy_args: Optional[List[str]] = None
    system_default_registry: Optional[str] = None
    cis_profile: Optional[str] = None
    protect_kernel_defaults: Optional[bool] = None
    selinux: Optional[bool] = None


class DisableComponents(K8sModel):
    kubernetes_components: Optional[List[str]] = None
    plugin_components: Optional[List[str]] = None


class RKE2ServerConfig(K8sModel):
    """Server side of the RKE2 configuration; snapshotted onto each Machine."""

    bind_address: Optional[str] = None
    advertise_address: Optional[str] = None
    tls_san: Optional[List[str]] = None
    cni: Optional[str] = None
    cluster_dns: Optional[str] = None
    cluster_domain: Optional[str] = None
    cloud_provider_name: Optional[str] = None
    disable_components: Optional[DisableComponents] = None
    etcd: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------
# RKE2ControlPlane
# ---------------------------------------------------------------------
class RKE2ControlPlaneSpec(K8sModel):
    replicas: int = 1
    version: str
    agent_config: RKE2AgentConfig = Field(default_factory=RKE2AgentConfig)
    server_config: RKE2ServerConfig = Field(default_factory=RKE2ServerConfig)
    infrastructure_ref: ObjectReference
    node_drain_timeout: Optional[str] = None


class RKE2ControlPlaneStatus(K8sModel):
    conditions: List[Condition] = Field(default_factory=list)
    replicas: Optional[int] = None
    ready: Optional[bool] = None


class RKE2ControlPlane(K8sObject):
    api_version: str = CONTROLPLANE_API_VERSION
    kind: str = CONTROLPLANE_KIND
    spec: RKE2ControlPlaneSpec
    status: RKE2ControlPlaneStatus = Field(default_factory=RKE2ControlPlaneStatus)

    def server_config_json(self) -> str:
        """Compact JSON of the server config, as stored on each Machine."""
        return self.spec.server_config.model_dump_json(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------
# RKE2Config (bootstrap)
# ---------------------------------------------------------------------
class RKE2ConfigSpec(K8sModel):
    agent_config: RKE2AgentConfig = Field(default_factory=RKE2AgentConfig)


class RKE2Config(K8sObject):
    api_version: str = BOOTSTRAP_API_VERSION
    kind: str = BOOTSTRAP_CONFIG_KIND
    spec: RKE2ConfigSpec = Field(default_factory=RKE2ConfigSpec)


# ---------------------------------------------------------------------
# Machine
# ---------------------------------------------------------------------
class Bootstrap(K8sModel):
    config_ref: Optional[ObjectReference] = None
    data_secret_name: Optional[str] = None


class MachineSpec(K8sModel):
    cluster_name: str
    bootstrap: Bootstrap = Field(default_factory=Bootstrap)
    infrastructure_ref: ObjectReference
    version: Optional[str] = None
    failure_domain: Optional[str] = None
    node_drain_timeout: Optional[str] = None


class MachineStatus(K8sModel):
    phase: Optional[str] = None
    conditions: List[Condition] = Field(default_factory=list)


class Machine(K8sObject):
    api_version: str = CLUSTER_API_VERSION
    kind: str = MACHINE_KIND
    spec: MachineSpec
    status: MachineStatus = Field(default_factory=MachineStatus)

    def get_condition(self, condition_type: str) -> Optional[Condition]:
        for c in self.status.conditions:
            if c.type == condition_type:
                return c
        return None

    @property
    def is_deleting(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    @property
    def has_delete_annotation(self) -> bool:
        return DELETE_MACHINE_ANNOTATION in self.metadata.annotations


# ---------------------------------------------------------------------
# Cluster
# ---------------------------------------------------------------------
class FailureDomainSpec(K8sModel):
    control_plane: bool = False
    attributes: Dict[str, str] = Field(default_factory=dict)


class ClusterStatus(K8sModel):
    failure_domains: Dict[str, FailureDomainSpec] = Field(default_factory=dict)
    control_plane_ready: Optional[bool] = None


class Cluster(K8sObject):
    api_version: str = CLUSTER_API_VERSION
    kind: str = CLUSTER_KIND
    spec: Dict[str, Any] = Field(default_factory=dict)
    status: ClusterStatus = Field(default_factory=ClusterStatus)

    def control_plane_failure_domains(self) -> List[str]:
        """Failure domain ids eligible for control-plane machines, in declared order."""
        return [
            fd_id
            for fd_id, fd in self.status.failure_domains.items()
            if fd.control_plane
        ]
