# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from .models import (
    Bootstrap,
    Cluster,
    Condition,
    FailureDomainSpec,
    Machine,
    MachineSpec,
    ObjectMeta,
    ObjectReference,
    OwnerReference,
    RKE2AgentConfig,
    RKE2Config,
    RKE2ConfigSpec,
    RKE2ControlPlane,
    RKE2ControlPlaneSpec,
    RKE2ServerConfig,
)

__all__ = [
    "Bootstrap",
    "Cluster",
    "Condition",
    "FailureDomainSpec",
    "Machine",
    "MachineSpec",
    "ObjectMeta",
    "ObjectReference",
    "OwnerReference",
    "RKE2AgentConfig",
    "RKE2Config",
    "RKE2ConfigSpec",
    "RKE2ControlPlane",
    "RKE2ControlPlaneSpec",
    "RKE2ServerConfig",
]
