# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/api/constants.py

CLUSTER_API_VERSION = "cluster.x-k8s.io/v1beta1"
CONTROLPLANE_API_VERSION = "controlplane.cluster.x-k8s.io/v1alpha1"
BOOTSTRAP_API_VERSION = "bootstrap.cluster.x-k8s.io/v1alpha1"

CLUSTER_KIND = "Cluster"
MACHINE_KIND = "Machine"
CONTROLPLANE_KIND = "RKE2ControlPlane"
BOOTSTRAP_CONFIG_KIND = "RKE2Config"

# Labels
CLUSTER_NAME_LABEL = "cluster.x-k8s.io/cluster-name"
CONTROL_PLANE_LABEL = "cluster.x-k8s.io/control-plane"

# Annotations
DELETE_MACHINE_ANNOTATION = "cluster.x-k8s.io/delete-machine"
SERVER_CONFIGURATION_ANNOTATION = "controlplane.cluster.x-k8s.io/rke2-server-configuration"
CLONED_FROM_NAME_ANNOTATION = "cluster.x-k8s.io/cloned-from-name"
CLONED_FROM_GROUPKIND_ANNOTATION = "cluster.x-k8s.io/cloned-from-groupkind"

# Conditions
MACHINE_AGENT_HEALTHY_CONDITION = "AgentHealthy"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

EVENT_NORMAL = "Normal"
EVENT_WARNING = "Warning"


def control_plane_labels_for_cluster(cluster_name: str) -> dict[str, str]:
    """Labels stamped on every object created for a control-plane member."""
    return {
        CLUSTER_NAME_LABEL: cluster_name,
        CONTROL_PLANE_LABEL: "",
    }


def group_of(api_version: str) -> str:
    """``group/version`` -> ``group``; core ``v1`` -> ``""``."""
    if "/" not in api_version:
        return ""
    return api_version.split("/", 1)[0]
