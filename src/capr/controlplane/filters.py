# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/filters.py
"""
Composable Machine predicates.

Every filter is a plain ``Callable[[Machine], bool]`` so they can be passed
straight to ``ControlPlaneView.filter`` or ``get_machines_for_cluster``.
"""

from __future__ import annotations

import json
from typing import Callable, Optional

from ..api.constants import (
    CONTROLPLANE_KIND,
    SERVER_CONFIGURATION_ANNOTATION,
    group_of,
)
from ..api.models import Machine, RKE2ControlPlane
from .version import rke2_to_kube_version

MachineFilter = Callable[[Machine], bool]


def and_(*filters: MachineFilter) -> MachineFilter:
    return lambda m: all(f(m) for f in filters)


def not_(f: MachineFilter) -> MachineFilter:
    return lambda m: not f(m)


def owned_machines(rcp: RKE2ControlPlane) -> MachineFilter:
    """Machines whose controller owner is *rcp*."""
    group = group_of(rcp.api_version)

    def _owned(m: Machine) -> bool:
        for ref in m.metadata.owner_references:
            if (
                ref.controller
                and ref.kind == CONTROLPLANE_KIND
                and group_of(ref.api_version) == group
                and ref.name == rcp.name
            ):
                return True
        return False

    return _owned


def has_deletion_timestamp(m: Machine) -> bool:
    return m.is_deleting


def has_delete_annotation(m: Machine) -> bool:
    return m.has_delete_annotation


def in_failure_domains(*domains: Optional[str]) -> MachineFilter:
    """``None`` matches machines that were never assigned a failure domain."""
    wanted = set(domains)
    return lambda m: m.spec.failure_domain in wanted


def matches_kube_version(rke2_version: str) -> MachineFilter:
    want = rke2_to_kube_version(rke2_version)
    return lambda m: m.spec.version == want


def matches_server_config(rcp: RKE2ControlPlane) -> MachineFilter:
    """
    Compare the snapshot annotation written at creation with the current
    server config. Machines without the annotation are treated as matching.
    """
    current = json.loads(rcp.server_config_json())

    def _matches(m: Machine) -> bool:
        stored = m.metadata.annotations.get(SERVER_CONFIGURATION_ANNOTATION)
        if stored is None:
            return True
        try:
            return json.loads(stored) == current
        except ValueError:
            return False

    return _matches


def needs_rollout(rcp: RKE2ControlPlane) -> MachineFilter:
    return not_(and_(matches_kube_version(rcp.spec.version), matches_server_config(rcp)))
