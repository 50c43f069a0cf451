# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/management.py
from __future__ import annotations

from typing import List

from ..api.constants import CLUSTER_API_VERSION, CLUSTER_NAME_LABEL, MACHINE_KIND
from ..api.models import Machine
from ..store.interface import Store
from .filters import MachineFilter, and_


def get_machines_for_cluster(
    store: Store,
    namespace: str,
    cluster_name: str,
    *filters: MachineFilter,
) -> List[Machine]:
    """List the cluster's Machines through *store* and keep those matching every filter."""
    raw = store.list(
        CLUSTER_API_VERSION,
        MACHINE_KIND,
        namespace=namespace,
        labels={CLUSTER_NAME_LABEL: cluster_name},
    )
    match = and_(*filters)
    machines = [Machine.from_dict(obj) for obj in raw]
    return [m for m in machines if match(m)]
