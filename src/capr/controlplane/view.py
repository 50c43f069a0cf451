# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/view.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..api.models import Cluster, Machine, RKE2AgentConfig, RKE2ControlPlane
from .filters import (
    MachineFilter,
    and_,
    has_delete_annotation,
    has_deletion_timestamp,
    in_failure_domains,
    needs_rollout,
    not_,
)


def _age_key(m: Machine):
    ts = m.metadata.creation_timestamp
    if ts is None:
        return (1, m.name)
    return (0, ts, m.name)


@dataclass(frozen=True)
class ControlPlaneView:
    """
    Immutable snapshot of one control plane for a single reconciliation pass.

    Machines are unique by namespace/name and ordered by name. Every query
    returns a new view or a plain value; nothing is mutated in place.
    """

    cluster: Cluster
    rcp: RKE2ControlPlane
    machines: Tuple[Machine, ...] = field(default_factory=tuple)

    @classmethod
    def new(
        cls,
        cluster: Cluster,
        rcp: RKE2ControlPlane,
        machines: Iterable[Machine] = (),
    ) -> "ControlPlaneView":
        unique: Dict[Tuple[Optional[str], str], Machine] = {}
        for m in machines:
            unique.setdefault((m.namespace, m.name), m)
        ordered = sorted(unique.values(), key=lambda m: (m.name, m.namespace or ""))
        return cls(cluster=cluster, rcp=rcp, machines=tuple(ordered))

    def _with(self, machines: Iterable[Machine]) -> "ControlPlaneView":
        return replace(self, machines=tuple(machines))

    # ------------------------------------------------------------------
    # Collection basics
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.machines)

    def __iter__(self) -> Iterator[Machine]:
        return iter(self.machines)

    def __contains__(self, machine: Machine) -> bool:
        return any(m.name == machine.name and m.namespace == machine.namespace for m in self.machines)

    def filter(self, *filters: MachineFilter) -> "ControlPlaneView":
        match = and_(*filters)
        return self._with(m for m in self.machines if match(m))

    def names(self) -> List[str]:
        return [m.name for m in self.machines]

    def oldest(self) -> Optional[Machine]:
        if not self.machines:
            return None
        return min(self.machines, key=_age_key)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def desired_replicas(self) -> int:
        return self.rcp.spec.replicas

    def has_deleting_machine(self) -> bool:
        return any(has_deletion_timestamp(m) for m in self.machines)

    def deleting_machines(self) -> "ControlPlaneView":
        return self.filter(has_deletion_timestamp)

    def machines_with_delete_annotation(self, candidates: "ControlPlaneView") -> "ControlPlaneView":
        return candidates.filter(has_delete_annotation)

    def machines_needing_rollout(self) -> "ControlPlaneView":
        """Machines whose version or server-config snapshot is out of date."""
        return self.filter(not_(has_deletion_timestamp), needs_rollout(self.rcp))

    # ------------------------------------------------------------------
    # Failure domains
    # ------------------------------------------------------------------

    def failure_domains(self) -> List[str]:
        return self.cluster.control_plane_failure_domains()

    def machines_in_failure_domain(self, domain: Optional[str]) -> "ControlPlaneView":
        return self.filter(in_failure_domains(domain))

    def failure_domain_with_most_machines(self, candidates: "ControlPlaneView") -> Optional[str]:
        """
        Domain holding most of *candidates*. Candidates sitting outside the
        configured control-plane domains are considered first, so they are
        drained before anything else. Ties go to the domain seen first.
        """
        if len(candidates) == 0:
            return None

        outside = candidates.filter(not_(in_failure_domains(*self.failure_domains())))
        pool = outside if len(outside) > 0 else candidates

        counts: Dict[Optional[str], int] = {}
        for m in pool:
            counts[m.spec.failure_domain] = counts.get(m.spec.failure_domain, 0) + 1

        best, best_count = None, -1
        for domain, n in counts.items():
            if n > best_count:
                best, best_count = domain, n
        return best

    def machine_in_failure_domain_with_most_machines(self, candidates: "ControlPlaneView") -> Optional[Machine]:
        if len(candidates) == 0:
            return None
        domain = self.failure_domain_with_most_machines(candidates)
        return candidates.machines_in_failure_domain(domain).oldest()

    def next_failure_domain_for_scale_up(self) -> Optional[str]:
        """Least populated control-plane domain, ties broken by domain id."""
        domains = self.failure_domains()
        if not domains:
            return None
        counts = {d: 0 for d in domains}
        for m in self.machines:
            if m.spec.failure_domain in counts:
                counts[m.spec.failure_domain] += 1
        return min(sorted(counts), key=lambda d: counts[d])

    # ------------------------------------------------------------------
    # Bootstrap payloads
    # ------------------------------------------------------------------

    def initial_control_plane_config(self) -> RKE2AgentConfig:
        return self.rcp.spec.agent_config.model_copy(deep=True)

    def join_control_plane_config(self) -> RKE2AgentConfig:
        return self.rcp.spec.agent_config.model_copy(deep=True)
