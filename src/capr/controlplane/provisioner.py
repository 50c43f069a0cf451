# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/provisioner.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..api.constants import SERVER_CONFIGURATION_ANNOTATION, control_plane_labels_for_cluster
from ..api.models import (
    Bootstrap,
    Cluster,
    Machine,
    MachineSpec,
    ObjectMeta,
    ObjectReference,
    OwnerReference,
    RKE2AgentConfig,
    RKE2Config,
    RKE2ConfigSpec,
    RKE2ControlPlane,
)
from ..errors import AggregateError, NotFoundError, ProvisioningError, aggregate, wrap
from ..observers.dispatcher import EventBus
from ..observers.events import MachineCreated, new_ctx
from ..store.external import clone_template
from ..store.interface import Store
from ..store.names import generate_name
from .version import rke2_to_kube_version

log = logging.getLogger("capr")


def _ref_from(created: Dict[str, Any]) -> ObjectReference:
    meta = created.get("metadata") or {}
    return ObjectReference(
        api_version=created["apiVersion"],
        kind=created["kind"],
        name=meta["name"],
        namespace=meta.get("namespace"),
        uid=meta.get("uid"),
    )


class Provisioner:
    """
    Materializes one control-plane Machine together with its infrastructure
    clone and RKE2Config. Either all three exist afterwards or none do.
    """

    def __init__(
        self,
        store: Store,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.store = store
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx()

    @staticmethod
    def _owner(rcp: RKE2ControlPlane, controller: bool = False) -> OwnerReference:
        # Children get a plain owner ref; the Machine controller adopts them later.
        if not controller:
            return OwnerReference(
                api_version=rcp.api_version,
                kind=rcp.kind,
                name=rcp.name,
                uid=rcp.metadata.uid,
            )
        return OwnerReference(
            api_version=rcp.api_version,
            kind=rcp.kind,
            name=rcp.name,
            uid=rcp.metadata.uid,
            controller=True,
            block_owner_deletion=True,
        )

    def clone_configs_and_generate_machine(
        self,
        cluster: Cluster,
        rcp: RKE2ControlPlane,
        bootstrap_spec: RKE2AgentConfig,
        failure_domain: Optional[str],
    ) -> Machine:
        errs: List[BaseException] = []

        try:
            infra_ref = clone_template(
                self.store,
                rcp.spec.infrastructure_ref,
                namespace=rcp.namespace,
                cluster_name=cluster.name,
                owner=self._owner(rcp),
                labels=control_plane_labels_for_cluster(cluster.name),
            )
        except Exception as err:
            # Nothing has been created yet.
            raise ProvisioningError([wrap(err, "failed to clone infrastructure template")]) from err

        bootstrap_ref: Optional[ObjectReference] = None
        try:
            bootstrap_ref = self.generate_rke2_config(cluster, rcp, bootstrap_spec)
        except Exception as err:
            errs.append(wrap(err, "failed to generate bootstrap config"))

        machine: Optional[Machine] = None
        if not errs:
            try:
                machine = self.generate_machine(cluster, rcp, infra_ref, bootstrap_ref, failure_domain)
            except Exception as err:
                errs.append(wrap(err, "failed to create Machine"))

        if errs:
            cleanup_err = self.cleanup_from_generation(infra_ref, bootstrap_ref)
            if cleanup_err is not None:
                errs.append(wrap(cleanup_err, "failed to cleanup generated resources"))
            raise ProvisioningError(errs)

        return machine

    def cleanup_from_generation(self, *refs: Optional[ObjectReference]) -> Optional[AggregateError]:
        errs: List[BaseException] = []
        for ref in refs:
            if ref is None:
                continue
            try:
                self.store.delete(ref)
            except NotFoundError:
                log.debug(f"{ref} already gone during cleanup")
            except Exception as err:
                errs.append(wrap(err, "failed to cleanup generated resources after error"))
            else:
                log.info(f"Cleaned up {ref} after failed provisioning")
        return aggregate(errs)

    def generate_rke2_config(
        self,
        cluster: Cluster,
        rcp: RKE2ControlPlane,
        spec: RKE2AgentConfig,
    ) -> ObjectReference:
        config = RKE2Config(
            metadata=ObjectMeta(
                name=generate_name(f"{rcp.name}-"),
                namespace=rcp.namespace,
                labels=control_plane_labels_for_cluster(cluster.name),
                owner_references=[self._owner(rcp)],
            ),
            spec=RKE2ConfigSpec(agent_config=spec),
        )
        try:
            created = self.store.create(config.to_dict())
        except Exception as err:
            raise wrap(err, "failed to create bootstrap configuration") from err
        return _ref_from(created)

    def generate_machine(
        self,
        cluster: Cluster,
        rcp: RKE2ControlPlane,
        infra_ref: ObjectReference,
        bootstrap_ref: ObjectReference,
        failure_domain: Optional[str],
    ) -> Machine:
        version = rke2_to_kube_version(rcp.spec.version)
        log.info(f"Version checking... rke2-version={rcp.spec.version} machine-version={version}")

        machine = Machine(
            metadata=ObjectMeta(
                name=generate_name(f"{rcp.name}-"),
                namespace=rcp.namespace,
                labels=control_plane_labels_for_cluster(cluster.name),
                owner_references=[self._owner(rcp, controller=True)],
                # Joining machines carry no server config of their own; the
                # snapshot is what rollout compares against later.
                annotations={SERVER_CONFIGURATION_ANNOTATION: rcp.server_config_json()},
            ),
            spec=MachineSpec(
                cluster_name=cluster.name,
                version=version,
                infrastructure_ref=infra_ref,
                bootstrap=Bootstrap(config_ref=bootstrap_ref),
                failure_domain=failure_domain,
                node_drain_timeout=rcp.spec.node_drain_timeout,
            ),
        )

        created = Machine.from_dict(self.store.create(machine.to_dict()))
        log.info(f"Created control plane Machine {created.namespace}/{created.name} failure_domain={failure_domain}")
        self.bus.emit(
            MachineCreated(
                namespace=created.namespace or "",
                name=created.name,
                version=created.spec.version,
                failure_domain=failure_domain,
                **self.run_ctx,
            )
        )
        return created
