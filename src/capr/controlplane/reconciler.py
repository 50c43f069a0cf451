# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/reconciler.py
from __future__ import annotations

import logging
from typing import Optional

from ..api.constants import (
    CLUSTER_API_VERSION,
    CLUSTER_KIND,
    CLUSTER_NAME_LABEL,
    CONTROLPLANE_API_VERSION,
    CONTROLPLANE_KIND,
    group_of,
)
from ..api.models import Cluster, ObjectReference, RKE2ControlPlane
from ..config.models import ReconcilerSettings
from ..observers.dispatcher import EventBus
from ..observers.events import ReconcileCompleted, ReconcileFailed, ReconcileStarted, new_ctx
from ..store.interface import Store
from .filters import owned_machines
from .management import get_machines_for_cluster
from .result import Result
from .scale import ScaleEngine
from .view import ControlPlaneView

log = logging.getLogger("capr")


class Reconciler:
    """
    Entry point for one reconciliation pass of one RKE2ControlPlane.

    Reads the control plane, its Cluster and its owned Machines through
    ``store``, builds a fresh ``ControlPlaneView`` and hands it to a
    ``ScaleEngine``. Nothing is kept between calls. Without a fixed
    ``run_id`` every pass gets its own.
    """

    def __init__(
        self,
        store: Store,
        uncached_store: Optional[Store] = None,
        settings: Optional[ReconcilerSettings] = None,
        bus: Optional[EventBus] = None,
        context: Optional[str] = None,
        run_id: Optional[str] = None,
    ):
        self.store = store
        self.uncached_store = uncached_store or store
        self.settings = settings or ReconcilerSettings()
        self.bus = bus or EventBus()
        self.context = context
        self.run_id = run_id

    def _get_owner_cluster(self, rcp: RKE2ControlPlane) -> Optional[Cluster]:
        cluster_name = None
        for ref in rcp.metadata.owner_references:
            if ref.kind == CLUSTER_KIND and group_of(ref.api_version) == group_of(CLUSTER_API_VERSION):
                cluster_name = ref.name
                break
        if cluster_name is None:
            cluster_name = rcp.metadata.labels.get(CLUSTER_NAME_LABEL)
        if cluster_name is None:
            return None

        ref = ObjectReference(
            api_version=CLUSTER_API_VERSION,
            kind=CLUSTER_KIND,
            name=cluster_name,
            namespace=rcp.namespace,
        )
        return Cluster.from_dict(self.store.get(ref))

    def load_view(self, namespace: str, name: str) -> Optional[ControlPlaneView]:
        ref = ObjectReference(
            api_version=CONTROLPLANE_API_VERSION,
            kind=CONTROLPLANE_KIND,
            name=name,
            namespace=namespace,
        )
        rcp = RKE2ControlPlane.from_dict(self.store.get(ref))

        cluster = self._get_owner_cluster(rcp)
        if cluster is None:
            log.info(f"Cluster Controller has not yet set OwnerRef on {namespace}/{name}")
            return None

        machines = get_machines_for_cluster(self.store, namespace, cluster.name, owned_machines(rcp))
        return ControlPlaneView.new(cluster, rcp, machines)

    def reconcile(self, namespace: str, name: str) -> Result:
        view = self.load_view(namespace, name)
        if view is None:
            return Result()
        if view.rcp.metadata.deletion_timestamp is not None:
            log.info(f"RKE2ControlPlane {namespace}/{name} is being deleted, skipping scale reconciliation")
            return Result()

        run_ctx = new_ctx(self.context, run_id=self.run_id)
        engine = ScaleEngine(
            self.store,
            self.uncached_store,
            settings=self.settings,
            bus=self.bus,
            run_ctx=run_ctx,
        )

        self.bus.emit(
            ReconcileStarted(
                namespace=namespace,
                name=name,
                state=engine.state(view).value,
                replicas=len(view),
                desired=view.desired_replicas,
                **run_ctx,
            )
        )
        try:
            result = engine.reconcile(view)
        except Exception as e:
            self.bus.emit(ReconcileFailed(namespace=namespace, name=name, error=str(e), **run_ctx))
            raise

        self.bus.emit(
            ReconcileCompleted(
                namespace=namespace,
                name=name,
                requeue=result.requeue,
                requeue_after=result.requeue_after,
                **run_ctx,
            )
        )
        return result
