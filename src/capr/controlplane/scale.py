# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/scale.py
from __future__ import annotations

import enum
import logging
from typing import Any, Dict, Optional

from ..api.constants import EVENT_WARNING
from ..api.models import Machine
from ..config.models import ReconcilerSettings
from ..errors import (
    ControlPlaneAlreadyInitializedError,
    InvariantViolationError,
    NotFoundError,
    ScaleDownError,
)
from ..observers.dispatcher import EventBus
from ..observers.events import MachineDeleted, new_ctx
from ..observers.recorder import EventRecorder
from ..store.interface import Store
from .filters import has_deletion_timestamp, not_, owned_machines
from .management import get_machines_for_cluster
from .preflight import PreflightGate, check_condition
from .provisioner import Provisioner
from .result import Result
from .selector import select_machine_for_scale_down
from .view import ControlPlaneView

log = logging.getLogger("capr")


class ScaleState(str, enum.Enum):
    UNINITIALIZED = "Uninitialized"
    INITIALIZING = "Initializing"
    STABLE = "Stable"
    SCALING_UP = "ScalingUp"
    SCALING_DOWN = "ScalingDown"


class ScaleEngine:
    """
    Moves the number of control-plane Machines towards ``spec.replicas``,
    one Machine per pass.

    Nothing is remembered between passes; the state is derived from the view
    every time ``reconcile`` is called.

    ``store`` is the (possibly cached) client used for writes and normal
    reads. ``uncached_store`` must go straight to the source of truth; it is
    only used to double-check that a control plane with no visible Machines
    really has none before initializing it.
    """

    def __init__(
        self,
        store: Store,
        uncached_store: Store,
        settings: Optional[ReconcilerSettings] = None,
        recorder: Optional[EventRecorder] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.store = store
        self.uncached_store = uncached_store
        self.settings = settings or ReconcilerSettings()
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx()
        self.recorder = recorder or EventRecorder(self.bus, self.run_ctx)
        self.preflight = PreflightGate(self.settings, self.recorder)
        self.provisioner = Provisioner(store, bus=self.bus, run_ctx=self.run_ctx)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def state(self, view: ControlPlaneView) -> ScaleState:
        current, desired = len(view), view.desired_replicas
        if current == 0:
            return ScaleState.UNINITIALIZED
        outdated = view.machines_needing_rollout()
        if len(outdated) > 0:
            state = ScaleState.SCALING_UP if current <= desired else ScaleState.SCALING_DOWN
        elif current < desired:
            state = ScaleState.SCALING_UP
        elif current > desired:
            state = ScaleState.SCALING_DOWN
        else:
            state = ScaleState.STABLE
        # Reported only. Dispatch is the same as for SCALING_UP.
        if state is ScaleState.SCALING_UP and self._initializing(view):
            return ScaleState.INITIALIZING
        return state

    def _initializing(self, view: ControlPlaneView) -> bool:
        live = view.filter(not_(has_deletion_timestamp))
        if len(live) == 0:
            return False
        return all(
            any(check_condition("machine", m, c) is not None for c in self.settings.required_machine_conditions)
            for m in live
        )

    def reconcile(self, view: ControlPlaneView) -> Result:
        state = self.state(view)
        log.debug(
            f"[ControlPlane {view.rcp.namespace}/{view.rcp.name}] state={state.value} "
            f"replicas={len(view)} desired={view.desired_replicas}"
        )

        if state is ScaleState.UNINITIALIZED:
            return self.initialize(view)
        if state in (ScaleState.INITIALIZING, ScaleState.SCALING_UP):
            return self.scale_up(view)
        if state is ScaleState.SCALING_DOWN:
            return self.scale_down(view, view.machines_needing_rollout())
        return Result()

    # ------------------------------------------------------------------
    # Initialize
    # ------------------------------------------------------------------

    def initialize(self, view: ControlPlaneView) -> Result:
        cluster, rcp = view.cluster, view.rcp

        # Uncached read of the owned machines: a stale cache must never make
        # us initialize the same control plane twice.
        try:
            owned = get_machines_for_cluster(
                self.uncached_store, cluster.namespace, cluster.name, owned_machines(rcp)
            )
        except Exception:
            log.error("failed to perform an uncached read of control plane machines for cluster", exc_info=True)
            raise
        if owned:
            raise ControlPlaneAlreadyInitializedError(
                f"control plane has already been initialized, found {len(owned)} owned machine for cluster "
                f"{cluster.namespace}/{cluster.name}: controller cache or management cluster is misbehaving"
            )

        bootstrap_spec = view.initial_control_plane_config()
        fd = view.next_failure_domain_for_scale_up()
        try:
            self.provisioner.clone_configs_and_generate_machine(cluster, rcp, bootstrap_spec, fd)
        except Exception as err:
            log.error(f"Failed to create initial control plane Machine: {err}")
            self.recorder.eventf(
                rcp,
                EVENT_WARNING,
                "FailedInitialization",
                "Failed to create initial control plane Machine for cluster %s/%s control plane: %s",
                cluster.namespace,
                cluster.name,
                err,
            )
            raise

        # There may be more to do once the first machine shows up.
        return Result(requeue=True)

    # ------------------------------------------------------------------
    # Scale up
    # ------------------------------------------------------------------

    def scale_up(self, view: ControlPlaneView) -> Result:
        cluster, rcp = view.cluster, view.rcp

        result = self.preflight.check(view)
        if not result.is_zero():
            return result

        bootstrap_spec = view.join_control_plane_config()
        fd = view.next_failure_domain_for_scale_up()
        try:
            self.provisioner.clone_configs_and_generate_machine(cluster, rcp, bootstrap_spec, fd)
        except Exception as err:
            log.error(f"Failed to create additional control plane Machine: {err}")
            self.recorder.eventf(
                rcp,
                EVENT_WARNING,
                "FailedScaleUp",
                "Failed to create additional control plane Machine for cluster %s/%s control plane: %s",
                cluster.namespace,
                cluster.name,
                err,
            )
            raise

        return Result(requeue=True)

    # ------------------------------------------------------------------
    # Scale down
    # ------------------------------------------------------------------

    def scale_down(self, view: ControlPlaneView, outdated: Optional[ControlPlaneView] = None) -> Result:
        cluster, rcp = view.cluster, view.rcp
        if outdated is None:
            outdated = ControlPlaneView.new(cluster, rcp)

        try:
            machine_to_delete = select_machine_for_scale_down(view, outdated)
        except InvariantViolationError as err:
            raise ScaleDownError(f"failed to select machine for scale down: {err}") from err

        # The candidate is going away anyway; don't let its health block it.
        result = self.preflight.check(view, exclude=[machine_to_delete])
        if not result.is_zero():
            return result

        # TODO: forward etcd leadership and remove the etcd member before
        # deleting, once the workload cluster client exists.
        self._delete_machine(view, machine_to_delete)
        return Result(requeue=True)

    def _delete_machine(self, view: ControlPlaneView, machine: Machine) -> None:
        cluster, rcp = view.cluster, view.rcp
        try:
            self.store.delete(machine.object_ref())
        except NotFoundError:
            log.info(f"Control plane Machine {machine.name} already deleted")
            return
        except Exception as err:
            log.error(f"Failed to delete control plane machine {machine.name}: {err}")
            self.recorder.eventf(
                rcp,
                EVENT_WARNING,
                "FailedScaleDown",
                "Failed to delete control plane Machine %s for cluster %s/%s control plane: %s",
                machine.name,
                cluster.namespace,
                cluster.name,
                err,
            )
            raise

        log.info(f"Deleted control plane Machine {machine.namespace}/{machine.name}")
        self.bus.emit(MachineDeleted(namespace=machine.namespace or "", name=machine.name, **self.run_ctx))
