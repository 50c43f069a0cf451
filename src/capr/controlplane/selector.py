# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/selector.py
from __future__ import annotations

from ..api.models import Machine
from ..errors import NoMachineSelectedError
from .view import ControlPlaneView


def select_machine_for_scale_down(view: ControlPlaneView, outdated: ControlPlaneView) -> Machine:
    """
    Pick the Machine to remove.

    The first non-empty set wins:
      1. outdated machines marked with the delete annotation
      2. any machine marked with the delete annotation
      3. outdated machines
      4. all machines
    Within that set, the oldest machine of the most populated failure domain
    is returned.
    """
    machines = view
    if len(view.machines_with_delete_annotation(outdated)) > 0:
        machines = view.machines_with_delete_annotation(outdated)
    elif len(view.machines_with_delete_annotation(view)) > 0:
        machines = view.machines_with_delete_annotation(view)
    elif len(outdated) > 0:
        machines = outdated

    machine = view.machine_in_failure_domain_with_most_machines(machines)
    if machine is None:
        raise NoMachineSelectedError(
            f"no control plane Machine to delete for {view.rcp.namespace}/{view.rcp.name}"
        )
    return machine
