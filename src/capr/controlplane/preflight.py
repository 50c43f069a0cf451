# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/preflight.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..api.constants import CONDITION_FALSE, CONDITION_TRUE, CONDITION_UNKNOWN, EVENT_WARNING
from ..api.models import Machine
from ..config.models import ReconcilerSettings
from ..errors import AggregateError
from ..observers.recorder import EventRecorder
from .result import Result
from .view import ControlPlaneView

log = logging.getLogger("capr")


class PreflightCheckError(Exception):
    """One failed condition on one machine; collected, never raised."""


def check_condition(kind: str, machine: Machine, condition: str) -> Optional[PreflightCheckError]:
    c = machine.get_condition(condition)
    if c is None:
        return PreflightCheckError(f"{kind} {machine.name} does not have {condition} condition")
    if c.status == CONDITION_TRUE:
        return None
    if c.status == CONDITION_FALSE:
        return PreflightCheckError(
            f"{kind} {machine.name} reports {condition} condition is false ({c.severity}, {c.message})"
        )
    if c.status == CONDITION_UNKNOWN:
        return PreflightCheckError(
            f"{kind} {machine.name} reports {condition} condition is unknown ({c.message})"
        )
    return None


class PreflightGate:
    """
    Decides whether the control plane is stable enough for a scale operation.

    Stable means:
      - no machine deletion is in progress
      - every required health condition is True on every machine that is
        not excluded (the scale-down candidate is excluded so it cannot block
        its own removal)

    An unstable control plane is not an error: ``check`` returns a Result
    asking to come back after a fixed delay.
    """

    def __init__(self, settings: ReconcilerSettings, recorder: Optional[EventRecorder] = None):
        self.settings = settings
        self.recorder = recorder or EventRecorder()

    def check(self, view: ControlPlaneView, exclude: Iterable[Machine] = ()) -> Result:
        # Nothing owned yet: the control plane has not been initialized.
        if len(view) == 0:
            return Result()

        if view.has_deleting_machine():
            log.info(
                f"Waiting for machines to be deleted: {', '.join(view.deleting_machines().names())}"
            )
            return Result(requeue_after=self.settings.delete_requeue_after)

        excluded = {m.name for m in exclude if m is not None}
        failures: List[PreflightCheckError] = []
        for machine in view:
            if machine.name in excluded:
                continue
            for condition in self.settings.required_machine_conditions:
                err = check_condition("machine", machine, condition)
                if err is not None:
                    failures.append(err)

        if failures:
            aggregated = AggregateError(failures)
            self.recorder.eventf(
                view.rcp,
                EVENT_WARNING,
                "ControlPlaneUnhealthy",
                "Waiting for control plane to pass preflight checks to continue reconciliation: %s",
                aggregated,
            )
            log.info(f"Waiting for control plane to pass preflight checks: failures={aggregated}")
            return Result(requeue_after=self.settings.preflight_failed_requeue_after)

        return Result()
