# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from .preflight import PreflightGate
from .provisioner import Provisioner
from .reconciler import Reconciler
from .result import Result
from .scale import ScaleEngine, ScaleState
from .selector import select_machine_for_scale_down
from .version import rke2_to_kube_version
from .view import ControlPlaneView

__all__ = [
    "ControlPlaneView",
    "PreflightGate",
    "Provisioner",
    "Reconciler",
    "Result",
    "ScaleEngine",
    "ScaleState",
    "rke2_to_kube_version",
    "select_machine_for_scale_down",
]
