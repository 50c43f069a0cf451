# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/config/models.py

from typing import List, Optional
from pydantic import BaseModel, Field, PositiveFloat

from ..api.constants import MACHINE_AGENT_HEALTHY_CONDITION


class ReconcilerSettings(BaseModel):
    """Fixed backoffs and health requirements used by every reconciliation pass."""

    delete_requeue_after: PositiveFloat = 30.0           # seconds
    preflight_failed_requeue_after: PositiveFloat = 15.0  # seconds
    required_machine_conditions: List[str] = Field(default_factory=lambda: [MACHINE_AGENT_HEALTHY_CONDITION])

    model_config = {
        "extra": "forbid",
    }


class LoggingConfig(BaseModel):
    dir: Optional[str] = None     # defaults to ~/.capr/logs
    verbose: bool = False
    events_file: Optional[str] = None
    events_warnings_only: bool = False


class CaprConfig(BaseModel):
    context: Optional[str] = None       # Kubernetes context of the management cluster
    kubeconfig: Optional[str] = None
    namespace: str = "default"
    reconciler: ReconcilerSettings = Field(default_factory=ReconcilerSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
