# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events of one reconciliation pass
    context: Optional[str]  # kube-context of the management cluster

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(context: Optional[str] = None, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "context": context,
    }


# ---------------------------------------------------------------------
# Object events (what an EventRecorder emits)
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ControlPlaneEvent(BaseEvent):
    kind: str
    namespace: Optional[str]
    name: str
    severity: str     # Normal | Warning
    reason: str
    message: str


# ---------------------------------------------------------------------
# Reconciliation lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ReconcileStarted(BaseEvent):
    namespace: str
    name: str
    state: str
    replicas: int
    desired: int

@dataclass(frozen=True)
class ReconcileCompleted(BaseEvent):
    namespace: str
    name: str
    requeue: bool
    requeue_after: Optional[float] = None

@dataclass(frozen=True)
class ReconcileFailed(BaseEvent):
    namespace: str
    name: str
    error: str


# ---------------------------------------------------------------------
# Machine lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class MachineCreated(BaseEvent):
    namespace: str
    name: str
    version: Optional[str]
    failure_domain: Optional[str] = None

@dataclass(frozen=True)
class MachineDeleted(BaseEvent):
    namespace: str
    name: str
