# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/observers/recorder.py
from __future__ import annotations

from typing import Any, Dict, Optional

from .dispatcher import EventBus
from .events import ControlPlaneEvent, new_ctx


class EventRecorder:
    """
    Fire-and-forget object events ("Warning FailedScaleUp ...") published on
    an EventBus. Never raises into the caller.
    """

    def __init__(self, bus: Optional[EventBus] = None, run_ctx: Optional[Dict[str, Any]] = None):
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx()

    def eventf(self, obj, severity: str, reason: str, fmt: str, *args: Any) -> None:
        message = fmt % args if args else fmt
        ctx = dict(self.run_ctx, ts=new_ctx()["ts"])
        self.bus.emit(
            ControlPlaneEvent(
                kind=getattr(obj, "kind", type(obj).__name__),
                namespace=getattr(obj, "namespace", None),
                name=getattr(obj, "name", ""),
                severity=severity,
                reason=reason,
                message=message,
                **ctx,
            )
        )
