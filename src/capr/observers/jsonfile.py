# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/observers/jsonfile.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..api.constants import EVENT_WARNING
from .events import BaseEvent, ControlPlaneEvent


class JsonFileObserver:
    """
    Appends one JSON object per event to *path*.

    With *warnings_only* just Warning ``ControlPlaneEvent`` records are kept,
    which is what an operator tailing a long-running reconcile cares about.
    """

    def __init__(self, path: str | Path, warnings_only: bool = False):
        self.path = Path(path)
        self.warnings_only = warnings_only
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _wanted(self, event: BaseEvent) -> bool:
        if not self.warnings_only:
            return True
        return isinstance(event, ControlPlaneEvent) and event.severity == EVENT_WARNING

    def notify(self, event: BaseEvent) -> None:
        if not self._wanted(event):
            return
        record = {"type": event.__class__.__name__, **event.dict()}
        with self.path.open("a") as f:
            f.write(json.dumps(record, default=str, sort_keys=False) + "\n")


def read_events(path: str | Path, types: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """Load a JSON-lines event file, optionally keeping only some event types."""
    wanted = set(types) if types is not None else None
    out = []
    for line in Path(path).read_text().splitlines():
        if not line.strip():
            continue
        rec = json.loads(line)
        if wanted is None or rec.get("type") in wanted:
            out.append(rec)
    return out
