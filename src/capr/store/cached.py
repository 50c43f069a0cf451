# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/store/cached.py
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..api.models import ObjectReference
from .interface import Store

log = logging.getLogger("capr")


class CachedStore:
    """
    Read-through snapshot cache in front of another store.

    Reads are answered from the first snapshot taken for a given query until
    ``invalidate()`` is called or a write goes through this wrapper. Writes
    made directly against the backing store are not observed, which is
    exactly the staleness the reconciler must guard against with uncached
    reads.
    """

    def __init__(self, backend: Store):
        self.backend = backend
        self._lists: Dict[Tuple, List[Dict[str, Any]]] = {}
        self._gets: Dict[Tuple, Dict[str, Any]] = {}

    def invalidate(self) -> None:
        self._lists.clear()
        self._gets.clear()

    def get(self, ref: ObjectReference) -> Dict[str, Any]:
        k = (ref.api_version, ref.kind, ref.namespace, ref.name)
        if k not in self._gets:
            self._gets[k] = self.backend.get(ref)
        return copy.deepcopy(self._gets[k])

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        k = (api_version, kind, namespace, tuple(sorted((labels or {}).items())))
        if k not in self._lists:
            log.debug(f"[cache] miss {kind} ns={namespace} labels={labels}")
            self._lists[k] = self.backend.list(api_version, kind, namespace=namespace, labels=labels)
        return copy.deepcopy(self._lists[k])

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.backend.create(obj)
        finally:
            self.invalidate()

    def delete(self, ref: ObjectReference) -> None:
        try:
            self.backend.delete(ref)
        finally:
            self.invalidate()
