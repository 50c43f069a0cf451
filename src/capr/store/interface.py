# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..api.models import ObjectReference


class Store(Protocol):
    """
    Minimal object-store surface the reconciler depends on.

    Objects are Kubernetes-shaped dicts. ``delete`` and ``get`` raise
    ``capr.errors.NotFoundError`` for missing objects; every other failure
    surfaces as ``capr.errors.StoreError``.
    """

    def get(self, ref: ObjectReference) -> Dict[str, Any]: ...

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]: ...

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]: ...

    def delete(self, ref: ObjectReference) -> None: ...
