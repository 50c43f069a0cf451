# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/store/memory.py
from __future__ import annotations

import copy
import itertools
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from ..api.constants import group_of
from ..api.models import ObjectReference
from ..errors import AlreadyExistsError, NotFoundError, StoreError
from .names import generate_name

log = logging.getLogger("capr")

_Key = Tuple[str, str, str, str]


def _key(api_version: str, kind: str, namespace: Optional[str], name: str) -> _Key:
    return (group_of(api_version), kind, namespace or "", name)


def _matches(obj: Dict[str, Any], labels: Optional[Dict[str, str]]) -> bool:
    if not labels:
        return True
    have = (obj.get("metadata") or {}).get("labels") or {}
    return all(k in have and have[k] == v for k, v in labels.items())


class InMemoryStore:
    """
    Dict-backed object store with API-server-like create/delete semantics.

    Used by the tests and by the offline ``capr reconcile --manifests`` mode.
    Objects seeded with an explicit ``creationTimestamp`` or ``uid`` keep them,
    so callers can control machine age.
    """

    def __init__(self, objects: Optional[Iterable[Dict[str, Any]]] = None):
        self._objects: Dict[_Key, Dict[str, Any]] = {}
        self._rv = itertools.count(1)
        for obj in objects or []:
            self.create(obj)

    # ------------------------------------------------------------------
    # Store protocol
    # ------------------------------------------------------------------

    def get(self, ref: ObjectReference) -> Dict[str, Any]:
        k = _key(ref.api_version, ref.kind, ref.namespace, ref.name)
        if k not in self._objects:
            raise NotFoundError(f"{ref.kind} {ref.namespace}/{ref.name} not found")
        return copy.deepcopy(self._objects[k])

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        group = group_of(api_version)
        out = []
        for (g, k, ns, _), obj in sorted(self._objects.items()):
            if g != group or k != kind:
                continue
            if namespace is not None and ns != namespace:
                continue
            if not _matches(obj, labels):
                continue
            out.append(copy.deepcopy(obj))
        return out

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        obj = copy.deepcopy(obj)
        api_version = obj.get("apiVersion")
        kind = obj.get("kind")
        if not api_version or not kind:
            raise StoreError("object is missing apiVersion or kind")

        meta = obj.setdefault("metadata", {})
        if not meta.get("name"):
            if not meta.get("generateName"):
                raise StoreError(f"{kind}: metadata.name or metadata.generateName is required")
            meta["name"] = generate_name(meta["generateName"])

        k = _key(api_version, kind, meta.get("namespace"), meta["name"])
        if k in self._objects:
            raise AlreadyExistsError(
                f"{kind} {meta.get('namespace')}/{meta['name']} already exists"
            )

        meta.setdefault("uid", str(uuid.uuid4()))
        meta.setdefault(
            "creationTimestamp",
            datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        meta["resourceVersion"] = str(next(self._rv))

        self._objects[k] = obj
        log.debug(f"[store] created {kind} {meta.get('namespace')}/{meta['name']}")
        return copy.deepcopy(obj)

    def delete(self, ref: ObjectReference) -> None:
        k = _key(ref.api_version, ref.kind, ref.namespace, ref.name)
        if k not in self._objects:
            raise NotFoundError(f"{ref.kind} {ref.namespace}/{ref.name} not found")
        del self._objects[k]
        log.debug(f"[store] deleted {ref.kind} {ref.namespace}/{ref.name}")

    # ------------------------------------------------------------------
    # Manifests
    # ------------------------------------------------------------------

    def load_manifests(self, path: str | Path) -> int:
        return self.load_manifests_text(Path(path).read_text())

    def load_manifests_text(self, text: str) -> int:
        """
        Create every document of a multi-document YAML string.
        Returns the number of objects created.
        """
        count = 0
        for doc in yaml.safe_load_all(text):
            if not doc:
                continue
            self.create(doc)
            count += 1
        return count

    def dump(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(obj) for _, obj in sorted(self._objects.items())]

    def dump_yaml(self) -> str:
        return yaml.safe_dump_all(self.dump(), sort_keys=False)

    def __len__(self) -> int:
        return len(self._objects)
