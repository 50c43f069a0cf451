# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/store/kube.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from kubernetes import client, config, dynamic
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError

from ..api.models import ObjectReference
from ..errors import AlreadyExistsError, NotFoundError, StoreError

log = logging.getLogger("capr")


def _selector(labels: Optional[Dict[str, str]]) -> Optional[str]:
    if not labels:
        return None
    return ",".join(f"{k}={v}" for k, v in labels.items())


def _translate(exc: ApiException, what: str) -> StoreError:
    if exc.status == 404:
        err: StoreError = NotFoundError(f"{what} not found")
    elif exc.status == 409:
        err = AlreadyExistsError(f"{what} already exists")
    else:
        err = StoreError(f"{what}: {exc.status} {exc.reason}")
    err.__cause__ = exc
    return err


class KubernetesStore:
    """
    Store backed by the management cluster API server through the dynamic
    client. Every call goes to the API server, so this is also the uncached
    read path.
    """

    def __init__(
        self,
        kube_context: Optional[str] = None,
        kubeconfig: Optional[str] = None,
        api_client: Optional[client.ApiClient] = None,
    ):
        if api_client is None:
            config.load_kube_config(config_file=kubeconfig, context=kube_context)
            api_client = client.ApiClient()
        self._dyn = dynamic.DynamicClient(api_client)

    def _resource(self, api_version: str, kind: str):
        try:
            return self._dyn.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as exc:
            raise StoreError(f"resource {kind}.{api_version} is not served by the API server") from exc

    def get(self, ref: ObjectReference) -> Dict[str, Any]:
        res = self._resource(ref.api_version, ref.kind)
        try:
            return res.get(name=ref.name, namespace=ref.namespace).to_dict()
        except ApiException as exc:
            raise _translate(exc, f"{ref.kind} {ref.namespace}/{ref.name}")

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        res = self._resource(api_version, kind)
        try:
            resp = res.get(namespace=namespace, label_selector=_selector(labels))
        except ApiException as exc:
            raise _translate(exc, f"list {kind} in {namespace or '<all>'}")

        items = resp.to_dict().get("items") or []
        for item in items:
            # list responses omit TypeMeta on items
            item.setdefault("apiVersion", api_version)
            item.setdefault("kind", kind)
        return items

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        meta = obj.get("metadata") or {}
        what = f"{obj.get('kind')} {meta.get('namespace')}/{meta.get('name') or meta.get('generateName')}"
        res = self._resource(obj["apiVersion"], obj["kind"])
        try:
            created = res.create(body=obj, namespace=meta.get("namespace")).to_dict()
        except ApiException as exc:
            raise _translate(exc, what)
        log.debug(f"[kube] created {what}")
        return created

    def delete(self, ref: ObjectReference) -> None:
        res = self._resource(ref.api_version, ref.kind)
        try:
            res.delete(name=ref.name, namespace=ref.namespace)
        except ApiException as exc:
            raise _translate(exc, f"{ref.kind} {ref.namespace}/{ref.name}")
        log.debug(f"[kube] deleted {ref}")
