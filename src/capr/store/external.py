# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/store/external.py
from __future__ import annotations

import copy
from typing import Dict, Optional

from ..api.constants import (
    CLONED_FROM_GROUPKIND_ANNOTATION,
    CLONED_FROM_NAME_ANNOTATION,
    CLUSTER_NAME_LABEL,
    group_of,
)
from ..api.models import ObjectReference, OwnerReference
from ..errors import StoreError
from .interface import Store
from .names import generate_name

TEMPLATE_SUFFIX = "Template"


def clone_template(
    store: Store,
    template_ref: ObjectReference,
    namespace: str,
    cluster_name: str,
    owner: Optional[OwnerReference] = None,
    labels: Optional[Dict[str, str]] = None,
) -> ObjectReference:
    """
    Create a new object from ``spec.template`` of the referenced template and
    return a reference to it.

    The template must live in *namespace* (or carry no namespace) and its kind
    must end in ``Template``.
    """
    ref = template_ref.model_copy(update={"namespace": template_ref.namespace or namespace})
    template = store.get(ref)

    kind = template.get("kind", ref.kind)
    if not kind.endswith(TEMPLATE_SUFFIX):
        raise StoreError(f"{kind} {ref.namespace}/{ref.name} is not a template")

    tmpl = (template.get("spec") or {}).get("template") or {}
    tmpl_meta = tmpl.get("metadata") or {}

    merged_labels = dict(tmpl_meta.get("labels") or {})
    merged_labels.update(labels or {})
    merged_labels[CLUSTER_NAME_LABEL] = cluster_name

    annotations = dict(tmpl_meta.get("annotations") or {})
    group = group_of(template.get("apiVersion", ref.api_version))
    annotations[CLONED_FROM_NAME_ANNOTATION] = ref.name
    annotations[CLONED_FROM_GROUPKIND_ANNOTATION] = f"{kind}.{group}" if group else kind

    obj = {
        "apiVersion": template.get("apiVersion", ref.api_version),
        "kind": kind[: -len(TEMPLATE_SUFFIX)],
        "metadata": {
            "name": generate_name(f"{ref.name}-"),
            "namespace": namespace,
            "labels": merged_labels,
            "annotations": annotations,
        },
        "spec": copy.deepcopy(tmpl.get("spec") or {}),
    }
    if owner is not None:
        obj["metadata"]["ownerReferences"] = [owner.model_dump(mode="json", by_alias=True, exclude_none=True)]

    created = store.create(obj)
    meta = created.get("metadata") or {}
    return ObjectReference(
        api_version=created["apiVersion"],
        kind=created["kind"],
        name=meta.get("name", obj["metadata"]["name"]),
        namespace=meta.get("namespace", namespace),
        uid=meta.get("uid"),
    )
