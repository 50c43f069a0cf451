# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/version.py
import re

# v1.23.4+rke2r1 -> v1.23.4
_RKE2_VERSION = re.compile(r"^v(\d+)\.(\d+)\.(\d+)\+([a-z][a-z0-9]*?)r(\d+)$")


def rke2_to_kube_version(rke2_version: str) -> str:
    """
    Kubernetes version recorded on a Machine for an RKE2 release string.

    Anything that does not look like ``v<maj>.<min>.<patch>+<distro>r<N>`` is
    returned unchanged; callers needing strict validation must check the
    format themselves.
    """
    m = _RKE2_VERSION.match(rke2_version)
    if m is None:
        return rke2_version
    major, minor, patch = m.group(1, 2, 3)
    return f"v{major}.{minor}.{patch}"
