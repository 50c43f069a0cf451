# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/store/names.py
import secrets

# Same alphabet the Kubernetes API server uses for generateName suffixes.
_ALPHANUMS = "bcdfghjklmnpqrstvwxz2456789"
_RANDOM_LENGTH = 5
_MAX_NAME_LENGTH = 63
_MAX_BASE_LENGTH = _MAX_NAME_LENGTH - _RANDOM_LENGTH


def generate_name(base: str) -> str:
    """``generate_name("cp-")`` -> ``"cp-x7k2q"``."""
    if len(base) > _MAX_BASE_LENGTH:
        base = base[:_MAX_BASE_LENGTH]
    suffix = "".join(secrets.choice(_ALPHANUMS) for _ in range(_RANDOM_LENGTH))
    return base + suffix
