# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from .cached import CachedStore
from .interface import Store
from .memory import InMemoryStore

__all__ = ["CachedStore", "InMemoryStore", "Store"]
