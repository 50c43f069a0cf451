# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from .loader import load_config
from .models import CaprConfig, LoggingConfig, ReconcilerSettings

__all__ = ["CaprConfig", "LoggingConfig", "ReconcilerSettings", "load_config"]
