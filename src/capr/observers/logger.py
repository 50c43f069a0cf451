# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import logging
from ..api.constants import EVENT_WARNING
from .events import BaseEvent, ControlPlaneEvent


class LoggerObserver:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts",))

        if isinstance(event, ControlPlaneEvent) and event.severity == EVENT_WARNING:
            self.logger.warning(f"[EVENT] {etype}: {msg}")
        else:
            self.logger.info(f"[EVENT] {etype}: {msg}")
