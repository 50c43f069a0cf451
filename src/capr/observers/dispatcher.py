# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/observers/dispatcher.py
from __future__ import annotations
import logging
from typing import List
from .events import BaseEvent
from .interface import Observer

log = logging.getLogger("capr")


class EventBus:
    def __init__(self, observers: List = None):
        self._observers = []
        for ob in observers or []:
            self.subscribe(ob)

    def subscribe(self, observer) -> None:
        if not isinstance(observer, Observer):
            raise TypeError(f"{observer!r} has no notify(event) method")
        self._observers.append(observer)

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception:
                # observers must not break reconciliation
                log.debug("observer %r failed on %s", ob, event.__class__.__name__, exc_info=True)
