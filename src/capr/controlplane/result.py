# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/controlplane/result.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Result:
    """
    What the caller should do after a pass.

    ``Result()`` means done, ``requeue=True`` means run again as soon as
    possible, and ``requeue_after`` (seconds) means run again after a delay.
    The core never sleeps itself.
    """

    requeue: bool = False
    requeue_after: Optional[float] = None

    def is_zero(self) -> bool:
        return not self.requeue and not self.requeue_after
