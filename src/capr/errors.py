# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/errors.py
from __future__ import annotations

from typing import Iterable, List, Optional


class CaprError(RuntimeError):
    """Base class for control-plane reconciliation failures."""


# ---------------------------------------------------------------------
# Store (retryable)
# ---------------------------------------------------------------------
class StoreError(CaprError):
    """A read/create/delete against the object store failed."""


class NotFoundError(StoreError):
    """The referenced object does not exist."""


class AlreadyExistsError(StoreError):
    """An object with the same identity is already stored."""


# ---------------------------------------------------------------------
# Invariant violations (fatal)
# ---------------------------------------------------------------------
class InvariantViolationError(CaprError):
    """State the reconciler must never observe. Not retried by the core."""


class ControlPlaneAlreadyInitializedError(InvariantViolationError):
    pass


class NoMachineSelectedError(InvariantViolationError):
    pass


class ScaleDownError(InvariantViolationError):
    pass


# ---------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------
class AggregateError(CaprError):
    """
    Ordered collection of independent failures raised as one error.

    ``str()`` renders a single error as its own message and several errors
    as ``[msg1, msg2]``.
    """

    def __init__(self, errors: Iterable[BaseException]):
        self.errors: List[BaseException] = [e for e in errors if e is not None]
        super().__init__(self._message())

    def _message(self) -> str:
        msgs = [str(e) for e in self.errors]
        if len(msgs) == 1:
            return msgs[0]
        return "[" + ", ".join(msgs) + "]"

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)


class ProvisioningError(AggregateError):
    """Creating a control-plane Machine and its dependents failed."""


def aggregate(errors: Iterable[BaseException], cls: type = AggregateError) -> Optional[AggregateError]:
    """Return an aggregate of *errors*, or None when there are none."""
    errs = [e for e in errors if e is not None]
    if not errs:
        return None
    return cls(errs)


def wrap(err: BaseException, message: str, cls: type = CaprError) -> CaprError:
    """Prefix *err* with *message* keeping it as ``__cause__``."""
    wrapped = cls(f"{message}: {err}")
    wrapped.__cause__ = err
    return wrapped
