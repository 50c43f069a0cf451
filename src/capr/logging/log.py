# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/capr/logging/log.py

from __future__ import annotations

import logging
from pathlib import Path
from datetime import datetime, timezone
import uuid

# Libraries that are chatty at DEBUG and drown out reconcile decisions.
_NOISY_LOGGERS = ("kubernetes", "urllib3")


class _RunIdFilter(logging.Filter):
    """Stamps every record with the run id so file lines can be grepped per run."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id[:8]
        return True


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "capr",
    verbose: bool = False,
    run_id: str | None = None,
) -> tuple[logging.Logger, str, Path]:
    """
    Configure the ``capr`` logger that every reconciler module writes to.

    The per-run file always gets the full DEBUG trace (cache misses, store
    writes, preflight failures). The console shows INFO, or DEBUG with
    *verbose*. Returns the run id so the CLI can hand it to the reconciler
    and the event observers.
    """
    run_id = run_id or str(uuid.uuid4())

    if base_dir is None:
        base_dir = Path.home() / ".capr" / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(run_id)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    run_filter = _RunIdFilter(run_id)

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    fh.addFilter(run_filter)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)
    ch.addFilter(run_filter)

    logger.addHandler(fh)
    logger.addHandler(ch)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)

    logger.info("=== capr reconcile run started ===")
    logger.debug(f"run_id={run_id} log_file={log_path}")

    return logger, run_id, log_path
