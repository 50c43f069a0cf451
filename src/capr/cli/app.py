# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/capr/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from capr.config.loader import load_config
from capr.config.models import CaprConfig
from capr.controlplane.reconciler import Reconciler
from capr.controlplane.result import Result
from capr.controlplane.version import rke2_to_kube_version
from capr.errors import CaprError
from capr.logging.log import init_logging
from capr.observers.dispatcher import EventBus
from capr.observers.jsonfile import JsonFileObserver
from capr.observers.logger import LoggerObserver
from capr.store.cached import CachedStore
from capr.store.memory import InMemoryStore


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="RKE2 control plane scale reconciler")


def _describe(result: Result) -> str:
    if result.requeue_after:
        return f"requeue after {result.requeue_after:g}s"
    if result.requeue:
        return "requeue"
    return "done"


def _build_reconciler(cfg: CaprConfig, manifests: Optional[Path], bus: EventBus, run_id: str):
    """
    Offline mode (--manifests): an in-memory store seeded from YAML, read
    through a snapshot cache, with the store itself as the uncached path.
    Otherwise the management cluster from the config's kube context.
    """
    if manifests is not None:
        backend = InMemoryStore()
        backend.load_manifests(manifests)
        return Reconciler(
            CachedStore(backend),
            uncached_store=backend,
            settings=cfg.reconciler,
            bus=bus,
            context=cfg.context,
            run_id=run_id,
        ), backend

    from capr.store.kube import KubernetesStore

    kube = KubernetesStore(kube_context=cfg.context, kubeconfig=cfg.kubeconfig)
    return Reconciler(
        kube,
        uncached_store=kube,
        settings=cfg.reconciler,
        bus=bus,
        context=cfg.context,
        run_id=run_id,
    ), None


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def reconcile(
    name: str = typer.Argument(..., help="RKE2ControlPlane name"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="capr config YAML"),
    manifests: Optional[Path] = typer.Option(
        None,
        "--manifests",
        help="Reconcile against objects from this YAML file instead of a live cluster",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="With --manifests: write the resulting objects here",
    ),
    passes: int = typer.Option(1, "--passes", min=1, help="Keep going while an immediate requeue is requested"),
    events_file: Optional[Path] = typer.Option(None, "--events-file", help="Append JSON events to this file"),
    warnings_only: bool = typer.Option(False, "--warnings-only", help="Only write Warning events to --events-file"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    debug: bool = typer.Option(False, "--debug"),
):
    cfg = load_config(config)

    base_dir = log_dir or (Path(cfg.logging.dir).expanduser() if cfg.logging.dir else None)
    logger, run_id, log_path = init_logging(base_dir=base_dir, verbose=debug or cfg.logging.verbose)

    observers = [LoggerObserver(logger)]
    events_path = events_file or (Path(cfg.logging.events_file).expanduser() if cfg.logging.events_file else None)
    if events_path:
        observers.append(
            JsonFileObserver(events_path, warnings_only=warnings_only or cfg.logging.events_warnings_only)
        )
    bus = EventBus(observers)

    ns = namespace or cfg.namespace
    typer.secho(f"Reconciling RKE2ControlPlane {ns}/{name}", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")

    reconciler, backend = _build_reconciler(cfg, manifests, bus, run_id)

    try:
        for n in range(1, passes + 1):
            result = reconciler.reconcile(ns, name)
            typer.echo(f"[pass {n}] {_describe(result)}")
            if not result.requeue or result.requeue_after:
                break
    except CaprError as e:
        logger.error(f"reconcile failed: {e}")
        typer.secho(f"Reconcile failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    finally:
        if backend is not None and output is not None:
            output.write_text(backend.dump_yaml())
            typer.echo(f"Wrote {len(backend)} objects to {output}")


@app.command("kube-version")
def kube_version(version: str = typer.Argument(..., help="RKE2 version, e.g. v1.23.4+rke2r1")):
    """Print the Kubernetes version a Machine would get for an RKE2 version."""
    typer.echo(rke2_to_kube_version(version))


def main():
    app()


if __name__ == "__main__":
    main()
