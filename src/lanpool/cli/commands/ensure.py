"""
Network reconciliation command.

Detects the live network, compares it with the previous run, keeps or
re-derives the MetalLB pool and Traefik VIP, and persists the result.

Usage:
    eval "$(lanpool ensure)"
    lanpool ensure --assume-yes --state-file /var/lib/lab/state.json
    lanpool ensure --dry-run --skip-availability
"""

from pathlib import Path
from typing import Annotated

import click
import typer

from lanpool.cli.environment import apply_config, load_environment
from lanpool.cli.output import console, emit_assignments, print_error
from lanpool.config import config
from lanpool.engine import PoolEngine
from lanpool.exceptions import LanPoolError
from lanpool.models.network import NetworkContext
from lanpool.models.state import PersistedState


def prompt_drift(previous: PersistedState, context: NetworkContext) -> bool:
    """Ask the operator on the terminal; EOF or Ctrl-C declines."""
    console.print(
        f"[yellow]Network changed:[/yellow] {previous.cidr or '?'} via "
        f"{previous.iface or '?'} -> {context.cidr} via {context.iface}"
    )
    try:
        return typer.confirm(
            "Continue with new network context?", default=True, err=True
        )
    except click.Abort:
        return False


def ensure(
    env_file: Annotated[
        Path | None,
        typer.Option(
            "--env-file",
            "-e",
            help="Source environment variables from FILE",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    state_file: Annotated[
        str | None,
        typer.Option("--state-file", help="State file path", envvar="LANPOOL_STATE_FILE"),
    ] = None,
    assume_yes: Annotated[
        bool,
        typer.Option("--assume-yes", "-y", help="Continue on network change without asking"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", help="Ignore the stored pool and recompute"),
    ] = False,
    skip_availability: Annotated[
        bool,
        typer.Option(
            "--skip-availability",
            "--no-availability",
            help="Do not probe candidate ranges for activity",
        ),
    ] = False,
    require_probes: Annotated[
        bool,
        typer.Option("--require-probes", help="Fail if ping and ip are both missing"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Do not write the state file"),
    ] = False,
):
    """Reconcile the MetalLB pool and Traefik IP with the live network."""
    try:
        environ = load_environment(env_file)
        apply_config(environ)
        if state_file:
            config.STATE_FILE = state_file
        config.ASSUME_YES = assume_yes
        config.CHECK_AVAILABILITY = not skip_availability
        config.REQUIRE_PROBES = require_probes

        engine = PoolEngine.from_config(confirm=prompt_drift)
        result = engine.ensure(
            requested_start=environ.get("METALLB_POOL_START", "").strip(),
            requested_end=environ.get("METALLB_POOL_END", "").strip(),
            requested_vip=environ.get("TRAEFIK_LOCAL_IP", "").strip(),
            force=force,
            dry_run=dry_run,
        )
    except LanPoolError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code)

    emit_assignments(result.outcome.report.to_assignments())
