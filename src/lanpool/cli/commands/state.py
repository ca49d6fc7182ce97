"""
State file commands.

Usage:
    lanpool state show
    lanpool state clear --state-file /var/lib/lab/state.json
"""

import json
from typing import Annotated

import typer

from lanpool.cli.output import console, print_error, print_success, print_warning
from lanpool.config import config
from lanpool.exceptions import LanPoolError
from lanpool.state.store import StateStore

app = typer.Typer(help="Inspect or reset the persisted state")

StateFileOption = Annotated[
    str | None,
    typer.Option("--state-file", help="State file path", envvar="LANPOOL_STATE_FILE"),
]


def _store(state_file: str | None) -> StateStore:
    if state_file:
        config.STATE_FILE = state_file
    return StateStore(config.get_state_path())


@app.command("show")
def show(state_file: StateFileOption = None):
    """Print the persisted state as JSON."""
    store = _store(state_file)
    state = store.load()
    if state is None:
        print_warning(f"No usable state at {store.path}")
        raise typer.Exit(1)

    console.print(f"[dim]{store.path}[/dim]")
    typer.echo(json.dumps(state.model_dump(mode="json", exclude_none=True), indent=2))


@app.command("clear")
def clear(
    state_file: StateFileOption = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask")] = False,
):
    """Delete the persisted state so the next run recomputes."""
    store = _store(state_file)
    if not yes and not typer.confirm(f"Remove {store.path}?", err=True):
        raise typer.Exit(1)

    try:
        removed = store.clear()
    except LanPoolError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code)

    if removed:
        print_success(f"Removed {store.path}")
    else:
        print_warning(f"No state file at {store.path}")
