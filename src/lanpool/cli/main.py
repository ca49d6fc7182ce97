"""
lanpool CLI entry point.

Usage:
    lanpool [OPTIONS] COMMAND [ARGS]...

Commands:
    calc     Validate or derive a MetalLB pool for a given LAN
    ensure   Reconcile the pool with the live network and persist it
    context  Show the detected network
    state    Inspect or reset the persisted state
"""

import sys
from typing import Annotated

import click
import typer

from lanpool.cli.commands import calc, context, ensure, state
from lanpool.cli.output import console
from lanpool.config import config
from lanpool.exceptions import EX_SOFTWARE, EX_USAGE
from lanpool.models.enums import LogLevel
from lanpool.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="lanpool",
    help="LAN address pool allocation for MetalLB and Traefik",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("calc")(calc.calc)
app.command("ensure")(ensure.ensure)
app.command("context")(context.context)
app.add_typer(state.app, name="state", help="Inspect or reset the persisted state")


@app.callback()
def main(
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level",
            "-l",
            help="Logging verbosity",
            envvar="LANPOOL_LOG_LEVEL",
            case_sensitive=False,
        ),
    ] = LogLevel.INFO,
    log_file: Annotated[
        str,
        typer.Option("--log-file", help="Also log to FILE", envvar="LANPOOL_LOG_FILE"),
    ] = "",
):
    """
    lanpool: pick a free LAN range for MetalLB and keep it stable.

    Results are printed to stdout as KEY=VALUE lines; logs go to stderr.
    """
    config.LOG_LEVEL = log_level
    config.LOG_FILE = log_file
    configure_logging(config.LOG_LEVEL, config.LOG_FILE)


@app.command("version")
def version():
    """Show version information."""
    from lanpool import __version__

    console.print(f"lanpool v{__version__}")


def run():
    """Entry point for the CLI; maps failures to sysexits codes."""
    try:
        rv = app(standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(EX_USAGE)
    except click.Abort:
        console.print("Aborted.")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(EX_SOFTWARE)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    run()
