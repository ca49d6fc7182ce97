"""
Pool calculation command.

Usage:
    lanpool calc --lan-cidr 10.10.0.0/24 --lan-addr 10.10.0.42
    lanpool calc --env-file lab.env --start 10.10.0.240 --end 10.10.0.250
    eval "$(lanpool calc --skip-availability)"
"""

from pathlib import Path
from typing import Annotated

import typer

from lanpool.calculator import calculate_pool, describe_report
from lanpool.cli.environment import apply_config, first_set, load_environment
from lanpool.cli.output import emit_assignments, print_error
from lanpool.config import config
from lanpool.engine import create_selector
from lanpool.exceptions import LanPoolError, UsageError
from lanpool.models.network import NetworkContext
from lanpool.net.addressing import parse_cidr, parse_ipv4
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)


def calc(
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
    lan_cidr: Annotated[
        str | None,
        typer.Option("--lan-cidr", help="LAN CIDR to evaluate (else LAN_CIDR/NETWORK_CIDR)"),
    ] = None,
    lan_addr: Annotated[
        str | None,
        typer.Option("--lan-addr", help="Host IP within the LAN for the preferred window"),
    ] = None,
    start: Annotated[
        str | None,
        typer.Option("--start", help="Pool start to validate (else METALLB_POOL_START)"),
    ] = None,
    end: Annotated[
        str | None,
        typer.Option("--end", help="Pool end to validate (else METALLB_POOL_END)"),
    ] = None,
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
):
    """Validate or derive MetalLB pool addresses for a LAN."""
    try:
        environ = load_environment(env_file)
        apply_config(environ)
        config.CHECK_AVAILABILITY = not skip_availability
        config.REQUIRE_PROBES = require_probes

        cidr_raw = lan_cidr or first_set(environ, "LAN_CIDR", "NETWORK_CIDR")
        if not cidr_raw:
            raise UsageError(
                "LAN CIDR must be provided via --lan-cidr or LAN_CIDR/NETWORK_CIDR"
            )
        network = parse_cidr(cidr_raw)

        addr_raw = lan_addr or first_set(environ, "LAN_ADDR", "NETWORK_ADDR")
        address = parse_ipv4(addr_raw)
        if addr_raw and address is None:
            logger.warning(f"Ignoring invalid LAN address '{addr_raw}'")
        elif address is not None:
            logger.debug(f"Using LAN address {address} for pool heuristics")

        start_raw = start if start is not None else environ.get("METALLB_POOL_START", "")
        end_raw = end if end is not None else environ.get("METALLB_POOL_END", "")

        report = calculate_pool(
            NetworkContext.from_cidr(network, address),
            start_raw,
            end_raw,
            create_selector(),
        )
    except LanPoolError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code)

    describe_report(report, str(network))
    emit_assignments(report.to_assignments())
