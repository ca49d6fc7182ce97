"""Network context inspection command."""

import typer
from rich.table import Table

from lanpool.cli.output import console, emit_assignments, print_error
from lanpool.exceptions import LanPoolError
from lanpool.models.network import NetworkContext
from lanpool.net.context import NetworkContextProbe


def context_assignments(context: NetworkContext) -> list[tuple[str, str]]:
    """NETWORK_* variables describing the context."""
    return [
        ("NETWORK_IFACE", context.iface),
        ("NETWORK_GW", context.gateway),
        ("NETWORK_ADDR", str(context.address) if context.address else ""),
        ("NETWORK_PREFIX", str(context.network.prefixlen)),
        ("NETWORK_CIDR", context.cidr),
        ("NETWORK_MTU", str(context.mtu) if context.mtu else ""),
        ("NETWORK_CLASS", context.link_class.value),
    ]


def context():
    """Show the detected outbound network."""
    try:
        ctx = NetworkContextProbe().probe()
    except LanPoolError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code)

    table = Table(title="Active Network", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Interface", f"{ctx.iface} ({ctx.link_class.value})")
    table.add_row("Address", f"{ctx.address}/{ctx.network.prefixlen}")
    table.add_row("CIDR", ctx.cidr)
    table.add_row("Gateway", ctx.gateway or "[dim]<none>[/dim]")
    table.add_row("MTU", str(ctx.mtu) if ctx.mtu else "[dim]unknown[/dim]")
    console.print(table)

    emit_assignments(context_assignments(ctx))
