"""
Console output helpers for the CLI.

Human-facing messages go to stderr through rich. Stdout is reserved for the
key=value assignments that calling scripts ``eval``.
"""

from rich.console import Console
import typer

console = Console(stderr=True)


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def emit_assignments(pairs: list[tuple[str, str]]) -> None:
    """Write KEY=VALUE lines to stdout."""
    for key, value in pairs:
        typer.echo(f"{key}={value}")
