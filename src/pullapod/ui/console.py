"""Shared Rich console and error printing for CLI commands."""

from rich.console import Console
from rich.markup import escape

from pullapod.utils.errors import PullapodError

console = Console()


def print_error(error: PullapodError | str) -> None:
    """Print ``✗ message`` followed by the recovery suggestion, if any."""
    if isinstance(error, PullapodError):
        console.print(f"[red]✗[/red] Error: {escape(error.message)}")
        if error.suggestion:
            console.print(f"[dim]  {escape(error.suggestion)}[/dim]")
    else:
        console.print(f"[red]✗[/red] Error: {escape(error)}")
