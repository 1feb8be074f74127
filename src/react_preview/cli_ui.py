"""
Rich console helpers for the react-preview CLI.

Status lines and tables; plain output and errors go through ``typer.echo``.
"""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.style import Style
from rich.table import Table
from rich.text import Text

from react_preview.core.registry import RegistryEntry
from react_preview.core.state import RunningInstanceMarker

console = Console()

# Style definitions
STYLES = {
    "title": Style(color="bright_cyan", bold=True),
    "subtitle": Style(color="bright_black"),
    "success": Style(color="green", bold=True),
    "warning": Style(color="yellow"),
    "info": Style(color="cyan"),
}


def print_header(title: str, subtitle: str = "") -> None:
    """Print a styled header."""
    console.print()
    console.print(Text(title, style=STYLES["title"]))
    if subtitle:
        console.print(Text(subtitle, style=STYLES["subtitle"]))
    console.print()


def print_success(message: str) -> None:
    console.print(Text(f"✓ {message}", style=STYLES["success"]))


def print_warning(message: str) -> None:
    console.print(Text(f"⚠ {message}", style=STYLES["warning"]))


def print_info(message: str) -> None:
    console.print(Text(f"ℹ {message}", style=STYLES["info"]))


def print_registry(entries: list[RegistryEntry]) -> None:
    """Table of registered previews, flagging files that no longer exist."""
    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Id", style="white bold", no_wrap=True)
    table.add_column("Preview file", style="bright_black", overflow="fold")

    for entry in entries:
        path = str(entry.absolute_path)
        if not entry.absolute_path.is_file():
            path += " (missing)"
        table.add_row(entry.id, path)

    console.print(table)


def print_recovered(markers: list[RunningInstanceMarker]) -> None:
    for marker in markers:
        print_success(f"Restored {marker.index_filename}")
