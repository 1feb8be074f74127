"""
react-preview CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import logging
import platform
from typing import NoReturn

import typer

from react_preview._version import get_version
from react_preview.core.environment import PreviewSettings, resolve_settings
from react_preview.core.errors import PreviewError

# Answers accepted by the scaffold prompt
AFFIRMATIVE_ANSWERS = frozenset({"y", "yes", "ok", "yep", "yeah"})


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"react-preview {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def confirm(question: str) -> bool:
    """Ask a yes/no question; anything but an affirmative answer means no."""
    answer = typer.prompt(f"{question} [y/N]", default="", show_default=False)
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def fail(error: PreviewError) -> NoReturn:
    """Report *error* on stderr and exit with its code (1 unless it carries one)."""
    typer.echo(f"Error: {error}", err=True)
    exit_code = getattr(error, "exit_code", None)
    raise typer.Exit(code=exit_code or 1)


def get_settings(ctx: typer.Context, command: str | None = None) -> PreviewSettings:
    """Settings resolved by the app callback, with an optional command override."""
    settings = ctx.obj if isinstance(ctx.obj, PreviewSettings) else resolve_settings()
    if command:
        settings = resolve_settings(
            state_dir=settings.state_dir, working_dir=settings.working_dir, command=command
        )
    return settings
