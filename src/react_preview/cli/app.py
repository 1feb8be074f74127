"""
Main typer application for react-preview.

Global options are handled by the callback, which resolves the process-wide
settings once and stores them on the context for every command.
"""

from __future__ import annotations

from pathlib import Path

import typer

from react_preview.cli.utils import configure_logging, version_callback
from react_preview.core.environment import resolve_settings

app = typer.Typer(
    help="""react-preview – preview one React component in its host app

Commands:
  • run <target> [entry_directory]
    → Replace the entry file, start the dev server, restore on exit

  • register / unregister / list
    → Manage short ids for preview files

  • init, recover, render
    → Set up state, repair after a crash, print generated code
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    state_dir: Path | None = typer.Option(
        None,
        "--state-dir",
        help="State directory (default: $REACT_PREVIEW_STATE_DIR or ./.react-preview)",
    ),
) -> None:
    """react-preview main callback for global options."""
    configure_logging(verbose)
    ctx.obj = resolve_settings(state_dir=state_dir)


# =============================================================================
# Commands
# =============================================================================
from react_preview.cli.preview import render_command, run_command  # noqa: E402
from react_preview.cli.registry import (  # noqa: E402
    init_command,
    list_command,
    recover_command,
    register_command,
    unregister_command,
)

app.command(name="run")(run_command)
app.command(name="render")(render_command)
app.command(name="init")(init_command)
app.command(name="register")(register_command)
app.command(name="unregister")(unregister_command)
app.command(name="list")(list_command)
app.command(name="recover")(recover_command)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)
