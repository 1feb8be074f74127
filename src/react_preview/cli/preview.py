"""
Preview commands: run a session, or print the generated entry file.
"""

from __future__ import annotations

from pathlib import Path

import typer

from react_preview.cli.utils import confirm, fail, get_settings
from react_preview.cli_ui import print_header, print_success, print_warning
from react_preview.core.environment import ensure_state_dirs, is_initialized
from react_preview.core.errors import PreviewError
from react_preview.core.locator import locate
from react_preview.core.registry import Registry
from react_preview.core.session import render_preview, run_session


def run_command(
    ctx: typer.Context,
    target: str = typer.Argument(
        ..., help="Preview file, component file, directory, or registered id"
    ),
    entry_directory: Path | None = typer.Argument(
        None, help="Directory holding the entry file (default: ./src)"
    ),
    command: str | None = typer.Option(
        None,
        "--command",
        "-c",
        help="Dev server command (default: $REACT_PREVIEW_COMMAND, yarn or npm run start)",
    ),
) -> None:
    """
    Preview a component with the project's dev server.

    The entry file is replaced for the duration of the session and restored
    when the dev server exits or the process is interrupted. The exit code
    mirrors the dev server's.

    Examples:
        react-preview run src/components/Card
        react-preview run src/components/Card/preview.yaml
        react-preview run card
        react-preview run card app/src --command "npx vite"
    """
    settings = get_settings(ctx, command=command)
    try:
        config_file = locate(
            target,
            registry=Registry(settings.storage_dir),
            confirm=confirm,
            working_dir=settings.working_dir,
        )
        if not is_initialized(settings):
            print_warning(f"Creating state directory {settings.state_dir}")
            ensure_state_dirs(settings)
        print_header("react-preview", f"Previewing {config_file}")
        session = run_session(config_file, settings, entry_dir=entry_directory)
    except PreviewError as e:
        fail(e)
    if session.backup is not None:
        print_success(f"Restored {session.entry_file}")
    else:
        print_success(f"Removed generated {session.entry_file}")


def render_command(
    ctx: typer.Context,
    target: str = typer.Argument(
        ..., help="Preview file, component file, directory, or registered id"
    ),
    entry_directory: Path | None = typer.Argument(
        None, help="Directory holding the entry file (default: ./src)"
    ),
) -> None:
    """Print the entry file a session would generate, without running anything."""
    settings = get_settings(ctx)
    try:
        config_file = locate(
            target, registry=Registry(settings.storage_dir), working_dir=settings.working_dir
        )
        _entry_file, code = render_preview(config_file, settings, entry_directory)
    except PreviewError as e:
        fail(e)
    typer.echo(code, nl=False)
