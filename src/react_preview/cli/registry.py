"""
State and registry commands.
"""

from __future__ import annotations

from pathlib import Path

import typer

from react_preview.cli.utils import fail, get_settings
from react_preview.cli_ui import print_info, print_recovered, print_registry, print_success
from react_preview.core.environment import ensure_state_dirs, initialize, resolve_settings
from react_preview.core.errors import PreviewError
from react_preview.core.registry import Registry
from react_preview.core.state import InstanceStore, recover_stale_sessions


def init_command(
    ctx: typer.Context,
    name: str | None = typer.Argument(
        None, help="State directory to create (default: the configured state directory)"
    ),
) -> None:
    """Create the state directory with its storage/ and temp/ folders."""
    settings = get_settings(ctx)
    if name is not None:
        settings = resolve_settings(state_dir=name, working_dir=settings.working_dir)
    try:
        target = initialize(settings)
    except PreviewError as e:
        fail(e)
    print_success(f"Initialized preview environment at {target}")


def register_command(
    ctx: typer.Context,
    config_path: Path = typer.Argument(..., help="Preview file to register"),
) -> None:
    """Register a preview file under its id (or its file name)."""
    settings = get_settings(ctx)
    if not config_path.is_absolute():
        config_path = settings.working_dir / config_path
    try:
        ensure_state_dirs(settings)
        entry = Registry(settings.storage_dir).register(config_path)
    except PreviewError as e:
        fail(e)
    print_success(f"Registered {entry.id} -> {entry.absolute_path}")


def unregister_command(
    ctx: typer.Context,
    preview_id: str = typer.Argument(..., metavar="ID", help="Registered id"),
) -> None:
    """Remove a registered id."""
    settings = get_settings(ctx)
    try:
        Registry(settings.storage_dir).unregister(preview_id)
    except PreviewError as e:
        fail(e)
    print_success(f"Unregistered {preview_id}")


def list_command(ctx: typer.Context) -> None:
    """List registered ids."""
    entries = Registry(get_settings(ctx).storage_dir).list_entries()
    if not entries:
        typer.echo("No registered previews.")
        return
    print_registry(entries)


def recover_command(ctx: typer.Context) -> None:
    """Restore entry files left behind by sessions that did not exit cleanly."""
    settings = get_settings(ctx)
    try:
        recovered = recover_stale_sessions(InstanceStore(settings.temp_dir))
    except PreviewError as e:
        fail(e)
    if not recovered:
        print_info("No stale sessions found")
        return
    print_recovered(recovered)
