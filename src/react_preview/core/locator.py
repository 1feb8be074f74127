"""
Target resolution for ``run``.

The target argument may be a preview file, a directory containing
``preview.yaml``, a component file next to a ``preview.yaml``, or a
registered id.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from react_preview.core.config import PREVIEW_FILE, is_preview_file, scaffold_preview_file
from react_preview.core.errors import NotFoundError, PreviewAborted
from react_preview.core.registry import Registry

logger = logging.getLogger(__name__)

COMPONENT_SUFFIXES = (".tsx", ".jsx", ".ts", ".js")

ConfirmCallback = Callable[[str], bool]


def find_component_file(directory: Path) -> Path | None:
    """First component-looking file in *directory*, skipping ``index.*``."""
    for candidate in sorted(directory.iterdir()):
        if (
            candidate.is_file()
            and candidate.suffix in COMPONENT_SUFFIXES
            and not candidate.name.startswith("index.")
        ):
            return candidate
    return None


def locate(
    argument: str,
    *,
    registry: Registry,
    confirm: ConfirmCallback | None = None,
    working_dir: Path | None = None,
) -> Path:
    """Resolve *argument* to an existing preview file.

    Args:
        argument: Path to a preview file, directory, or component file; or a
            registered id.
        registry: Registry consulted when the argument is not a path.
        confirm: Asked whether to scaffold a missing preview file. Without a
            callback, a missing preview file aborts.
        working_dir: Base for relative paths (default: current directory).

    Raises:
        NotFoundError: If nothing resolves to an existing preview file.
        PreviewAborted: If scaffolding was declined.
    """
    base = working_dir or Path.cwd()
    target = Path(argument)
    if not target.is_absolute():
        target = base / target

    source_file: Path | None = None
    if target.is_dir():
        preview_file = target / PREVIEW_FILE
    elif target.is_file():
        if is_preview_file(target):
            return target.resolve()
        preview_file = target.parent / PREVIEW_FILE
        source_file = target
    else:
        found = registry.lookup(argument)
        if found is None:
            raise NotFoundError(f"Cannot find directory, file, or registered id named {argument}")
        if not found.is_file():
            raise NotFoundError(f"Preview file registered as {argument} no longer exists: {found}")
        return found

    if preview_file.is_file():
        return preview_file.resolve()
    return _offer_scaffold(preview_file, source_file, confirm)


def _offer_scaffold(
    preview_file: Path, source_file: Path | None, confirm: ConfirmCallback | None
) -> Path:
    if source_file is None:
        source_file = find_component_file(preview_file.parent)
        if source_file is None:
            raise NotFoundError(
                f"Cannot find a preview file or a component file in {preview_file.parent}"
            )

    question = (
        f"Cannot find a preview file at {preview_file}. "
        "Do you want to create a template preview file?"
    )
    if confirm is None or not confirm(question):
        raise PreviewAborted("Process ended: no preview file")

    relative = os.path.relpath(source_file, preview_file.parent).replace(os.sep, "/")
    return scaffold_preview_file(preview_file, relative).resolve()
