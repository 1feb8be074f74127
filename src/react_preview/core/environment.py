"""
Environment configuration for react-preview.

Process-wide settings are resolved once, at the CLI boundary, and passed
explicitly to everything below it.

Environment variables:
    REACT_PREVIEW_STATE_DIR: State directory (default: ``<cwd>/.react-preview``)
    REACT_PREVIEW_COMMAND: Dev server command (default: ``yarn run start``
        when ``yarn.lock`` exists, else ``npm run start``)

State directory layout:
    <state_dir>/storage/<id>    registry records (content: absolute preview file path)
    <state_dir>/temp/           running-instance markers and entry file backups
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from react_preview.core.errors import NotFoundError, PreviewError
from react_preview.core.ir.preview import Language

logger = logging.getLogger(__name__)

STATE_DIR_ENV_VAR = "REACT_PREVIEW_STATE_DIR"
COMMAND_ENV_VAR = "REACT_PREVIEW_COMMAND"

DEFAULT_STATE_DIRNAME = ".react-preview"
STORAGE_DIRNAME = "storage"
TEMP_DIRNAME = "temp"
DEFAULT_ENTRY_DIRNAME = "src"
TSCONFIG_FILE = "tsconfig.json"


class StateError(PreviewError):
    """Raised when the state directory cannot be set up."""

    pass


@dataclass
class PreviewSettings:
    """Settings shared by every command of one invocation."""

    state_dir: Path
    working_dir: Path
    dev_command: list[str] = field(default_factory=list)

    @property
    def storage_dir(self) -> Path:
        return self.state_dir / STORAGE_DIRNAME

    @property
    def temp_dir(self) -> Path:
        return self.state_dir / TEMP_DIRNAME

    def command(self) -> list[str]:
        """Dev server command, detected from the working directory if unset."""
        if self.dev_command:
            return list(self.dev_command)
        runner = "yarn" if (self.working_dir / "yarn.lock").exists() else "npm"
        return [runner, "run", "start"]


def resolve_settings(
    state_dir: str | Path | None = None,
    working_dir: Path | None = None,
    command: str | None = None,
) -> PreviewSettings:
    """Apply defaults and environment overrides once.

    Explicit arguments win over environment variables, which win over defaults.
    """
    cwd = (working_dir or Path.cwd()).resolve()

    state = state_dir or os.environ.get(STATE_DIR_ENV_VAR, "").strip() or None
    state_path = Path(state) if state else cwd / DEFAULT_STATE_DIRNAME
    if not state_path.is_absolute():
        state_path = cwd / state_path

    command_text = command or os.environ.get(COMMAND_ENV_VAR, "").strip()
    return PreviewSettings(
        state_dir=state_path,
        working_dir=cwd,
        dev_command=shlex.split(command_text) if command_text else [],
    )


def is_initialized(settings: PreviewSettings) -> bool:
    return settings.storage_dir.is_dir() and settings.temp_dir.is_dir()


def initialize(settings: PreviewSettings) -> Path:
    """Create a fresh state directory.

    Raises:
        StateError: If the target already exists.
    """
    target = settings.state_dir
    if target.exists():
        raise StateError(f"Preview environment target already exists: {target}")
    settings.storage_dir.mkdir(parents=True)
    settings.temp_dir.mkdir()
    logger.info("Initialized preview environment at %s", target)
    return target


def ensure_state_dirs(settings: PreviewSettings) -> None:
    """Create the state directories if missing."""
    try:
        settings.storage_dir.mkdir(parents=True, exist_ok=True)
        settings.temp_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StateError(f"Cannot create state directory {settings.state_dir}: {e}") from e


def detect_entry_file(
    entry_dir: Path | None, working_dir: Path, language: Language | None = None
) -> tuple[Path, Language]:
    """Locate the entry file to replace and its language.

    A ``tsconfig.json`` in the entry directory means TypeScript
    (``index.tsx``), otherwise JavaScript (``index.jsx``). An explicit
    *language* skips detection.

    Raises:
        NotFoundError: If the entry directory does not exist.
    """
    directory = entry_dir if entry_dir is not None else working_dir / DEFAULT_ENTRY_DIRNAME
    if not directory.is_absolute():
        directory = working_dir / directory
    if not directory.is_dir():
        raise NotFoundError(f"Directory {directory} does not exist.")

    if language is None:
        if (directory / TSCONFIG_FILE).exists():
            logger.info("Found a tsconfig.json file. Assuming this is a TypeScript project")
            language = Language.TS
        else:
            language = Language.JS
    return (directory / language.entry_filename).resolve(), language
