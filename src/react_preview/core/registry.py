"""
Preview registry.

Maps short ids to preview files so ``run <id>`` works from anywhere in the
project. The storage directory holds one text file per id: the filename is
the id, the content is the absolute path of the preview file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from react_preview.core.config import load_preview_data
from react_preview.core.errors import ConfigError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """One registered preview file."""

    id: str
    absolute_path: Path


def derive_id(config_file: Path) -> str:
    """Default id: the preview file name without its extension."""
    return config_file.stem


def _is_valid_id(preview_id: str) -> bool:
    return bool(preview_id) and preview_id not in (".", "..") and "/" not in preview_id and "\\" not in preview_id


class Registry:
    """File-backed id → preview file lookup."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = storage_dir

    def _record(self, preview_id: str) -> Path:
        return self.storage_dir / preview_id

    def register(self, config_file: Path) -> RegistryEntry:
        """Register *config_file* under its ``id`` (or derived id).

        A later registration of the same id overwrites the earlier one.

        Raises:
            NotFoundError: If the preview file does not exist.
            ConfigError: If the file is invalid or the id is unusable.
        """
        config_file = config_file.resolve()
        data = load_preview_data(config_file)
        raw_id = data.get("id")
        preview_id = str(raw_id) if raw_id is not None else derive_id(config_file)
        if not _is_valid_id(preview_id):
            raise ConfigError(f"Invalid preview id: {preview_id!r}")

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        record = self._record(preview_id)
        if record.exists():
            logger.info("Overwriting registration for %s", preview_id)
        record.write_text(str(config_file), encoding="utf-8")
        logger.info("Registered %s -> %s", preview_id, config_file)
        return RegistryEntry(id=preview_id, absolute_path=config_file)

    def unregister(self, preview_id: str) -> None:
        """Remove a registration.

        Raises:
            NotFoundError: If the id is not registered.
        """
        if not _is_valid_id(preview_id) or not self._record(preview_id).is_file():
            raise NotFoundError(f"Could not find path associated with id {preview_id}")
        self._record(preview_id).unlink()
        logger.info("Unregistered %s", preview_id)

    def lookup(self, preview_id: str) -> Path | None:
        """Preview file registered under *preview_id*, or None."""
        if not _is_valid_id(preview_id):
            return None
        record = self._record(preview_id)
        if not record.is_file():
            return None
        return Path(record.read_text(encoding="utf-8").strip())

    def list_entries(self) -> list[RegistryEntry]:
        """All registrations, sorted by id."""
        if not self.storage_dir.is_dir():
            return []
        entries = []
        for record in sorted(self.storage_dir.iterdir()):
            if record.is_file():
                path = Path(record.read_text(encoding="utf-8").strip())
                entries.append(RegistryEntry(id=record.name, absolute_path=path))
        return entries
